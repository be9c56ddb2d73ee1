import numpy as np
import torch
from PIL import Image

from cocodet.data import DetectionInput, ImageFlag, ImageInput
from cocodet.data.coco import collate_fn


def _save(tmp_path, width=40, height=20):
    path = tmp_path / "img.png"
    Image.fromarray((np.random.rand(height, width, 3) * 255).astype("uint8")).save(path)
    return str(path)


def test_image_input_shapes(tmp_path):
    path = _save(tmp_path)
    img = ImageInput()(path)
    assert img.shape == (3, 20, 40)
    assert 0.0 <= img.min().item() and img.max().item() <= 1.0
    assert ImageInput(ImageFlag.GRAYSCALE, img_size=16)(path).shape == (1, 16, 16)


def test_detection_input_keeps_boxes_without_resize(tmp_path):
    path = _save(tmp_path)
    labels = np.array([[1.0, 2.0, 3.0, 4.0, 2.0]])
    img, label_t = DetectionInput()(path, labels)
    assert img.shape == (3, 20, 40)
    assert label_t.dtype == torch.float32
    assert torch.equal(label_t, torch.tensor([[1.0, 2.0, 3.0, 4.0, 2.0]]))


def test_detection_input_scales_boxes(tmp_path):
    path = _save(tmp_path)
    labels = np.array([[4.0, 2.0, 8.0, 10.0, 3.0]])
    labels.setflags(write=False)
    img, label_t = DetectionInput(img_size=10)(path, labels)
    assert img.shape == (3, 10, 10)
    assert torch.allclose(label_t, torch.tensor([[1.0, 1.0, 2.0, 5.0, 3.0]]))
    assert labels[0, 0] == 4.0


def test_detection_input_empty_labels(tmp_path):
    path = _save(tmp_path)
    _, label_t = DetectionInput(img_size=8)(path, np.zeros((0, 5)))
    assert label_t.shape == (0, 5)


def test_collate_fn():
    batch = [(torch.zeros(3, 8, 8), torch.zeros(2, 5)), (torch.ones(3, 8, 8), torch.zeros(0, 5))]
    imgs, labels = collate_fn(batch)
    assert imgs.shape == (2, 3, 8, 8)
    assert [t.shape[0] for t in labels] == [2, 0]
