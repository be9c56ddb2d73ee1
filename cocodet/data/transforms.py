"""Convert dataset entries into tensors.

Two converters share the image loading path: :class:`ImageInput` for
inference-only pipelines (image reference in, tensor out) and
:class:`DetectionInput` for training (image reference and label matrix in,
tensor pair out).
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import torch
from PIL import Image
from torchvision import transforms as T


class ImageFlag(str, enum.Enum):
    """Colour mode used when decoding images."""

    COLOR = "color"
    GRAYSCALE = "grayscale"

    @property
    def mode(self) -> str:
        return "RGB" if self is ImageFlag.COLOR else "L"


def load_image(path: str | Path, flag: ImageFlag = ImageFlag.COLOR) -> Image.Image:
    with Image.open(path) as img:
        return img.convert(ImageFlag(flag).mode)


class ImageInput:
    """Load an image reference as a ``(C, H, W)`` float tensor in ``[0, 1]``.

    When ``img_size`` is given the image is resized to a square of that size.
    """

    def __init__(self, flag: ImageFlag = ImageFlag.COLOR, img_size: Optional[int] = None) -> None:
        self.flag = ImageFlag(flag)
        self.img_size = img_size
        steps = [T.Resize((img_size, img_size))] if img_size else []
        self.tf = T.Compose(steps + [T.ToTensor()])

    def load(self, reference: str) -> Tuple[torch.Tensor, Tuple[int, int]]:
        """Return the tensor and the original ``(width, height)``."""
        img = load_image(reference, self.flag)
        return self.tf(img), img.size

    def __call__(self, reference: str) -> torch.Tensor:
        return self.load(reference)[0]


class DetectionInput:
    """Load an image and its ``(N, 5)`` label matrix as tensors.

    Box columns are rescaled with the image so they stay in pixel units of the
    returned tensor.  The category column is left untouched.
    """

    def __init__(self, flag: ImageFlag = ImageFlag.COLOR, img_size: Optional[int] = None) -> None:
        self.image = ImageInput(flag, img_size)

    @property
    def flag(self) -> ImageFlag:
        return self.image.flag

    @property
    def img_size(self) -> Optional[int]:
        return self.image.img_size

    def __call__(self, reference: str, labels: np.ndarray) -> Tuple[torch.Tensor, torch.Tensor]:
        img, (width, height) = self.image.load(reference)
        label_t = torch.from_numpy(np.array(labels, dtype=np.float32).reshape(-1, 5))
        if self.img_size and label_t.numel():
            sx = self.img_size / width
            sy = self.img_size / height
            label_t[:, [0, 2]] *= sx
            label_t[:, [1, 3]] *= sy
        return img, label_t


__all__ = ["DetectionInput", "ImageFlag", "ImageInput", "load_image"]
