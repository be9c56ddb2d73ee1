import json
from pathlib import Path

import pytest


def coco_document(images, annotations, categories):
    return {
        "images": [
            {"id": i, "file_name": f"{i:012d}.jpg", "width": 64, "height": 48} for i in images
        ],
        "annotations": [
            {
                "id": a,
                "image_id": img,
                "category_id": cat,
                "bbox": list(box),
                "area": area,
                "iscrowd": 0,
            }
            for a, img, cat, box, area in annotations
        ],
        "categories": [{"id": c, "name": f"cat{c}"} for c in categories],
    }


def write_split(root: Path, document, name="instances_train2017.json") -> Path:
    path = root / "annotations" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def two_image_doc():
    # image 1 has a valid box, image 2 only a zero-area one
    return coco_document(
        images=[1, 2],
        annotations=[
            (10, 1, 18, (1.0, 2.0, 3.0, 4.0), 5.0),
            (11, 2, 18, (0.0, 0.0, 0.0, 0.0), 0.0),
        ],
        categories=[18],
    )


@pytest.fixture
def make_document():
    return coco_document


@pytest.fixture
def write_document(tmp_path):
    def _write(document, name="instances_train2017.json"):
        return write_split(tmp_path, document, name)

    return _write
