"""Per-image label extraction."""

from __future__ import annotations

import numpy as np

from .annotations import AnnotationStore

LABEL_COLUMNS = ("x", "y", "width", "height", "category")


class LabelExtractor:
    """Turn the annotations of one image into an ``(N, 5)`` label matrix.

    Each row is ``[x, y, width, height, dense_category_index]``.  Annotations
    whose ``area`` is not positive (including NaN) are dropped, as are crowd
    regions when ``include_crowd`` is False.  An image without usable
    annotations yields an empty ``(0, 5)`` array.
    """

    def __init__(self, store: AnnotationStore, include_crowd: bool = True) -> None:
        self.store = store
        self.include_crowd = include_crowd

    def extract(self, image_id: int) -> np.ndarray:
        rows = []
        for ann_id in self.store.annotation_ids_for_image(image_id):
            ann = self.store.annotation(ann_id)
            if not ann.area > 0:
                continue
            if ann.iscrowd and not self.include_crowd:
                continue
            x, y, w, h = ann.bbox
            rows.append([x, y, w, h, self.store.dense_category_index(ann.category_id)])
        if not rows:
            return np.zeros((0, len(LABEL_COLUMNS)), dtype=np.float64)
        return np.asarray(rows, dtype=np.float64)

    __call__ = extract


__all__ = ["LABEL_COLUMNS", "LabelExtractor"]
