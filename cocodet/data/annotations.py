"""In-memory index over a COCO annotation document.

The store is built once from the decoded JSON and is read-only afterwards.
It keeps three lookups:

* image id -> annotation ids (document order)
* annotation id -> :class:`AnnotationRecord`
* raw category id -> dense label index in ``[0, K)``

Dense indices are assigned according to :class:`CategoryOrder`.  ``SORTED``
orders the ids declared in the ``categories`` section, so splits sharing a
category list share a mapping.  ``FIRST_SEEN`` follows the order in which
categories first appear while scanning the ``annotations`` list.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

from ..errors import NotFoundError, ParseError


class CategoryOrder(str, enum.Enum):
    """Policy used to assign dense category indices."""

    SORTED = "sorted"
    FIRST_SEEN = "first_seen"


@dataclass(frozen=True)
class ImageRecord:
    id: int
    file_name: str
    width: Optional[int] = None
    height: Optional[int] = None
    coco_url: Optional[str] = None


@dataclass(frozen=True)
class AnnotationRecord:
    """A single labelled object; ``bbox`` is ``(x, y, width, height)``."""

    id: int
    image_id: int
    category_id: int
    bbox: Tuple[float, float, float, float]
    area: float
    iscrowd: bool = False


def _section(document: Mapping[str, Any], name: str) -> List[Any]:
    if name not in document:
        raise ParseError(f"annotation document has no '{name}' section")
    section = document[name]
    if not isinstance(section, list):
        raise ParseError(f"'{name}' section must be a list, got {type(section).__name__}")
    return section


def _field(entry: Any, section: str, pos: int, name: str) -> Any:
    if not isinstance(entry, Mapping):
        raise ParseError(f"{section}[{pos}] must be an object, got {type(entry).__name__}")
    if name not in entry:
        raise ParseError(f"{section}[{pos}] is missing required field '{name}'")
    return entry[name]


def _as_int(value: Any, section: str, pos: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"{section}[{pos}].{name} must be an integer, got {value!r}")
    return value


def _as_float(value: Any, section: str, pos: int, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"{section}[{pos}].{name} must be a number, got {value!r}")
    return float(value)


def _optional_int(entry: Mapping[str, Any], section: str, pos: int, name: str) -> Optional[int]:
    value = entry.get(name)
    return None if value is None else _as_int(value, section, pos, name)


class AnnotationStore:
    """Lookup tables built from a COCO ``instances_*.json`` document."""

    def __init__(
        self,
        images: Dict[int, ImageRecord],
        annotations: Dict[int, AnnotationRecord],
        image_index: Dict[int, Tuple[int, ...]],
        category_map: Dict[int, int],
        category_names: Dict[int, str],
        image_dir: Optional[str] = None,
    ) -> None:
        self._images = images
        self._image_ids = tuple(images)
        self._annotations = annotations
        self._image_index = image_index
        self._category_map = MappingProxyType(category_map)
        self._category_ids = tuple(sorted(category_map, key=category_map.__getitem__))
        self._category_names = category_names
        self._image_dir = image_dir

    @classmethod
    def build(
        cls,
        document: Mapping[str, Any],
        image_dir: Optional[str] = None,
        category_order: CategoryOrder | str = CategoryOrder.SORTED,
    ) -> "AnnotationStore":
        """Parse ``document`` and build all indices in one pass over the annotations."""

        if not isinstance(document, Mapping):
            raise ParseError(f"annotation document must be an object, got {type(document).__name__}")
        category_order = CategoryOrder(category_order)
        raw_images = _section(document, "images")
        raw_annotations = _section(document, "annotations")
        raw_categories = _section(document, "categories")

        images: Dict[int, ImageRecord] = {}
        for pos, entry in enumerate(raw_images):
            image_id = _as_int(_field(entry, "images", pos, "id"), "images", pos, "id")
            file_name = _field(entry, "images", pos, "file_name")
            if not isinstance(file_name, str) or not file_name:
                raise ParseError(f"images[{pos}].file_name must be a non-empty string")
            if image_id in images:
                raise ParseError(f"images[{pos}] duplicates image id {image_id}")
            coco_url = entry.get("coco_url")
            images[image_id] = ImageRecord(
                id=image_id,
                file_name=file_name,
                width=_optional_int(entry, "images", pos, "width"),
                height=_optional_int(entry, "images", pos, "height"),
                coco_url=coco_url if isinstance(coco_url, str) and coco_url else None,
            )

        declared: Dict[int, str] = {}
        for pos, entry in enumerate(raw_categories):
            cat_id = _as_int(_field(entry, "categories", pos, "id"), "categories", pos, "id")
            if cat_id in declared:
                raise ParseError(f"categories[{pos}] duplicates category id {cat_id}")
            declared[cat_id] = str(entry.get("name", cat_id))

        category_map: Dict[int, int] = {}
        if category_order is CategoryOrder.SORTED:
            category_map = {cat_id: i for i, cat_id in enumerate(sorted(declared))}

        annotations: Dict[int, AnnotationRecord] = {}
        image_index: Dict[int, List[int]] = {}
        for pos, entry in enumerate(raw_annotations):
            ann_id = _as_int(_field(entry, "annotations", pos, "id"), "annotations", pos, "id")
            image_id = _as_int(
                _field(entry, "annotations", pos, "image_id"), "annotations", pos, "image_id"
            )
            cat_id = _as_int(
                _field(entry, "annotations", pos, "category_id"), "annotations", pos, "category_id"
            )
            bbox = _field(entry, "annotations", pos, "bbox")
            if not isinstance(bbox, Sequence) or isinstance(bbox, str) or len(bbox) != 4:
                raise ParseError(f"annotations[{pos}].bbox must be [x, y, width, height], got {bbox!r}")
            box = tuple(_as_float(v, "annotations", pos, "bbox") for v in bbox)
            area = _as_float(_field(entry, "annotations", pos, "area"), "annotations", pos, "area")
            if ann_id in annotations:
                raise ParseError(f"annotations[{pos}] duplicates annotation id {ann_id}")

            annotations[ann_id] = AnnotationRecord(
                id=ann_id,
                image_id=image_id,
                category_id=cat_id,
                bbox=box,  # type: ignore[arg-type]
                area=area,
                iscrowd=bool(entry.get("iscrowd", 0)),
            )
            image_index.setdefault(image_id, []).append(ann_id)
            if category_order is CategoryOrder.FIRST_SEEN and cat_id not in category_map:
                category_map[cat_id] = len(category_map)

        return cls(
            images=images,
            annotations=annotations,
            image_index={k: tuple(v) for k, v in image_index.items()},
            category_map=category_map,
            category_names=declared,
            image_dir=image_dir,
        )

    @classmethod
    def from_file(cls, path: str | Path, **kwargs: Any) -> "AnnotationStore":
        """Load and index an annotation JSON file."""

        path = Path(path)
        try:
            with open(path, encoding="utf-8-sig") as f:
                document = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ParseError(f"{path} is not valid UTF-8 JSON: {exc}") from exc
        return cls.build(document, **kwargs)

    def __len__(self) -> int:
        return len(self._annotations)

    def image_ids(self) -> Tuple[int, ...]:
        """All images declared in the document, in document order."""
        return self._image_ids

    def image(self, image_id: int) -> ImageRecord:
        try:
            return self._images[image_id]
        except KeyError:
            raise NotFoundError("image", image_id) from None

    def relative_image_path(self, image_id: int) -> str:
        """Path of the image file relative to the dataset root.

        ``file_name`` is placed under the store's ``image_dir`` when one was
        given.  Otherwise the last two segments of ``coco_url`` are used (e.g.
        ``val2017/000000000139.jpg``), falling back to the bare ``file_name``.
        """

        image = self.image(image_id)
        if self._image_dir:
            return str(PurePosixPath(self._image_dir, image.file_name))
        if image.coco_url:
            parts = PurePosixPath(urlparse(image.coco_url).path).parts
            if len(parts) >= 3:
                return str(PurePosixPath(*parts[-2:]))
        return image.file_name

    def annotation_ids_for_image(self, image_id: int) -> Tuple[int, ...]:
        return self._image_index.get(image_id, ())

    def annotation(self, annotation_id: int) -> AnnotationRecord:
        try:
            return self._annotations[annotation_id]
        except KeyError:
            raise NotFoundError("annotation", annotation_id) from None

    def dense_category_index(self, raw_category_id: int) -> int:
        try:
            return self._category_map[raw_category_id]
        except KeyError:
            raise NotFoundError("category", raw_category_id) from None

    @property
    def category_map(self) -> Mapping[int, int]:
        return self._category_map

    @property
    def num_categories(self) -> int:
        return len(self._category_map)

    def category_ids(self) -> Tuple[int, ...]:
        """Raw category ids ordered by dense index."""
        return self._category_ids

    def category_names(self) -> List[str]:
        return [self._category_names.get(c, str(c)) for c in self._category_ids]


__all__ = ["AnnotationRecord", "AnnotationStore", "CategoryOrder", "ImageRecord"]
