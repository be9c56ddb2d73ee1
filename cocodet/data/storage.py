"""Locate (and optionally download) COCO annotation documents and images.

:class:`LocalStorage` serves a dataset that is already unpacked on disk.
:class:`CocoRepository` wraps one rooted in a cache directory and fetches the
official archives on first use.  Both expose the same methods, so
:class:`~cocodet.data.coco.CocoDetection` accepts either.
"""

from __future__ import annotations

import enum
import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from torchvision.datasets.utils import download_and_extract_archive

from ..errors import UnsupportedSplitError

logger = logging.getLogger(__name__)


class Split(str, enum.Enum):
    TRAIN = "train"
    TEST = "test"
    VALIDATION = "validation"


# COCO 2017 ships no separate validation annotations; "val2017" is used as TEST.
COCO_2017_DOCUMENTS: Dict[Split, str] = {
    Split.TRAIN: "annotations/instances_train2017.json",
    Split.TEST: "annotations/instances_val2017.json",
}
COCO_2017_IMAGE_DIRS: Dict[Split, str] = {
    Split.TRAIN: "train2017",
    Split.TEST: "val2017",
}

COCO_BASE_URL = "http://images.cocodataset.org"
ANNOTATIONS_ARCHIVE = "annotations/annotations_trainval2017.zip"
IMAGE_ARCHIVES: Dict[Split, str] = {
    Split.TRAIN: "zips/train2017.zip",
    Split.TEST: "zips/val2017.zip",
}


def as_split(value: Split | str) -> Split:
    """Coerce ``value`` to a :class:`Split`; unknown names are unsupported."""

    try:
        return Split(value)
    except ValueError:
        raise UnsupportedSplitError(f"unknown split {value!r}") from None


def default_cache_dir() -> Path:
    """``$COCODET_CACHE_DIR`` or ``~/.cache/cocodet``."""

    env = os.getenv("COCODET_CACHE_DIR")
    return Path(env).expanduser() if env else Path.home() / ".cache" / "cocodet"


class LocalStorage:
    """Dataset files that already exist below ``root``.

    ``image_dirs`` decides where image files live for each split.  It takes
    precedence over the directory embedded in an image's ``coco_url``.
    """

    def __init__(
        self,
        root: str | Path,
        documents: Optional[Mapping[Split, str]] = None,
        image_dirs: Optional[Mapping[Split, str]] = None,
    ) -> None:
        self.root = Path(root).expanduser()
        self.documents = dict(COCO_2017_DOCUMENTS if documents is None else documents)
        self.image_dirs = dict(COCO_2017_IMAGE_DIRS if image_dirs is None else image_dirs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root={str(self.root)!r})"

    def supports(self, split: Split) -> bool:
        return as_split(split) in self.documents

    def document_path(self, split: Split) -> Path:
        split = as_split(split)
        if split not in self.documents:
            raise UnsupportedSplitError(f"no annotation document for split '{split.value}'")
        return self.root / self.documents[split]

    def resolve_document(self, split: Split) -> Path:
        path = self.document_path(split)
        if not path.is_file():
            raise FileNotFoundError(f"annotation document not found: {path}")
        return path

    def image_dir(self, split: Split) -> Optional[str]:
        return self.image_dirs.get(as_split(split))

    def resolve_image_path(self, relative_path: str) -> str:
        return str(self.root / relative_path)


class CocoRepository:
    """COCO 2017 stored under ``cache_dir``, downloaded on first use."""

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        version: str = "2017",
        base_url: str = COCO_BASE_URL,
        download_images: bool = False,
    ) -> None:
        cache_dir = default_cache_dir() if cache_dir is None else Path(cache_dir).expanduser()
        self.local = LocalStorage(cache_dir / "coco" / version)
        self.base_url = base_url.rstrip("/")
        self.download_images = download_images

    def __repr__(self) -> str:
        return f"CocoRepository(root={str(self.root)!r})"

    @property
    def root(self) -> Path:
        return self.local.root

    def supports(self, split: Split) -> bool:
        return self.local.supports(split)

    def document_path(self, split: Split) -> Path:
        return self.local.document_path(split)

    def image_dir(self, split: Split) -> Optional[str]:
        return self.local.image_dir(split)

    def resolve_image_path(self, relative_path: str) -> str:
        return self.local.resolve_image_path(relative_path)

    def resolve_document(self, split: Split) -> Path:
        """Return the annotation document, fetching the archives if missing."""

        path = self.document_path(split)
        if path.is_file():
            logger.debug("using cached annotation document %s", path)
        else:
            self._fetch(ANNOTATIONS_ARCHIVE)
        if self.download_images:
            self.download_split_images(split)
        return self.local.resolve_document(split)

    def download_split_images(self, split: Split) -> Path:
        split = as_split(split)
        if split not in IMAGE_ARCHIVES:
            raise UnsupportedSplitError(f"no image archive for split '{split.value}'")
        target = self.root / self.local.image_dirs[split]
        if target.is_dir():
            logger.debug("using cached images in %s", target)
        else:
            self._fetch(IMAGE_ARCHIVES[split])
        return target

    def _fetch(self, archive: str) -> None:
        url = f"{self.base_url}/{archive}"
        logger.info("downloading %s into %s", url, self.root)
        self.root.mkdir(parents=True, exist_ok=True)
        download_and_extract_archive(url, download_root=str(self.root), remove_finished=True)


__all__ = [
    "COCO_2017_DOCUMENTS",
    "COCO_2017_IMAGE_DIRS",
    "CocoRepository",
    "LocalStorage",
    "Split",
    "as_split",
    "default_cache_dir",
]
