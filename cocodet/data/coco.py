"""COCO detection dataset with a one-shot preparation step."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, NamedTuple, Optional, Tuple

import numpy as np
import torch
from torch.utils.data import Dataset

from ..errors import NotPreparedError, UnsupportedSplitError
from .annotations import AnnotationStore, CategoryOrder
from .labels import LabelExtractor
from .storage import CocoRepository, LocalStorage, Split, as_split
from .transforms import DetectionInput, ImageFlag

logger = logging.getLogger(__name__)


class PrepareState(str, enum.Enum):
    UNPREPARED = "unprepared"
    PREPARING = "preparing"
    PREPARED = "prepared"
    FAILED = "failed"


class DatasetEntry(NamedTuple):
    """An image reference and its ``(N, 5)`` label matrix."""

    reference: str
    labels: np.ndarray


@dataclass(frozen=True)
class DatasetConfig:
    """Everything :class:`CocoDetection` needs to locate and parse a split.

    ``storage`` takes precedence; otherwise ``data_dir`` selects files already
    on disk and, failing that, a :class:`CocoRepository` downloads into
    ``cache_dir``.
    """

    split: Split = Split.TRAIN
    storage: Optional[LocalStorage | CocoRepository] = None
    cache_dir: Optional[Path] = None
    data_dir: Optional[Path] = None
    category_order: CategoryOrder = CategoryOrder.SORTED
    include_crowd: bool = True
    flag: ImageFlag = ImageFlag.COLOR
    download_images: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "split", as_split(self.split))
        object.__setattr__(self, "category_order", CategoryOrder(self.category_order))
        object.__setattr__(self, "flag", ImageFlag(self.flag))

    def storage_backend(self) -> LocalStorage | CocoRepository:
        if self.storage is not None:
            return self.storage
        if self.data_dir is not None:
            return LocalStorage(self.data_dir)
        return CocoRepository(self.cache_dir, download_images=self.download_images)


class CocoDetection(Dataset):
    """Random-access ``(image_reference, labels)`` view over a COCO split.

    Nothing is read until :meth:`prepare` is called.  Preparation parses the
    annotation document, keeps every image that has at least one label with a
    positive area, and freezes the result.  A failed preparation leaves no
    entries behind; calling :meth:`prepare` again starts over.

    ``transform`` is applied by ``__getitem__`` as ``transform(reference,
    labels)``; :meth:`get` always returns the raw :class:`DatasetEntry`.
    """

    def __init__(self, config: Optional[DatasetConfig] = None, transform: Any = None) -> None:
        super().__init__()
        self.config = config or DatasetConfig()
        self.transform = transform
        self.storage = self.config.storage_backend()
        self._state = PrepareState.UNPREPARED
        self._split: Optional[Split] = None
        self._store: Optional[AnnotationStore] = None
        self._entries: Tuple[DatasetEntry, ...] = ()

    def __repr__(self) -> str:
        return f"CocoDetection(split={self.config.split.value!r}, state={self._state.value!r}, storage={self.storage!r})"

    @property
    def state(self) -> PrepareState:
        return self._state

    @property
    def prepared(self) -> bool:
        return self._state is PrepareState.PREPARED

    def prepare(self, split: Split | str | None = None) -> None:
        """Parse the annotation document for ``split`` and build the entries.

        Defaults to the configured split.  Raises
        :class:`~cocodet.errors.UnsupportedSplitError` when the storage has no
        document for the split.  Once prepared, a call for a supported split is a
        no-op; an unsupported split still raises.
        """

        requested = split
        split = as_split(self.config.split if split is None else split)
        if not self.storage.supports(split):
            raise UnsupportedSplitError(f"split '{split.value}' is not available from {self.storage!r}")
        if self.prepared:
            if requested is not None and split is not self._split:
                logger.warning(
                    "dataset already prepared for split '%s'; ignoring '%s'",
                    self._split.value,
                    split.value,
                )
            return

        self._state = PrepareState.PREPARING
        self._entries = ()
        self._store = None
        try:
            store, entries = self._build(split)
        except Exception:
            self._state = PrepareState.FAILED
            logger.error("preparing split '%s' failed", split.value)
            raise
        self._store = store
        self._entries = tuple(entries)
        self._split = split
        self._state = PrepareState.PREPARED

    def _build(self, split: Split) -> Tuple[AnnotationStore, List[DatasetEntry]]:
        document = self.storage.resolve_document(split)
        logger.info("preparing split '%s' from %s", split.value, document)
        store = AnnotationStore.from_file(
            document,
            image_dir=self.storage.image_dir(split),
            category_order=self.config.category_order,
        )
        extractor = LabelExtractor(store, include_crowd=self.config.include_crowd)

        entries: List[DatasetEntry] = []
        image_ids = store.image_ids()
        for image_id in image_ids:
            labels = extractor.extract(image_id)
            if not len(labels):
                logger.debug("skipping image %d: no valid annotations", image_id)
                continue
            labels.setflags(write=False)
            reference = self.storage.resolve_image_path(store.relative_image_path(image_id))
            entries.append(DatasetEntry(reference, labels))

        logger.info(
            "split '%s': kept %d of %d images, %d categories",
            split.value,
            len(entries),
            len(image_ids),
            store.num_categories,
        )
        return store, entries

    def _check_prepared(self) -> None:
        if not self.prepared:
            raise NotPreparedError(f"dataset is {self._state.value}; call prepare() first")

    @property
    def split(self) -> Split:
        self._check_prepared()
        return self._split  # type: ignore[return-value]

    @property
    def store(self) -> AnnotationStore:
        self._check_prepared()
        return self._store  # type: ignore[return-value]

    @property
    def num_classes(self) -> int:
        return self.store.num_categories

    def size(self) -> int:
        self._check_prepared()
        return len(self._entries)

    def get(self, index: int) -> DatasetEntry:
        self._check_prepared()
        if not 0 <= index < len(self._entries):
            raise IndexError(f"index {index} out of range for dataset of size {len(self._entries)}")
        return self._entries[index]

    def __len__(self) -> int:
        return self.size()

    def __getitem__(self, index: int) -> Any:
        entry = self.get(index)
        if self.transform is None:
            return entry
        return self.transform(entry.reference, entry.labels)

    def default_transform(self, img_size: Optional[int] = None) -> DetectionInput:
        return DetectionInput(self.config.flag, img_size=img_size)


def collate_fn(batch: List[Tuple[torch.Tensor, torch.Tensor]]) -> Tuple[torch.Tensor, List[torch.Tensor]]:
    imgs, labels = zip(*batch)
    return torch.stack(list(imgs)), list(labels)


__all__ = [
    "CocoDetection",
    "DatasetConfig",
    "DatasetEntry",
    "PrepareState",
    "collate_fn",
]
