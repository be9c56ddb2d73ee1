"""COCO detection dataset preparation for PyTorch training pipelines."""
from .data import (
    AnnotationStore,
    CategoryOrder,
    CocoDetection,
    CocoRepository,
    DatasetConfig,
    DatasetEntry,
    LabelExtractor,
    LocalStorage,
    Split,
    collate_fn,
)
from .errors import (
    CocoDatasetError,
    NotFoundError,
    NotPreparedError,
    ParseError,
    UnsupportedSplitError,
)

__version__ = "0.1.0"

__all__ = [
    "AnnotationStore",
    "CategoryOrder",
    "CocoDatasetError",
    "CocoDetection",
    "CocoRepository",
    "DatasetConfig",
    "DatasetEntry",
    "LabelExtractor",
    "LocalStorage",
    "NotFoundError",
    "NotPreparedError",
    "ParseError",
    "Split",
    "UnsupportedSplitError",
    "collate_fn",
]
