"""Dataset preparation: annotation indexing, label extraction and storage."""
from .annotations import AnnotationRecord, AnnotationStore, CategoryOrder, ImageRecord
from .coco import CocoDetection, DatasetConfig, DatasetEntry, PrepareState, collate_fn
from .labels import LabelExtractor
from .storage import CocoRepository, LocalStorage, Split
from .transforms import DetectionInput, ImageFlag, ImageInput

__all__ = [
    "AnnotationRecord",
    "AnnotationStore",
    "CategoryOrder",
    "CocoDetection",
    "CocoRepository",
    "DatasetConfig",
    "DatasetEntry",
    "DetectionInput",
    "ImageFlag",
    "ImageInput",
    "ImageRecord",
    "LabelExtractor",
    "LocalStorage",
    "PrepareState",
    "Split",
    "collate_fn",
]
