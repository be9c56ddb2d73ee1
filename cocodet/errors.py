"""Exceptions raised while preparing and reading COCO detection datasets."""

from __future__ import annotations

from typing import Any


class CocoDatasetError(Exception):
    """Base class for all dataset preparation errors."""


class ParseError(CocoDatasetError, ValueError):
    """The annotation document is structurally malformed."""


class UnsupportedSplitError(CocoDatasetError, ValueError):
    """The requested split has no annotation document."""


class NotFoundError(CocoDatasetError, KeyError):
    """An annotation or category id is referenced but was never recorded."""

    def __init__(self, kind: str, key: Any) -> None:
        super().__init__(f"{kind} id {key!r} not found in annotation index")
        self.kind = kind
        self.key = key

    def __str__(self) -> str:
        # KeyError quotes its message; keep it readable.
        return str(self.args[0])


class NotPreparedError(CocoDatasetError, RuntimeError):
    """The dataset was read before :meth:`prepare` completed."""


__all__ = [
    "CocoDatasetError",
    "ParseError",
    "UnsupportedSplitError",
    "NotFoundError",
    "NotPreparedError",
]
