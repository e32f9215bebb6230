"""Exceptions raised by the face grouping core."""
from typing import Optional


class FaceGroupError(Exception):
    """Base class for face grouping errors."""


class InvalidImage(FaceGroupError):
    """A thumbnail's bytes could not be decoded into a usable raster image."""

    reason = "InvalidImage"

    def __init__(self, detail: str, index: Optional[int] = None):
        self.detail = detail
        self.index = index
        where = f" (thumbnail {index})" if index is not None else ""
        super().__init__(f"{detail}{where}")


class InvalidArgument(FaceGroupError, ValueError):
    """The caller violated the input contract."""


class DetectorError(FaceGroupError):
    """The injected face detector failed or returned an unusable payload."""
