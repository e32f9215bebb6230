"""
facegroup: group detected face thumbnails by perceptual-hash similarity.
"""

__version__ = "0.1.0"

from .clusterer import Clusterer, hash_distance
from .config import Config
from .detector import FaceDetector, HttpFaceDetector
from .errors import DetectorError, FaceGroupError, InvalidArgument, InvalidImage
from .image_processor import ImageProcessor
from .models import BoundingBox, Detection, ExportedThumbnail, GroupingResult, SkippedThumbnail, Thumbnail
from .pipeline import FaceGroupingPipeline

__all__ = [
    "BoundingBox",
    "Clusterer",
    "Config",
    "Detection",
    "DetectorError",
    "ExportedThumbnail",
    "FaceDetector",
    "FaceGroupError",
    "FaceGroupingPipeline",
    "GroupingResult",
    "HttpFaceDetector",
    "ImageProcessor",
    "InvalidArgument",
    "InvalidImage",
    "SkippedThumbnail",
    "Thumbnail",
    "hash_distance",
    "__version__",
]
