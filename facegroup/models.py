"""Records passed across the grouping boundary."""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from facegroup.utils import to_data_url


@dataclass(frozen=True)
class Thumbnail:
    """One detected face as handed over by the detector/cropper."""

    index: int
    data: bytes
    mime_type: str = "image/jpeg"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def export(self) -> "ExportedThumbnail":
        """Caller-facing reference without the raw buffer."""
        return ExportedThumbnail(
            index=self.index,
            src=to_data_url(self.data, self.mime_type),
            metadata=self.metadata,
        )


@dataclass(frozen=True)
class ExportedThumbnail:
    index: int
    src: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SkippedThumbnail:
    index: int
    detail: str
    reason: str = "InvalidImage"


@dataclass
class GroupingResult:
    """Result of one grouping call."""

    message: str
    groups: List[List[ExportedThumbnail]] = field(default_factory=list)
    skipped: List[SkippedThumbnail] = field(default_factory=list)

    @property
    def index_groups(self) -> List[List[int]]:
        return [[thumb.index for thumb in group] for group in self.groups]

    @property
    def skipped_indices(self) -> List[int]:
        return [s.index for s in self.skipped]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'groups': [[asdict(thumb) for thumb in group] for group in self.groups],
            'skipped': [asdict(s) for s in self.skipped],
        }


@dataclass(frozen=True)
class BoundingBox:
    """Face region in normalized [0, 1] frame coordinates."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def is_empty(self) -> bool:
        return self.right <= self.left or self.bottom <= self.top


@dataclass
class Detection:
    """One face reported by the detector: a ready crop, a box, or both."""

    thumbnail: Optional[bytes] = None
    bounding_box: Optional[BoundingBox] = None
    track_id: Optional[str] = None
    confidence: Optional[float] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    def metadata(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = dict(self.attributes)
        if self.bounding_box is not None:
            meta['bounding_box'] = asdict(self.bounding_box)
        if self.track_id is not None:
            meta['track_id'] = self.track_id
        if self.confidence is not None:
            meta['confidence'] = self.confidence
        return meta
