"""Orchestrates fingerprinting, graph building and grouping for one detection batch."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

from tqdm import tqdm

from facegroup.clusterer import Clusterer
from facegroup.config import Config
from facegroup.detector import FaceDetector
from facegroup.errors import InvalidArgument, InvalidImage
from facegroup.image_processor import ImageProcessor
from facegroup.models import GroupingResult, SkippedThumbnail, Thumbnail

logger = logging.getLogger(__name__)

NO_FACES_MESSAGE = "Analysis complete. No faces were detected."


def summarize(faces: int, groups: int, skipped: int) -> str:
    """Human-readable outcome of a grouping call."""
    if faces == 0 and skipped == 0:
        return NO_FACES_MESSAGE
    message = f"Successfully analyzed {faces} face(s) into {groups} group(s)."
    if skipped:
        message += f" {skipped} face(s) could not be decoded and were not grouped."
    return message


class FaceGroupingPipeline:
    """Group the faces of one detection batch by visual similarity."""

    def __init__(self, config: Config = None, show_progress: bool = False):
        self.config = config or Config()
        self.processor = ImageProcessor(self.config)
        self.clusterer = Clusterer(self.config)
        self.show_progress = show_progress

    @staticmethod
    def _validate(thumbnails: Optional[Sequence[Thumbnail]]) -> List[Thumbnail]:
        if thumbnails is None:
            raise InvalidArgument("thumbnails must be a sequence of Thumbnail, got None")
        if isinstance(thumbnails, (str, bytes)):
            raise InvalidArgument("thumbnails must be a sequence of Thumbnail, got raw data")
        items = list(thumbnails)
        seen = set()
        for position, thumb in enumerate(items):
            if not isinstance(thumb, Thumbnail):
                raise InvalidArgument(f"Item {position} is {type(thumb).__name__}, not Thumbnail")
            if thumb.index in seen:
                raise InvalidArgument(f"Duplicate thumbnail index {thumb.index}")
            seen.add(thumb.index)
        return items

    def _fingerprint_one(self, thumb: Thumbnail) -> Tuple[Optional[int], Optional[InvalidImage]]:
        try:
            return self.processor.fingerprint(thumb), None
        except InvalidImage as e:
            return None, e

    def compute_fingerprints(
        self, thumbnails: Sequence[Thumbnail]
    ) -> Tuple[Dict[int, int], List[SkippedThumbnail]]:
        """
        Fingerprint every thumbnail on a bounded worker pool.

        Returns:
            (position -> fingerprint for decodable thumbnails in input order,
             skipped thumbnails)
        """
        fingerprints: Dict[int, int] = {}
        skipped: List[SkippedThumbnail] = []
        if not thumbnails:
            return fingerprints, skipped

        workers = min(self.config.MAX_WORKERS, len(thumbnails))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(tqdm(
                executor.map(self._fingerprint_one, thumbnails),
                total=len(thumbnails),
                desc="Fingerprinting",
                unit="face",
                disable=not self.show_progress,
            ))

        for position, (thumb, (value, error)) in enumerate(zip(thumbnails, results)):
            if error is not None:
                logger.warning(f"Skipping thumbnail {thumb.index}: {error.detail}")
                skipped.append(SkippedThumbnail(index=thumb.index, detail=error.detail))
            else:
                fingerprints[position] = value

        logger.info(f"Fingerprinted {len(fingerprints)}/{len(thumbnails)} thumbnails")
        return fingerprints, skipped

    def group_faces(self, thumbnails: Sequence[Thumbnail]) -> GroupingResult:
        """
        Partition thumbnails into groups of the same person.

        Undecodable thumbnails are reported in ``skipped`` and left out of the
        groups. A batch of exactly one thumbnail is returned as a single group
        without being decoded, so even unreadable bytes come back grouped there.

        Raises:
            InvalidArgument: thumbnails is None, holds a non-Thumbnail, or repeats an index
        """
        items = self._validate(thumbnails)

        if not items:
            return GroupingResult(message=NO_FACES_MESSAGE)

        if len(items) == 1:
            # Nothing to compare against
            return GroupingResult(
                message=summarize(1, 1, 0),
                groups=[[items[0].export()]],
            )

        fingerprints, skipped = self.compute_fingerprints(items)
        position_groups = self.clusterer.cluster_by_similarity(fingerprints)
        groups = [[items[p].export() for p in group] for group in position_groups]

        return GroupingResult(
            message=summarize(len(fingerprints), len(groups), len(skipped)),
            groups=groups,
            skipped=skipped,
        )

    async def analyze_media(self, media: bytes, detector: FaceDetector,
                            mime_type: str = 'video/mp4') -> GroupingResult:
        """
        Detect faces in an uploaded image or video and group them.

        Args:
            media: Raw upload bytes
            detector: Face detector to run over the media
            mime_type: Content type of the upload; bounding-box-only detections
                can only be cropped from still images

        Returns:
            GroupingResult whose thumbnail indices are detector positions
        """
        detections = await detector.detect(media, mime_type)
        if not detections:
            logger.info("No faces were detected")
            return GroupingResult(message=NO_FACES_MESSAGE)

        thumbnails: List[Thumbnail] = []
        unusable: List[SkippedThumbnail] = []
        for i, detection in enumerate(detections):
            meta = detection.metadata()
            if detection.thumbnail:
                thumbnails.append(Thumbnail(index=i, data=detection.thumbnail, metadata=meta))
            elif detection.bounding_box is not None and mime_type.startswith('image/'):
                try:
                    crop = self.processor.crop_face(media, detection.bounding_box, index=i)
                except InvalidImage as e:
                    logger.warning(f"Skipping detection {i}: {e.detail}")
                    unusable.append(SkippedThumbnail(index=i, detail=e.detail))
                    continue
                thumbnails.append(Thumbnail(
                    index=i, data=crop, mime_type=self.config.EXPORT_MIME_TYPE, metadata=meta,
                ))
            else:
                logger.warning(f"Skipping detection {i}: no thumbnail and nothing to crop from")
                unusable.append(SkippedThumbnail(index=i, detail="No thumbnail or croppable region"))

        result = self.group_faces(thumbnails)
        if unusable:
            result.skipped = sorted(unusable + result.skipped, key=lambda s: s.index)
            grouped = sum(len(g) for g in result.groups)
            result.message = summarize(grouped, len(result.groups), len(result.skipped))
        return result
