"""Face detector boundary: the interface the pipeline consumes and an HTTP client for it."""
import asyncio
import base64
import binascii
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import aiohttp

from facegroup.config import Config
from facegroup.errors import DetectorError
from facegroup.models import BoundingBox, Detection

logger = logging.getLogger(__name__)


class FaceDetector(ABC):
    """Anything that turns image or video bytes into face detections."""

    @abstractmethod
    async def detect(self, media: bytes, mime_type: str) -> List[Detection]:
        ...


def _parse_box(raw: Dict[str, Any]) -> BoundingBox:
    return BoundingBox(
        left=float(raw.get('left', 0.0)),
        top=float(raw.get('top', 0.0)),
        right=float(raw['right']),
        bottom=float(raw['bottom']),
    )


def parse_detections(payload: Any) -> List[Detection]:
    """
    Convert a detector JSON body into Detection records.

    Args:
        payload: Decoded JSON of the form {"faces": [{"thumbnail": <base64>,
            "boundingBox": {"left", "top", "right", "bottom"}, "trackId",
            "confidence", "attributes"}]}

    Returns:
        Detections in the order the detector reported them
    """
    if not isinstance(payload, dict) or not isinstance(payload.get('faces', []), list):
        raise DetectorError("Detector response has no 'faces' list")

    detections = []
    for i, face in enumerate(payload.get('faces', [])):
        try:
            thumbnail: Optional[bytes] = None
            if face.get('thumbnail'):
                thumbnail = base64.b64decode(face['thumbnail'], validate=True)
            box = _parse_box(face['boundingBox']) if face.get('boundingBox') else None
            track_id = face.get('trackId')
            confidence = face.get('confidence')
            detections.append(Detection(
                thumbnail=thumbnail,
                bounding_box=box,
                track_id=str(track_id) if track_id is not None else None,
                confidence=float(confidence) if confidence is not None else None,
                attributes=dict(face.get('attributes') or {}),
            ))
        except (AttributeError, KeyError, TypeError, ValueError, binascii.Error) as e:
            raise DetectorError(f"Malformed face #{i} in detector response: {e}") from e
    return detections


class HttpFaceDetector(FaceDetector):
    """Call a remote face detection service over HTTP."""

    def __init__(self, config: Config = None, url: str = None):
        self.config = config or Config()
        self.url = url or self.config.DETECTOR_URL
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Setup async context."""
        timeout = aiohttp.ClientTimeout(total=self.config.TIMEOUT)
        connector = aiohttp.TCPConnector(
            limit=self.config.MAX_CONCURRENT,
            enable_cleanup_closed=True
        )
        self.session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Cleanup async context."""
        if self.session:
            await self.session.close()
            self.session = None

    async def detect(self, media: bytes, mime_type: str = 'video/mp4') -> List[Detection]:
        """Upload media to the detector and return the faces it found."""
        if self.session is None:
            raise DetectorError("HttpFaceDetector must be used inside 'async with'")
        logger.info(f"Sending {len(media)} bytes ({mime_type}) to {self.url}")
        try:
            async with self.session.post(self.url, data=media,
                                         headers={'Content-Type': mime_type}) as response:
                if response.status != 200:
                    body = await response.text()
                    raise DetectorError(f"Detector returned HTTP {response.status}: {body[:200]}")
                payload = await response.json(content_type=None)
        except ValueError as e:
            raise DetectorError(f"Detector returned invalid JSON: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DetectorError(f"Detector request failed: {e}") from e

        detections = parse_detections(payload)
        logger.info(f"Detector reported {len(detections)} face(s)")
        return detections
