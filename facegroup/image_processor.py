"""Image decoding, cropping and perceptual hashing module."""
import io
import logging
from typing import Optional

import imagehash
from PIL import Image

from facegroup.config import Config
from facegroup.errors import InvalidImage
from facegroup.models import BoundingBox, Thumbnail

logger = logging.getLogger(__name__)


class ImageProcessor:
    """Decode face thumbnails and compute their 64-bit fingerprints."""

    def __init__(self, config: Config = None):
        self.config = config or Config()

    def decode(self, data: bytes, index: Optional[int] = None) -> Image.Image:
        """Decode image bytes into a fully loaded raster image."""
        if not data:
            raise InvalidImage("Empty image data", index)
        try:
            img = Image.open(io.BytesIO(data))
            # open() is lazy; load() surfaces truncated or corrupt pixel data
            img.load()
        except Exception as e:
            raise InvalidImage(f"Cannot decode image: {e}", index) from e
        width, height = img.size
        if min(width, height) < self.config.MIN_IMAGE_SIZE:
            raise InvalidImage(
                f"Face too small to fingerprint: {width}x{height} "
                f"(minimum side {self.config.MIN_IMAGE_SIZE})", index
            )
        return img

    def normalize_image(self, img: Image.Image) -> Image.Image:
        """Flatten the colour mode and resample to the square size hashed by phash."""
        if img.mode == 'P':
            img = img.convert('RGBA')
        if img.mode not in ['RGB', 'L']:
            img = img.convert('RGB')
        size = self.config.NORMALIZE_SIZE
        return img.resize((size, size), Image.Resampling.LANCZOS)

    def compute_hash(self, img: Image.Image) -> int:
        """DCT perceptual hash of an image, packed most-significant bit first."""
        phash = imagehash.phash(self.normalize_image(img), hash_size=self.config.HASH_SIZE)
        value = 0
        for bit in phash.hash.flatten():
            value = (value << 1) | int(bool(bit))
        return value

    def fingerprint(self, thumbnail: Thumbnail) -> int:
        """Decode a thumbnail and return its fingerprint."""
        img = self.decode(thumbnail.data, thumbnail.index)
        value = self.compute_hash(img)
        logger.debug(f"Thumbnail {thumbnail.index}: fingerprint {value:016x}")
        return value

    def crop_face(self, frame: bytes, box: BoundingBox, index: Optional[int] = None) -> bytes:
        """Cut a normalized bounding box out of a full frame and re-encode it."""
        if box.is_empty:
            raise InvalidImage(f"Empty face region {box}", index)
        img = self.decode(frame, index)
        width, height = img.size
        left = max(0, min(width, int(round(box.left * width))))
        top = max(0, min(height, int(round(box.top * height))))
        right = max(0, min(width, int(round(box.right * width))))
        bottom = max(0, min(height, int(round(box.bottom * height))))
        if right <= left or bottom <= top:
            raise InvalidImage(f"Face region {box} lies outside the frame", index)

        face = img.crop((left, top, right, bottom))
        if face.mode not in ['RGB', 'L']:
            face = face.convert('RGB')
        buf = io.BytesIO()
        face.save(buf, format=self.config.EXPORT_FORMAT)
        return buf.getvalue()
