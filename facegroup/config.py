import os
from pathlib import Path


class Config:
    """Configuration settings for face fingerprinting and grouping."""

    # Fingerprint
    HASH_SIZE = 8               # 8x8 DCT grid -> 64 bits
    HASH_BITS = 64
    NORMALIZE_SIZE = 64
    MIN_IMAGE_SIZE = 8          # smaller than the hash grid carries no detail

    # Fraction of differing bits still counted as the same person (2/64)
    SIMILARITY_THRESHOLD = 0.03125

    # Worker pool
    MAX_WORKERS = os.cpu_count() or 1
    PARALLEL_MIN_PAIRS = 5000   # below this, pairs are compared inline

    EXPORT_FORMAT = "JPEG"
    EXPORT_MIME_TYPE = "image/jpeg"

    # Remote detector
    DETECTOR_URL = os.environ.get("FACEGROUP_DETECTOR_URL", "http://localhost:8080/detect")
    TIMEOUT = 120               # seconds
    MAX_CONCURRENT = 4

    OUTPUT_DIR = "output"
    LOG_DIR = "logs"

    def __init__(self, **overrides):
        for name, value in overrides.items():
            if not name.isupper() or not hasattr(type(self), name):
                raise ValueError(f"Unknown config setting: {name}")
            object.__setattr__(self, name, value)
        if self.HASH_SIZE * self.HASH_SIZE != self.HASH_BITS or self.HASH_BITS != 64:
            raise ValueError("Fingerprint width is fixed at 64 bits (HASH_SIZE=8)")
        if not 0.0 <= self.SIMILARITY_THRESHOLD <= 1.0:
            raise ValueError(f"SIMILARITY_THRESHOLD must be in [0, 1], got {self.SIMILARITY_THRESHOLD}")
        if self.MAX_WORKERS < 1:
            raise ValueError(f"MAX_WORKERS must be >= 1, got {self.MAX_WORKERS}")

    def __setattr__(self, name, value):
        raise AttributeError(f"Config is read-only; pass {name} to Config() instead")

    def ensure_dirs(self) -> None:
        """Create required directories if they don't exist."""
        for p in [self.OUTPUT_DIR, self.LOG_DIR]:
            Path(p).mkdir(parents=True, exist_ok=True)
