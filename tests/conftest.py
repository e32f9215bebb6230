"""Shared helpers for building test images in memory."""

import io

import numpy as np
import pytest
from PIL import Image

from facegroup.config import Config


def noise_image(seed: int, size=(64, 64), mode: str = "L") -> Image.Image:
    """Random pixels; different seeds give unrelated fingerprints."""
    rng = np.random.default_rng(seed)
    if mode == "L":
        pixels = rng.integers(0, 256, size=(size[1], size[0]), dtype=np.uint8)
    else:
        pixels = rng.integers(0, 256, size=(size[1], size[0], 3), dtype=np.uint8)
    return Image.fromarray(pixels)


def encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def noise_bytes(seed: int, fmt: str = "PNG", size=(64, 64)) -> bytes:
    return encode(noise_image(seed, size), fmt)


@pytest.fixture
def config():
    return Config(MAX_WORKERS=2)
