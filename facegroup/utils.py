"""Utility functions for the face grouping project."""
import base64
import logging
from pathlib import Path
from typing import List, Optional

IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.bmp', '.webp', '.tif', '.tiff'}

MIME_TYPES = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.bmp': 'image/bmp',
    '.webp': 'image/webp',
    '.tif': 'image/tiff',
    '.tiff': 'image/tiff',
}


def setup_logging(level=logging.INFO, log_file: Optional[str] = None):
    """Configure logging for the application."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )
    return logging.getLogger(__name__)


def to_data_url(data: bytes, mime_type: str = 'image/jpeg') -> str:
    """Encode image bytes as a data URL the browser can display directly."""
    payload = base64.b64encode(data).decode('ascii')
    return f"data:{mime_type};base64,{payload}"


def get_image_files(directory: Path) -> List[Path]:
    """
    List image files directly inside a directory.

    Args:
        directory: Directory to scan

    Returns:
        Paths sorted by file name, so positions are stable between runs
    """
    return sorted(
        p for p in Path(directory).iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def guess_mime_type(path: Path) -> str:
    return MIME_TYPES.get(Path(path).suffix.lower(), 'application/octet-stream')
