"""Getting a doodle out of the gallery: clipboard copy and PNG export."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from pathlib import Path

import pyperclip
from caseconverter import snakecase

from .errors import GalleryError
from .models import Doodle

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<b64>;base64)?,(?P<payload>.*)$", re.DOTALL)


def decode_image_data(image_data: str) -> bytes:
    """Return the raw bytes behind a ``data:`` URL (or bare base64)."""
    m = _DATA_URL_RE.match(image_data.strip())
    payload = m.group("payload") if m else image_data.strip()
    if m and not m.group("b64"):
        raise GalleryError("Only base64 image data can be exported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise GalleryError(f"Image data is not valid base64: {exc}") from exc


def encode_image_file(path: Path) -> str:
    """Read an image file into a PNG data URL."""
    payload = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:image/png;base64,{payload}"


def export_filename(doodle: Doodle) -> str:
    """Filename-safe snake_case stem from the doodle's name or timestamp."""
    if doodle.name:
        cleaned = re.sub(r"\s+", " ", doodle.name).strip()
        cleaned = re.sub(r"[^\w\s-]", "", cleaned)
        stem = snakecase(cleaned)
        if stem:
            return f"{stem}.png"
    return f"doodle_{doodle.timestamp}.png"


def export_doodle(doodle: Doodle, directory: Path) -> Path:
    """Write *doodle* as a PNG into *directory*, never overwriting."""
    data = decode_image_data(doodle.image_data)
    stem = Path(export_filename(doodle)).stem
    dest = directory / f"{stem}.png"
    n = 1
    try:
        directory.mkdir(parents=True, exist_ok=True)
        while dest.exists():
            dest = directory / f"{stem}_{n}.png"
            n += 1
        dest.write_bytes(data)
    except OSError as exc:
        logger.error("Export of %s to %s failed: %s", doodle.id, directory, exc)
        raise GalleryError(f"Could not save: {exc}") from exc
    logger.info("Exported doodle %s to %s", doodle.id, dest)
    return dest


def copy_to_clipboard(doodle: Doodle) -> None:
    try:
        pyperclip.copy(doodle.image_data)
    except pyperclip.PyperclipException as exc:
        logger.error("Clipboard copy failed: %s", exc)
        raise GalleryError(f"Clipboard unavailable: {exc}") from exc
