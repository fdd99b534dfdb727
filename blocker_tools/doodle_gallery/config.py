"""Configuration settings for the doodle gallery.

Values come from the environment (optionally a ``.env`` file in the
working directory); command-line flags override them in ``__main__``.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ────────────────────────────────────────────────────

_DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "site-blocker"

DATA_PATH = Path(
    os.getenv("DOODLE_GALLERY_PATH", str(_DEFAULT_DATA_DIR / "gallery.json"))
).expanduser()
EXPORT_DIR = Path(
    os.getenv("DOODLE_GALLERY_EXPORT_DIR", str(Path.home() / "Pictures" / "doodles"))
).expanduser()

# ── Logging ──────────────────────────────────────────────────
# The TUI owns the terminal, so logs go to a file.

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = Path(
    os.getenv("DOODLE_GALLERY_LOG_FILE", str(_DEFAULT_DATA_DIR / "gallery.log"))
).expanduser()

# ── Storage ──────────────────────────────────────────────────

STORAGE_KEYS = {
    "DOODLES": "site-blocker:doodles",
    "GROUPS": "site-blocker:doodle-groups",
}

# Refuse to parse store files larger than this; treated as malformed.
MAX_STORE_BYTES = 64 * 1024 * 1024

# ── Grid layout (terminal cells) ─────────────────────────────

GRID_PADDING = 1
GRID_GAP = 1
MIN_ITEM_SIZE = 12
MAX_ITEM_SIZE = 30
# Terminal cells are roughly twice as tall as they are wide.
CELL_ASPECT = 2
