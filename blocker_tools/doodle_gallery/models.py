"""Pydantic models for the doodle gallery.

Schema for the two JSON arrays persisted in the key-value store
(``site-blocker:doodles`` and ``site-blocker:doodle-groups``).
"""

from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def now_ms() -> int:
    """Epoch milliseconds, the timestamp unit used by the drawing tool."""
    return int(time.time() * 1000)


def format_timestamp(ms: int) -> str:
    """Local ``YYYY-MM-DD HH:MM`` for epoch ms, or the raw number when out of range."""
    try:
        return time.strftime("%Y-%m-%d %H:%M", time.localtime(ms / 1000))
    except (OverflowError, OSError, ValueError):
        return str(ms)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class DoodleType(str, Enum):
    """How the doodle left the drawing tool."""

    SAVED = "saved"
    CLIPBOARDED = "clipboarded"
    NAMED = "named"


class Doodle(BaseModel):
    """A single saved drawing."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: new_id("doodle"))
    image_data: str = Field(default="", alias="imageData")
    timestamp: int = Field(default_factory=now_ms)
    name: Optional[str] = None
    type: DoodleType = DoodleType.SAVED

    @property
    def label(self) -> str:
        """Display name: the explicit name, else the save time."""
        if self.name:
            return self.name
        return format_timestamp(self.timestamp)


class Group(BaseModel):
    """A named, ordered collection of doodle snapshots."""

    id: str = Field(default_factory=lambda: new_id("grp"))
    name: str = ""
    items: list[Doodle] = Field(default_factory=list)
    created: int = Field(default_factory=now_ms)

    # ── helpers ────────────────────────────────────────────────
    @property
    def item_count(self) -> int:
        return len(self.items)
