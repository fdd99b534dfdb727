"""Persistence for the gallery: a key-value contract plus the GalleryStore.

The key-value file is a single JSON object.  All writes go to a temporary
file first, then are renamed into place so a crash mid-write never
corrupts the real file.  Nothing here raises on bad data: malformed
content is logged and treated as empty.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol

from pydantic import ValidationError

from . import config
from .models import Doodle, DoodleType, Group, now_ms

logger = logging.getLogger(__name__)


def resolve_path(path: str | Path | None = None) -> Path:
    """Return an absolute Path, falling back to config.DATA_PATH."""
    p = Path(path) if path else config.DATA_PATH
    return p.expanduser().resolve()


# ── Key-value stores ─────────────────────────────────────────


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> bool: ...


class MemoryStore:
    """In-process store; values are JSON round-tripped like the real one."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = json.dumps(value)

    def get(self, key: str) -> Any:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> bool:
        self._data[key] = json.dumps(value)
        return True


class JsonFileStore:
    """Key-value pairs kept in one JSON file on disk."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = resolve_path(path)
        self._data: dict[str, Any] = self._read()

    def _read(self) -> dict[str, Any]:
        p = self.path
        if not p.exists():
            return {}
        try:
            size = p.stat().st_size
            if size > config.MAX_STORE_BYTES:
                logger.warning(
                    "Store file %s is %.1f MB, over the %.0f MB limit; ignoring it",
                    p, size / 1024 / 1024, config.MAX_STORE_BYTES / 1024 / 1024,
                )
                return {}
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read store file %s: %s", p, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file %s does not hold a JSON object; ignoring it", p)
            return {}
        return data

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> bool:
        self._data[key] = value
        try:
            self._write()
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to write %s to %s: %s", key, self.path, exc)
            return False
        return True

    def _write(self) -> None:
        p = self.path
        p.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(self._data, indent=2)

        # Write to temp file in the same directory, then replace atomically.
        fd, tmp = tempfile.mkstemp(dir=p.parent, suffix=".tmp", prefix=".gallery_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data + "\n")
            os.replace(tmp, p)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


# ── Gallery store ────────────────────────────────────────────


def _load_list(kv: KeyValueStore, key: str, model: type[Doodle] | type[Group]) -> list[Any]:
    raw = kv.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("Stored %s is %s, not a list; using an empty one", key, type(raw).__name__)
        return []
    items = []
    for i, entry in enumerate(raw):
        try:
            items.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Skipping malformed entry %d in %s: %s", i, key, exc.errors()[:1])
    return items


class GalleryStore:
    """Owns the doodle and group collections."""

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv
        self.doodles: list[Doodle] = []
        self.groups: list[Group] = []

    @classmethod
    def open(cls, path: str | Path | None = None) -> GalleryStore:
        store = cls(JsonFileStore(path))
        store.load()
        return store

    # ── load / save ──────────────────────────────────────────

    def load(self) -> None:
        self.doodles = _load_list(self.kv, config.STORAGE_KEYS["DOODLES"], Doodle)
        self.groups = _load_list(self.kv, config.STORAGE_KEYS["GROUPS"], Group)
        if self.reconcile():
            self.save_groups()

    def save_doodles(self) -> bool:
        return self.kv.set(
            config.STORAGE_KEYS["DOODLES"],
            [d.model_dump(mode="json", by_alias=True) for d in self.doodles],
        )

    def save_groups(self) -> bool:
        return self.kv.set(
            config.STORAGE_KEYS["GROUPS"],
            [g.model_dump(mode="json", by_alias=True) for g in self.groups],
        )

    def save(self) -> bool:
        ok_doodles = self.save_doodles()
        ok_groups = self.save_groups()
        return ok_doodles and ok_groups

    def reconcile(self) -> bool:
        """Drop group members that no longer exist and groups left empty.

        Returns True when anything was removed.
        """
        known = {d.id for d in self.doodles}
        changed = False
        for group in self.groups:
            kept = [d for d in group.items if d.id in known]
            if len(kept) != len(group.items):
                logger.warning(
                    "Group %r referenced %d missing doodles",
                    group.name, len(group.items) - len(kept),
                )
                group.items = kept
                changed = True
        before = len(self.groups)
        self.groups = [g for g in self.groups if g.items]
        if len(self.groups) != before:
            logger.warning("Pruned %d empty groups", before - len(self.groups))
            changed = True
        return changed

    # ── queries ──────────────────────────────────────────────

    def find_doodle(self, doodle_id: str) -> Doodle | None:
        for d in self.doodles:
            if d.id == doodle_id:
                return d
        return None

    def grouped_ids(self) -> set[str]:
        return {d.id for g in self.groups for d in g.items}

    def ungrouped_doodles(self) -> list[Doodle]:
        grouped = self.grouped_ids()
        return [d for d in self.doodles if d.id not in grouped]

    # ── drawing-tool hook ────────────────────────────────────

    def add_doodle(
        self,
        image_data: str,
        name: Optional[str] = None,
        doodle_type: DoodleType | None = None,
    ) -> Doodle:
        """Record a doodle produced by the drawing tool, newest first."""
        if doodle_type is None:
            doodle_type = DoodleType.NAMED if name else DoodleType.SAVED
        doodle = Doodle(image_data=image_data, name=name, type=doodle_type, timestamp=now_ms())
        self.doodles.insert(0, doodle)
        self.save_doodles()
        logger.info("Added doodle %s (%s)", doodle.id, doodle_type.value)
        return doodle
