"""Multi-select with numbered badges.

Selected ids keep their insertion order; an item's badge is its 1-based
position in that order, so removing one member renumbers the rest.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from .navigation import parse_group_item_id


class SelectionManager:
    def __init__(self) -> None:
        self._ids: list[str] = []

    def __len__(self) -> int:
        return len(self._ids)

    def __bool__(self) -> bool:
        return bool(self._ids)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def toggle(self, item_id: str) -> bool:
        """Flip *item_id*; returns True when it is now selected."""
        if item_id in self._ids:
            self._ids.remove(item_id)
            return False
        self._ids.append(item_id)
        return True

    def select_all(self, ids: Iterable[str]) -> None:
        self._ids = list(dict.fromkeys(ids))

    def clear(self) -> None:
        self._ids.clear()

    def replace(self, ids: Iterable[str]) -> None:
        self._ids = list(dict.fromkeys(ids))

    def retain(self, valid: Iterable[str]) -> list[str]:
        """Drop ids not in *valid*; returns the dropped ones."""
        keep = set(valid)
        dropped = [i for i in self._ids if i not in keep]
        self._ids = [i for i in self._ids if i in keep]
        return dropped

    # ── badges ───────────────────────────────────────────────

    def badge(self, item_id: str) -> int | None:
        try:
            return self._ids.index(item_id) + 1
        except ValueError:
            return None

    def badges(self) -> dict[str, int]:
        return {item_id: n for n, item_id in enumerate(self._ids, start=1)}

    # ── split by kind ────────────────────────────────────────

    def group_indices(self) -> list[int]:
        indices = []
        for item_id in self._ids:
            gi = parse_group_item_id(item_id)
            if gi is not None:
                indices.append(gi)
        return indices
