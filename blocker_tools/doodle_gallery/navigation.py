"""Navigation index and cursor.

The index is the flat, ordered list the cursor walks: every group tile
first, then every doodle that belongs to no group.  Inside a group it is
just that group's doodles.  It is rebuilt from scratch after each
mutation and never patched in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Literal, Optional

from .storage import GalleryStore

ItemType = Literal["doodle", "group"]
Direction = Literal["left", "right", "up", "down"]

GROUP_ID_PREFIX = "group-"


def group_item_id(group_index: int) -> str:
    return f"{GROUP_ID_PREFIX}{group_index}"


def parse_group_item_id(item_id: str) -> int | None:
    """Return N for ``group-N`` ids, else None."""
    if not item_id.startswith(GROUP_ID_PREFIX):
        return None
    suffix = item_id[len(GROUP_ID_PREFIX):]
    return int(suffix) if suffix.isdigit() else None


@dataclass(frozen=True)
class NavigationItem:
    type: ItemType
    id: str
    index: int
    group_index: Optional[int] = None
    name: str = ""


class NavigationIndex:
    def __init__(self, items: list[NavigationItem] | None = None) -> None:
        self._items = items or []

    @classmethod
    def build(cls, store: GalleryStore, group_context: int | None = None) -> NavigationIndex:
        items: list[NavigationItem] = []
        if group_context is not None:
            group = store.groups[group_context]
            for d in group.items:
                items.append(NavigationItem("doodle", d.id, len(items), name=d.label))
            return cls(items)

        for gi, group in enumerate(store.groups):
            items.append(
                NavigationItem("group", group_item_id(gi), len(items), group_index=gi, name=group.name)
            )
        for d in store.ungrouped_doodles():
            items.append(NavigationItem("doodle", d.id, len(items), name=d.label))
        return cls(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[NavigationItem]:
        return iter(self._items)

    def __getitem__(self, i: int) -> NavigationItem:
        return self._items[i]

    def ids(self) -> list[str]:
        return [item.id for item in self._items]

    def position(self, item_id: str) -> int:
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        return -1

    def get(self, item_id: str) -> NavigationItem | None:
        i = self.position(item_id)
        return self._items[i] if i >= 0 else None

    def of_type(self, item_type: ItemType) -> list[NavigationItem]:
        return [item for item in self._items if item.type == item_type]


class Cursor:
    """Focus position in a NavigationIndex, moved as a row-major matrix."""

    def __init__(self, focus: int = -1) -> None:
        self.focus = focus

    def sync(self, total: int) -> int:
        """Clamp focus into ``[0, total-1]`` (or -1 for an empty index)."""
        if total <= 0:
            self.focus = -1
        else:
            self.focus = min(max(self.focus, 0), total - 1)
        return self.focus

    def jump_first(self, total: int) -> None:
        if total > 0:
            self.focus = 0

    def jump_last(self, total: int) -> None:
        if total > 0:
            self.focus = total - 1

    def move(self, direction: Direction, items_per_row: int, total: int) -> int:
        if total <= 0:
            return self.focus
        per_row = max(1, items_per_row)
        focus = min(max(self.focus, 0), total - 1)
        row, col = divmod(focus, per_row)

        if direction == "right":
            col += 1
            if col == per_row:
                row, col = row + 1, 0
            new_index = row * per_row + col
        elif direction == "left":
            col -= 1
            if col < 0:
                row, col = row - 1, per_row - 1
            new_index = row * per_row + col
        elif direction == "down":
            new_index = (row + 1) * per_row + col
            if new_index >= total:
                # Ragged last row: stay in this column on the last row, or
                # fall back to the last item when that column is empty.
                last_row = (total - 1) // per_row
                new_index = min(last_row * per_row + col, total - 1)
        elif direction == "up":
            new_index = (row - 1) * per_row + col
        else:
            raise ValueError(f"unknown direction: {direction!r}")

        if new_index < 0:
            new_index = total - 1
        elif new_index >= total:
            new_index = 0
        self.focus = new_index
        return new_index
