"""Drag-to-reorder, shared by pointer drops and the keyboard move commands."""

from __future__ import annotations

import logging
from typing import Literal

from .models import Doodle, Group
from .navigation import NavigationIndex, NavigationItem
from .storage import GalleryStore

logger = logging.getLogger(__name__)

MoveKind = Literal["next", "previous", "end", "start"]


def move_element(items: list, from_index: int, to_index: int) -> None:
    """Pop ``items[from_index]`` and reinsert it where the target was."""
    element = items.pop(from_index)
    items.insert(to_index, element)


class DragReorderEngine:
    def __init__(self, store: GalleryStore) -> None:
        self.store = store

    def reorder(
        self,
        index: NavigationIndex,
        dragged_id: str,
        target_id: str,
        group_context: int | None = None,
    ) -> bool:
        """Move *dragged_id* onto *target_id*'s position.

        Returns False (and changes nothing) when the move is not allowed.
        """
        if dragged_id == target_id:
            return False
        dragged = index.get(dragged_id)
        target = index.get(target_id)
        if dragged is None or target is None or dragged.type != target.type:
            return False

        if dragged.type == "group":
            return self._move_group(dragged, target)
        if group_context is not None:
            return self._move_doodle(self.store.groups[group_context].items, dragged_id, target_id, save_groups=True)
        return self._move_doodle(self.store.doodles, dragged_id, target_id, save_groups=False)

    def _move_group(self, dragged: NavigationItem, target: NavigationItem) -> bool:
        groups: list[Group] = self.store.groups
        if dragged.group_index is None or target.group_index is None:
            return False
        move_element(groups, dragged.group_index, target.group_index)
        self.store.save_groups()
        logger.info("Moved group %d to %d", dragged.group_index, target.group_index)
        return True

    def _move_doodle(self, doodles: list[Doodle], dragged_id: str, target_id: str, *, save_groups: bool) -> bool:
        ids = [d.id for d in doodles]
        if dragged_id not in ids or target_id not in ids:
            return False
        from_index, to_index = ids.index(dragged_id), ids.index(target_id)
        move_element(doodles, from_index, to_index)
        if save_groups:
            self.store.save_groups()
        else:
            self.store.save_doodles()
        logger.info("Moved doodle %s from %d to %d", dragged_id, from_index, to_index)
        return True

    @staticmethod
    def move_target(index: NavigationIndex, item_id: str, kind: MoveKind) -> str | None:
        """Pick the drop target for a keyboard move among same-type items."""
        item = index.get(item_id)
        if item is None:
            return None
        peers = [p.id for p in index.of_type(item.type)]
        pos = peers.index(item_id)
        if kind == "next":
            target = pos + 1
        elif kind == "previous":
            target = pos - 1
        elif kind == "end":
            target = len(peers) - 1
        else:
            target = 0
        if not 0 <= target < len(peers) or target == pos:
            return None
        return peers[target]
