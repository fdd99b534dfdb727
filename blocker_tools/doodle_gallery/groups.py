"""Group and delete mutations over the GalleryStore.

Each method validates first, raising GalleryValidationError before any
state is touched, then mutates the collections and persists them.
Rebuilding the navigation index afterwards is the caller's job.
"""

from __future__ import annotations

import logging

from .errors import GalleryValidationError
from .models import DoodleType, Group, now_ms
from .navigation import GROUP_ID_PREFIX, parse_group_item_id
from .storage import GalleryStore

logger = logging.getLogger(__name__)


class GroupManager:
    def __init__(self, store: GalleryStore) -> None:
        self.store = store

    def group_at(self, group_index: int) -> Group:
        if not 0 <= group_index < len(self.store.groups):
            raise GalleryValidationError("That group no longer exists")
        return self.store.groups[group_index]

    def create_group(self, selected_ids: list[str], name: str = "") -> Group:
        if len(selected_ids) < 2:
            raise GalleryValidationError("Select at least 2 doodles to create a group")
        if any(i.startswith(GROUP_ID_PREFIX) for i in selected_ids):
            raise GalleryValidationError("Groups cannot contain other groups")

        items = []
        for doodle_id in selected_ids:
            doodle = self.store.find_doodle(doodle_id)
            if doodle is None:
                raise GalleryValidationError(f"Doodle {doodle_id} no longer exists")
            items.append(doodle.model_copy(deep=True))

        group = Group(
            name=name.strip() or f"Group {len(self.store.groups) + 1}",
            items=items,
            created=now_ms(),
        )
        self.store.groups.append(group)
        self.store.save_groups()
        logger.info("Created group %r with %d doodles", group.name, len(items))
        return group

    def ungroup(self, selected_ids: list[str]) -> list[Group]:
        """Remove the selected groups; their doodles become ungrouped."""
        indices = {
            gi for gi in (parse_group_item_id(i) for i in selected_ids)
            if gi is not None and gi < len(self.store.groups)
        }
        if not indices:
            raise GalleryValidationError("Select a group to ungroup")

        removed = [g for gi, g in enumerate(self.store.groups) if gi in indices]
        self.store.groups = [g for gi, g in enumerate(self.store.groups) if gi not in indices]
        self.store.save_groups()
        logger.info("Ungrouped %s", ", ".join(repr(g.name) for g in removed))
        return removed

    def resolve_doodle_ids(self, selected_ids: list[str]) -> list[str]:
        """Expand ``group-N`` ids into their member doodle ids."""
        resolved: list[str] = []
        for item_id in selected_ids:
            gi = parse_group_item_id(item_id)
            if gi is None:
                resolved.append(item_id)
            elif gi < len(self.store.groups):
                resolved.extend(d.id for d in self.store.groups[gi].items)
        return list(dict.fromkeys(resolved))

    def delete(self, selected_ids: list[str]) -> int:
        """Delete doodles (and the members of selected groups) everywhere.

        Returns the number of doodles removed.
        """
        if not selected_ids:
            raise GalleryValidationError("Nothing selected to delete")

        doomed = set(self.resolve_doodle_ids(selected_ids))
        before = len(self.store.doodles)
        self.store.doodles = [d for d in self.store.doodles if d.id not in doomed]
        for group in self.store.groups:
            group.items = [d for d in group.items if d.id not in doomed]
        emptied = [g.name for g in self.store.groups if not g.items]
        self.store.groups = [g for g in self.store.groups if g.items]

        self.store.save_doodles()
        self.store.save_groups()
        removed = before - len(self.store.doodles)
        logger.info("Deleted %d doodles", removed)
        if emptied:
            logger.info("Removed emptied groups: %s", ", ".join(emptied))
        return removed

    def rename(self, item_id: str, name: str) -> None:
        name = name.strip()
        if not name:
            raise GalleryValidationError("Name cannot be empty")

        gi = parse_group_item_id(item_id)
        if gi is not None:
            self.group_at(gi).name = name
            self.store.save_groups()
            logger.info("Renamed group %d to %r", gi, name)
            return

        doodle = self.store.find_doodle(item_id)
        if doodle is None:
            raise GalleryValidationError("That doodle no longer exists")
        doodle.name = name
        doodle.type = DoodleType.NAMED
        # Keep the denormalized copies in step.
        for group in self.store.groups:
            for snapshot in group.items:
                if snapshot.id == item_id:
                    snapshot.name = name
                    snapshot.type = DoodleType.NAMED
        self.store.save_doodles()
        self.store.save_groups()
        logger.info("Renamed doodle %s to %r", item_id, name)
