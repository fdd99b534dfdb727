"""The gallery state machine.

GalleryController owns every piece of gallery state (group context,
navigation index, cursor, selection, pending prompts) and is the only
thing commands talk to.  Structural changes all go through the same
pipeline: mutate the store, persist, rebuild the index, resync cursor and
selection, recompute the layout, render.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Literal, Optional, Protocol

from . import config, export
from .errors import GalleryValidationError
from .groups import GroupManager
from .layout import GridLayout, compute_layout
from .models import Doodle, Group
from .navigation import (
    Cursor,
    Direction,
    NavigationIndex,
    NavigationItem,
    group_item_id,
    parse_group_item_id,
)
from .reorder import DragReorderEngine, MoveKind
from .selection import SelectionManager
from .storage import GalleryStore

logger = logging.getLogger(__name__)

# ("doodle", doodle id) or ("group", Group.id); survives index rebuilds.
StableKey = tuple[str, str]


class GalleryView(Protocol):
    """What the controller needs from whoever draws the gallery."""

    def render(self, controller: GalleryController) -> None: ...

    def alert(self, message: str) -> None: ...

    def notify(self, message: str) -> None: ...

    def confirm(self, message: str, on_decision: Callable[[bool], None]) -> None: ...

    def open_viewer(self, doodle: Doodle) -> None: ...

    def close_viewer(self) -> None: ...

    def show_shortcuts(self) -> None: ...


class NullView:
    """Headless view: logs alerts and leaves confirmations pending."""

    def render(self, controller: GalleryController) -> None:
        pass

    def alert(self, message: str) -> None:
        logger.warning("Alert: %s", message)

    def notify(self, message: str) -> None:
        logger.info("%s", message)

    def confirm(self, message: str, on_decision: Callable[[bool], None]) -> None:
        pass

    def open_viewer(self, doodle: Doodle) -> None:
        pass

    def close_viewer(self) -> None:
        pass

    def show_shortcuts(self) -> None:
        pass


@dataclass
class NameDraft:
    """Inline text entry for a new group name or a rename."""

    purpose: Literal["group", "rename"]
    text: str = ""
    target_id: Optional[str] = None


class GalleryController:
    def __init__(
        self,
        store: GalleryStore,
        view: GalleryView | None = None,
        *,
        export_dir: Path | None = None,
        viewport: tuple[int, int] = (80, 24),
    ) -> None:
        self.store = store
        self.view: GalleryView = view or NullView()
        self.export_dir = export_dir or config.EXPORT_DIR
        self.group_manager = GroupManager(store)
        self.reorderer = DragReorderEngine(store)

        self.group_context: int | None = None
        self.index = NavigationIndex()
        self.cursor = Cursor()
        self.selection = SelectionManager()
        self.viewport = viewport
        self.layout: GridLayout = compute_layout(*viewport, 0)

        self.pending_delete: list[str] | None = None
        self.viewer_id: str | None = None
        self.draft: NameDraft | None = None

        self._rebuild([], None)

    # ── state queries ────────────────────────────────────────

    @property
    def inside_group(self) -> bool:
        return self.group_context is not None

    @property
    def current_group(self) -> Group | None:
        if self.group_context is None:
            return None
        return self.store.groups[self.group_context]

    @property
    def confirming(self) -> bool:
        return self.pending_delete is not None

    @property
    def viewing(self) -> bool:
        return self.viewer_id is not None

    @property
    def typing(self) -> bool:
        return self.draft is not None

    @property
    def focused_item(self) -> NavigationItem | None:
        if 0 <= self.cursor.focus < len(self.index):
            return self.index[self.cursor.focus]
        return None

    def doodle(self, doodle_id: str) -> Doodle | None:
        found = self.store.find_doodle(doodle_id)
        if found is None and self.current_group is not None:
            for snapshot in self.current_group.items:
                if snapshot.id == doodle_id:
                    return snapshot
        return found

    # ── pipeline ─────────────────────────────────────────────

    def _stable_key(self, item_id: str) -> StableKey | None:
        gi = parse_group_item_id(item_id)
        if gi is None:
            return ("doodle", item_id)
        if gi < len(self.store.groups):
            return ("group", self.store.groups[gi].id)
        return None

    def _item_id(self, key: StableKey) -> str | None:
        kind, ident = key
        if kind == "doodle":
            return ident
        for gi, group in enumerate(self.store.groups):
            if group.id == ident:
                return group_item_id(gi)
        return None

    def _stable_selection(self) -> list[StableKey]:
        keys = (self._stable_key(i) for i in self.selection)
        return [k for k in keys if k is not None]

    def _commit(
        self,
        mutate: Callable[[], Any],
        *,
        clear_selection: bool = False,
        follow_id: str | None = None,
    ) -> Any:
        """Run *mutate* (which persists) then rebuild, resync and render."""
        stable = [] if clear_selection else self._stable_selection()
        follow = self._stable_key(follow_id) if follow_id else None
        context_group = self.current_group.id if self.current_group else None

        result = mutate()

        if context_group is not None:
            self.group_context = next(
                (gi for gi, g in enumerate(self.store.groups) if g.id == context_group),
                None,
            )
            if self.group_context is None:
                logger.info("Current group was removed; back at the root")
        if clear_selection:
            self.selection.clear()
        self._rebuild(stable, follow)
        return result

    def _rebuild(self, selection: list[StableKey], follow: StableKey | None) -> None:
        self.index = NavigationIndex.build(self.store, self.group_context)

        restored = [self._item_id(k) for k in selection]
        self.selection.replace(i for i in restored if i is not None)
        dropped = self.selection.retain(self.index.ids())
        if dropped:
            logger.debug("Dropped stale selection entries: %s", dropped)

        if follow is not None:
            follow_id = self._item_id(follow)
            pos = self.index.position(follow_id) if follow_id else -1
            if pos >= 0:
                self.cursor.focus = pos
        self.cursor.sync(len(self.index))
        logger.debug("Rebuilt index: %d items, focus %d", len(self.index), self.cursor.focus)

        self.layout = compute_layout(*self.viewport, len(self.index))
        self.view.render(self)

    def refresh(self) -> None:
        self._rebuild(self._stable_selection(), None)

    def open(self) -> None:
        """Reset ephemeral state for a fresh gallery session."""
        self.group_context = None
        self.selection.clear()
        self.pending_delete = None
        self.viewer_id = None
        self.draft = None
        self.cursor.focus = 0
        self._rebuild([], None)

    def resize(self, width: int, height: int) -> None:
        self.viewport = (width, height)
        self.layout = compute_layout(width, height, len(self.index))
        self.view.render(self)

    # ── navigation ───────────────────────────────────────────

    def move(self, direction: Direction) -> None:
        self.cursor.move(direction, self.layout.items_per_row, len(self.index))
        self.view.render(self)

    def jump_first(self) -> None:
        self.cursor.jump_first(len(self.index))
        self.view.render(self)

    def jump_last(self) -> None:
        self.cursor.jump_last(len(self.index))
        self.view.render(self)

    def focus_item(self, item_id: str) -> None:
        pos = self.index.position(item_id)
        if pos >= 0:
            self.cursor.focus = pos
            self.view.render(self)

    # ── selection ────────────────────────────────────────────

    def toggle_focused(self) -> None:
        item = self.focused_item
        if item is None:
            return
        self.selection.toggle(item.id)
        self.view.render(self)

    def toggle(self, item_id: str) -> None:
        if self.index.position(item_id) < 0:
            return
        self.selection.toggle(item_id)
        self.view.render(self)

    def select_all(self) -> None:
        self.selection.select_all(self.index.ids())
        self.view.render(self)

    def clear_selection(self) -> None:
        self.selection.clear()
        self.view.render(self)

    # ── groups ───────────────────────────────────────────────

    def create_group_from_selection(self, name: str = "") -> Group:
        ids = self.selection.ids
        return self._commit(lambda: self.group_manager.create_group(ids, name), clear_selection=True)

    def ungroup_selected(self) -> list[Group]:
        ids = self.selection.ids
        return self._commit(lambda: self.group_manager.ungroup(ids), clear_selection=True)

    def enter_group(self, group_index: int) -> None:
        group = self.group_manager.group_at(group_index)
        previous = self.focused_item
        self.group_context = group_index
        self.selection.clear()
        if previous is None or previous.type != "doodle":
            self.cursor.focus = 0
        logger.debug("Entered group %r", group.name)
        self._rebuild([], None)

    def exit_group(self) -> None:
        if self.group_context is None:
            return
        left = self.current_group
        self.group_context = None
        self.selection.clear()
        follow = ("group", left.id) if left is not None else None
        logger.debug("Left group %r", left.name if left else None)
        self._rebuild([], follow)

    def rename_item(self, item_id: str, name: str) -> None:
        self._commit(lambda: self.group_manager.rename(item_id, name))

    # ── delete (confirmed) ───────────────────────────────────

    def delete_selected(self) -> None:
        """Ask for confirmation; resolve_delete() does the work."""
        if not self.selection:
            raise GalleryValidationError("Nothing selected to delete")
        self.pending_delete = self.selection.ids
        count = len(self.pending_delete)
        noun = "item" if count == 1 else "items"
        self.view.confirm(f"Delete {count} selected {noun}?", self.resolve_delete)
        self.view.render(self)

    def resolve_delete(self, confirmed: bool) -> int:
        ids, self.pending_delete = self.pending_delete, None
        if ids is None:
            return 0
        if not confirmed:
            logger.debug("Delete cancelled")
            self.view.render(self)
            return 0
        return self._commit(lambda: self.group_manager.delete(ids), clear_selection=True)

    # ── reorder ──────────────────────────────────────────────

    def reorder(self, dragged_id: str, target_id: str, *, follow: bool = False) -> bool:
        stable = self._stable_selection()
        follow_key = self._stable_key(dragged_id) if follow else None
        moved = self.reorderer.reorder(self.index, dragged_id, target_id, self.group_context)
        if moved:
            self._rebuild(stable, follow_key)
        return moved

    def move_focused(self, kind: MoveKind) -> bool:
        item = self.focused_item
        if item is None:
            return False
        target = self.reorderer.move_target(self.index, item.id, kind)
        if target is None:
            return False
        return self.reorder(item.id, target, follow=True)

    # ── open / view ──────────────────────────────────────────

    def open_focused(self) -> None:
        item = self.focused_item
        if item is None:
            return
        if item.type == "group" and item.group_index is not None:
            self.enter_group(item.group_index)
        else:
            self.open_viewer(item.id)

    def open_viewer(self, doodle_id: str) -> None:
        doodle = self.doodle(doodle_id)
        if doodle is None:
            return
        self.viewer_id = doodle_id
        self.view.open_viewer(doodle)

    def close_viewer(self) -> None:
        if self.viewer_id is None:
            return
        self.viewer_id = None
        self.view.close_viewer()
        self.view.render(self)

    # ── name drafts ──────────────────────────────────────────

    def begin_group_draft(self) -> None:
        if len(self.selection) < 2:
            raise GalleryValidationError("Select at least 2 doodles to create a group")
        if self.selection.group_indices():
            raise GalleryValidationError("Groups cannot contain other groups")
        self.draft = NameDraft("group")
        self.view.render(self)

    def begin_rename(self) -> None:
        item = self.focused_item
        if item is None:
            raise GalleryValidationError("Nothing to rename")
        if item.type == "group":
            current = self.store.groups[item.group_index].name if item.group_index is not None else ""
        else:
            doodle = self.doodle(item.id)
            current = (doodle.name or "") if doodle else ""
        self.draft = NameDraft("rename", text=current, target_id=item.id)
        self.view.render(self)

    def draft_append(self, text: str) -> None:
        if self.draft is not None:
            self.draft.text += text
            self.view.render(self)

    def draft_backspace(self) -> None:
        if self.draft is not None:
            self.draft.text = self.draft.text[:-1]
            self.view.render(self)

    def cancel_draft(self) -> None:
        self.draft = None
        self.view.render(self)

    def submit_draft(self) -> None:
        draft, self.draft = self.draft, None
        if draft is None:
            return
        if draft.purpose == "group":
            self.create_group_from_selection(draft.text)
        elif draft.target_id is not None:
            self.rename_item(draft.target_id, draft.text)

    # ── clipboard / export ───────────────────────────────────

    def _focused_doodle(self, verb: str) -> Doodle:
        item = self.focused_item
        doodle = self.doodle(item.id) if item is not None and item.type == "doodle" else None
        if doodle is None:
            raise GalleryValidationError(f"Focus a doodle to {verb} it")
        return doodle

    def copy_focused(self) -> None:
        doodle = self._focused_doodle("copy")
        export.copy_to_clipboard(doodle)
        self.view.notify("Copied to clipboard")

    def export_focused(self) -> Path:
        doodle = self._focused_doodle("save")
        dest = export.export_doodle(doodle, self.export_dir)
        self.view.notify(f"Saved {dest.name}")
        return dest
