"""Doodle Gallery — Textual TUI application.

Launch with:  python -m blocker_tools.doodle_gallery
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Callable

from rich.markup import escape
from textual import events, on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.screen import ModalScreen, Screen
from textual.widgets import Button, DataTable, Header, Label, Static

from . import config
from .controller import GalleryController
from .dispatcher import CLOSE_KEYS, SHORTCUTS, CommandDispatcher, KeyListeners, normalize_key
from .models import Doodle, format_timestamp
from .navigation import NavigationItem
from .storage import GalleryStore

logger = logging.getLogger(__name__)

# ── Utility ──────────────────────────────────────────────────


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: max(0, limit - 1)] + "…"


# ── Confirm Delete Modal ─────────────────────────────────────


class ConfirmDeleteModal(ModalScreen[bool]):
    """Yes / no prompt before anything is deleted."""

    BINDINGS = [
        Binding("y", "answer(True)", "Yes"),
        Binding("n", "answer(False)", "No"),
        Binding("escape", "answer(False)", "Cancel", show=False),
        Binding("q", "answer(False)", "Cancel", show=False),
    ]

    def __init__(self, message: str, **kw: Any) -> None:
        super().__init__(**kw)
        self._prompt = message

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            yield Label(self._prompt, id="modal-title")
            yield Label("Press Y to confirm, N to cancel", classes="muted")
            with Horizontal(id="modal-buttons"):
                yield Button("No", id="btn-no")
                yield Button("Yes", variant="error", id="btn-yes")

    @on(Button.Pressed, "#btn-yes")
    def _on_yes(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#btn-no")
    def _on_no(self) -> None:
        self.dismiss(False)

    def action_answer(self, answer: bool) -> None:
        self.dismiss(answer)


# ── Doodle View Modal ────────────────────────────────────────


class DoodleViewModal(ModalScreen[None]):
    """Details of a single doodle; closing returns to the gallery."""

    BINDINGS = [
        Binding("escape", "close_modal", "Back"),
        Binding("q", "close_modal", "Back", show=False),
    ]

    def __init__(self, doodle: Doodle, **kw: Any) -> None:
        super().__init__(**kw)
        self._doodle = doodle

    def compose(self) -> ComposeResult:
        d = self._doodle
        size_kb = len(d.image_data) * 3 / 4 / 1024
        with Vertical(id="modal-dialog"):
            yield Label(escape(d.label), id="modal-title")
            yield Static(
                f"[b]Saved:[/b] {format_timestamp(d.timestamp)}\n"
                f"[b]Type:[/b] {d.type.value}\n"
                f"[b]Image:[/b] {size_kb:.1f} KB\n"
                f"[b]Id:[/b] {d.id}",
                markup=True,
            )
            yield Button("Back [Esc]", id="btn-close")

    @on(Button.Pressed, "#btn-close")
    def _on_close(self) -> None:
        self.dismiss(None)

    def action_close_modal(self) -> None:
        self.dismiss(None)


# ── Shortcuts Modal ──────────────────────────────────────────


class ShortcutsModal(ModalScreen[None]):
    BINDINGS = [
        Binding("escape", "close_modal", "Close"),
        Binding("q", "close_modal", "Close", show=False),
        Binding("question_mark", "close_modal", "Close", show=False),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            yield Label("Gallery Shortcuts", id="modal-title")
            yield DataTable(id="shortcut-table", show_cursor=False)

    def on_mount(self) -> None:
        table = self.query_one("#shortcut-table", DataTable)
        table.add_columns("Key", "Action")
        for key, action in SHORTCUTS:
            table.add_row(key, action)

    def action_close_modal(self) -> None:
        self.dismiss(None)


# ── Tiles ────────────────────────────────────────────────────


class Tile(Static):
    """One grid cell: a doodle thumbnail card or a group preview."""

    class Grabbed(Message):
        def __init__(self, item_id: str) -> None:
            super().__init__()
            self.item_id = item_id

    class Released(Message):
        def __init__(self, item_id: str) -> None:
            super().__init__()
            self.item_id = item_id

    def __init__(self, item: NavigationItem, **kw: Any) -> None:
        super().__init__(**kw)
        self.item_id = item.id

    def on_mouse_down(self) -> None:
        self.post_message(self.Grabbed(self.item_id))

    def on_mouse_up(self) -> None:
        self.post_message(self.Released(self.item_id))


class TileGrid(VerticalScroll, can_focus=False):
    """Scrolling column of tile rows; keys belong to the screen."""


def _tile_text(controller: GalleryController, item: NavigationItem, width: int, badges: dict[str, int]) -> str:
    badge = badges.get(item.id)
    mark = f"[reverse] {badge} [/reverse] " if badge else ""
    inner = max(4, width - 4)
    if item.type == "group" and item.group_index is not None:
        group = controller.store.groups[item.group_index]
        return (
            f"{mark}[b]▣ {escape(_truncate(group.name, inner))}[/b]\n"
            f"{group.item_count} doodles"
        )
    doodle = controller.doodle(item.id)
    if doodle is None:
        return mark + escape(item.id)
    return f"{mark}✎ {escape(_truncate(doodle.label, inner))}\n[dim]{doodle.type.value}[/dim]"


# ── Gallery Screen ───────────────────────────────────────────


class GalleryScreen(Screen[None]):
    """The gallery modal: tiles, status line and inline name prompt."""

    AUTO_FOCUS = None

    def __init__(self, controller: GalleryController, listeners: KeyListeners, **kw: Any) -> None:
        super().__init__(**kw)
        self.controller = controller
        self.listeners = listeners
        self.dispatcher = CommandDispatcher(controller)
        # Holds the key listener for as long as the screen is mounted.
        self._key_scope = ExitStack()
        self._tile_widgets: dict[str, Tile] = {}
        self._grid_key: tuple[tuple[str, ...], int, int] | None = None
        self._drag_source: str | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label("", id="gallery-status")
        yield Label("", id="draft-prompt")
        yield TileGrid(id="grid")
        yield Label("? shortcuts  ·  q close", id="gallery-hint", classes="muted")

    def on_mount(self) -> None:
        self._key_scope.enter_context(self.listeners.scoped(self.dispatcher.dispatch))
        self.controller.view = ScreenView(self)
        self.controller.open()

    def on_unmount(self) -> None:
        self._key_scope.close()

    def on_resize(self) -> None:
        grid = self.query_one("#grid", TileGrid)
        self.controller.resize(grid.size.width, grid.size.height * config.CELL_ASPECT)

    def on_key(self, event: events.Key) -> None:
        key = normalize_key(event.key, event.character)
        if self.listeners.emit(key):
            event.stop()
            event.prevent_default()
        elif key in CLOSE_KEYS:
            event.stop()
            self.dismiss(None)

    # ── pointer ──────────────────────────────────────────────

    @on(Tile.Grabbed)
    def _on_grab(self, message: Tile.Grabbed) -> None:
        self._drag_source = message.item_id

    @on(Tile.Released)
    def _on_release(self, message: Tile.Released) -> None:
        source, self._drag_source = self._drag_source, None
        if source is None or self.controller.confirming or self.controller.typing:
            return
        if source == message.item_id:
            self.controller.focus_item(message.item_id)
            self.controller.toggle(message.item_id)
        else:
            self.controller.reorder(source, message.item_id)

    # ── GalleryView ──────────────────────────────────────────

    def render_gallery(self) -> None:
        c = self.controller
        layout = c.layout
        tile_w = layout.item_size
        tile_h = max(3, layout.item_size // config.CELL_ASPECT)
        grid = self.query_one("#grid", TileGrid)

        key = (tuple(c.index.ids()), layout.items_per_row, layout.item_size)
        if key != self._grid_key:
            self._grid_key = key
            grid.remove_children()
            self._tile_widgets = {}
            rows = []
            items = list(c.index)
            for start in range(0, len(items), layout.items_per_row):
                tiles = []
                for item in items[start : start + layout.items_per_row]:
                    tile = Tile(item, classes=f"tile tile-{item.type}")
                    tile.styles.width = tile_w
                    tile.styles.height = tile_h
                    self._tile_widgets[item.id] = tile
                    tiles.append(tile)
                rows.append(Horizontal(*tiles, classes="tile-row"))
            if rows:
                grid.mount_all(rows)
            else:
                grid.mount(Label("No doodles yet. Save one from the drawing tool.", classes="muted"))

        focused = c.focused_item
        badges = c.selection.badges()
        for item in c.index:
            tile = self._tile_widgets.get(item.id)
            if tile is None:
                continue
            tile.update(_tile_text(c, item, tile_w, badges))
            tile.set_class(item.id in c.selection, "-selected")
            tile.set_class(focused is not None and item.id == focused.id, "-focused")
        if focused is not None and focused.id in self._tile_widgets:
            self.call_after_refresh(grid.scroll_to_widget, self._tile_widgets[focused.id], animate=False)

        self._render_status()

    def _render_status(self) -> None:
        c = self.controller
        where = f"▣ {escape(c.current_group.name)}" if c.current_group else "All doodles"
        parts = [where, f"{len(c.index)} items"]
        if c.selection:
            parts.append(f"{len(c.selection)} selected")
        self.query_one("#gallery-status", Label).update("  ·  ".join(parts))

        prompt = self.query_one("#draft-prompt", Label)
        if c.draft is not None:
            title = "Group name" if c.draft.purpose == "group" else "Rename to"
            prompt.update(f"{title}: {escape(c.draft.text)}▏  (enter to save, esc to cancel)")
            prompt.display = True
        else:
            prompt.display = False

    # ── modal helpers ────────────────────────────────────────

    def push_confirm(self, message: str, on_decision: Callable[[bool], None]) -> None:
        self.app.push_screen(
            ConfirmDeleteModal(message),
            callback=lambda answer: on_decision(bool(answer)),
        )

    def push_viewer(self, doodle: Doodle) -> None:
        self.app.push_screen(
            DoodleViewModal(doodle),
            callback=lambda _: self.controller.close_viewer(),
        )

    def pop_viewer(self) -> None:
        if isinstance(self.app.screen, DoodleViewModal):
            self.app.pop_screen()


class ScreenView:
    """GalleryView backed by a mounted GalleryScreen."""

    def __init__(self, screen: GalleryScreen) -> None:
        self.screen = screen

    def render(self, controller: GalleryController) -> None:
        if self.screen.is_attached:
            self.screen.render_gallery()

    def alert(self, message: str) -> None:
        self.screen.app.notify(message, severity="error")

    def notify(self, message: str) -> None:
        self.screen.app.notify(message)

    def confirm(self, message: str, on_decision: Callable[[bool], None]) -> None:
        self.screen.push_confirm(message, on_decision)

    def open_viewer(self, doodle: Doodle) -> None:
        self.screen.push_viewer(doodle)

    def close_viewer(self) -> None:
        self.screen.pop_viewer()

    def show_shortcuts(self) -> None:
        self.screen.app.push_screen(ShortcutsModal())


# ── Main App ─────────────────────────────────────────────────


class GalleryApp(App[None]):
    """Keyboard-driven doodle gallery."""

    TITLE = "Doodle Gallery"
    SUB_TITLE = "Site Blocker"

    CSS = """
    #gallery-status {
        height: 1;
        padding: 0 1;
        text-style: bold;
    }

    #draft-prompt {
        height: 1;
        padding: 0 1;
        background: $boost;
    }

    #grid {
        height: 1fr;
        padding: 1 1;
    }

    .tile-row {
        height: auto;
        margin-bottom: 1;
    }

    .tile {
        margin-right: 1;
        padding: 0 1;
        border: round $primary-darken-2;
    }

    .tile-group {
        border: double $secondary;
    }

    .tile.-selected {
        background: $primary 30%;
    }

    .tile.-focused {
        border: heavy $accent;
    }

    .muted {
        color: $text-muted;
    }

    #gallery-hint {
        height: 1;
        padding: 0 1;
    }

    /* ── modals ──────────────────────────────── */
    #modal-dialog {
        width: 60%;
        max-width: 80;
        height: auto;
        max-height: 90%;
        padding: 1 2;
        border: thick $primary;
        background: $surface;
    }

    #modal-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #modal-buttons {
        margin-top: 1;
        height: 3;
    }

    #shortcut-table {
        height: auto;
        max-height: 24;
    }
    """

    def __init__(
        self,
        data_path: str | Path | None = None,
        *,
        store: GalleryStore | None = None,
        export_dir: Path | None = None,
        **kw: Any,
    ) -> None:
        super().__init__(**kw)
        self.store = store if store is not None else GalleryStore.open(data_path)
        self.listeners = KeyListeners()
        self.controller = GalleryController(self.store, export_dir=export_dir)

    def on_mount(self) -> None:
        self.push_screen(
            GalleryScreen(self.controller, self.listeners),
            callback=lambda _: self.exit(),
        )
