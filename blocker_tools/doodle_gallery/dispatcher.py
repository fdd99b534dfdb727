"""Keyboard command dispatch for the gallery.

Keys are checked against the current context, top to bottom:

1. a delete confirmation is pending: only y / n / escape / q
2. the single-doodle viewer is open: only escape / q
3. a name is being typed: text editing plus escape / enter
4. otherwise: the gallery command table

The dispatcher keeps no state of its own; everything lives on the
GalleryController.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from .controller import GalleryController
from .errors import GalleryError

logger = logging.getLogger(__name__)

KeyHandler = Callable[[str], bool]

CLOSE_KEYS = frozenset({"escape", "q"})

_KEY_ALIASES = {
    "dollar_sign": "$",
    "greater_than_sign": ">",
    "less_than_sign": "<",
    "question_mark": "?",
    "ctrl+h": "backspace",
}

SHORTCUTS: list[tuple[str, str]] = [
    ("h j k l / arrows", "Move focus"),
    ("tab / shift+tab", "Next / previous item"),
    ("0 / $", "First / last item"),
    ("space", "Toggle selection"),
    ("a", "Select all"),
    ("enter", "View doodle / open group"),
    ("g", "Group selected doodles"),
    ("u", "Ungroup selected groups"),
    ("b", "Back out of group"),
    ("d", "Delete selected"),
    ("r", "Rename focused item"),
    ("> / <", "Move item right / left"),
    ("m / M", "Move item to end / start"),
    ("c", "Copy doodle to clipboard"),
    ("s", "Save doodle as PNG"),
    ("escape / q", "Clear selection, leave group, close"),
    ("?", "This help"),
]


def normalize_key(key: str, character: str | None = None) -> str:
    """Map a terminal key event onto the names used by the command table.

    Printable characters win over key names so ``$``, ``>`` and ``M``
    arrive as themselves.
    """
    if character == " " or key == "space":
        return "space"
    if character and len(character) == 1 and character.isprintable():
        return character
    return _KEY_ALIASES.get(key, key)


class CommandDispatcher:
    def __init__(self, controller: GalleryController) -> None:
        self.controller = controller
        c = controller
        self._commands: dict[str, Callable[[], object]] = {
            "g": c.begin_group_draft,
            "a": c.select_all,
            "u": c.ungroup_selected,
            "d": c.delete_selected,
            "h": lambda: c.move("left"),
            "left": lambda: c.move("left"),
            "shift+tab": lambda: c.move("left"),
            "l": lambda: c.move("right"),
            "right": lambda: c.move("right"),
            "tab": lambda: c.move("right"),
            "j": lambda: c.move("down"),
            "down": lambda: c.move("down"),
            "k": lambda: c.move("up"),
            "up": lambda: c.move("up"),
            "0": c.jump_first,
            "home": c.jump_first,
            "$": c.jump_last,
            "end": c.jump_last,
            "space": c.toggle_focused,
            "enter": c.open_focused,
            ">": lambda: c.move_focused("next"),
            "<": lambda: c.move_focused("previous"),
            "m": lambda: c.move_focused("end"),
            "M": lambda: c.move_focused("start"),
            "r": c.begin_rename,
            "c": c.copy_focused,
            "s": c.export_focused,
            "?": lambda: c.view.show_shortcuts(),
        }

    def dispatch(self, key: str) -> bool:
        """Handle *key*; returns False when the key should pass through."""
        logger.debug("key %r", key)
        try:
            return self._dispatch(key)
        except GalleryError as exc:
            self.controller.view.alert(str(exc))
            return True

    def _dispatch(self, key: str) -> bool:
        c = self.controller

        if c.confirming:
            if key == "y":
                c.resolve_delete(True)
            elif key == "n" or key in CLOSE_KEYS:
                c.resolve_delete(False)
            return True

        if c.viewing:
            if key in CLOSE_KEYS:
                c.close_viewer()
            return True

        if c.typing:
            if key == "escape":
                c.cancel_draft()
            elif key == "enter":
                c.submit_draft()
            elif key == "backspace":
                c.draft_backspace()
            elif key == "space":
                c.draft_append(" ")
            elif len(key) == 1:
                c.draft_append(key)
            return True

        if key in CLOSE_KEYS:
            if c.selection:
                c.clear_selection()
                return True
            if c.inside_group:
                c.exit_group()
                return True
            return False

        if key == "b":
            if not c.inside_group:
                return False
            c.exit_group()
            return True

        command = self._commands.get(key)
        if command is None:
            return False
        command()
        return True


class KeyListeners:
    """Key handlers attached for the lifetime of an open modal.

    The newest handler sees each key first; a handler returning True
    stops propagation.
    """

    def __init__(self) -> None:
        self._handlers: list[KeyHandler] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def attach(self, handler: KeyHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def detach() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return detach

    @contextmanager
    def scoped(self, handler: KeyHandler) -> Iterator[None]:
        detach = self.attach(handler)
        try:
            yield
        finally:
            detach()

    def emit(self, key: str) -> bool:
        for handler in reversed(list(self._handlers)):
            if handler(key):
                return True
        return False
