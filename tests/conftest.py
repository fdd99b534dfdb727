import base64

import pytest

from blocker_tools.doodle_gallery.controller import GalleryController, NullView
from blocker_tools.doodle_gallery.models import Doodle, Group
from blocker_tools.doodle_gallery.storage import GalleryStore, MemoryStore

PNG_BYTES = b"\x89PNG\r\n\x1a\nnot-really-a-png"
PNG_DATA = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def build_store(ids=("A", "B", "C", "D", "E"), groups=()):
    """GalleryStore over a MemoryStore; *groups* is a list of (name, [ids])."""
    store = GalleryStore(MemoryStore())
    store.doodles = [
        Doodle(id=i, image_data=PNG_DATA, name=f"doodle {i}", timestamp=1_700_000_000_000 + n)
        for n, i in enumerate(ids)
    ]
    for name, members in groups:
        items = [store.find_doodle(m).model_copy(deep=True) for m in members]
        store.groups.append(Group(name=name, items=items))
    store.save()
    return store


class RecordingView(NullView):
    def __init__(self):
        self.renders = 0
        self.alerts = []
        self.notices = []
        self.confirms = []
        self.viewed = []
        self.closed = 0
        self.shortcuts = 0

    def render(self, controller):
        self.renders += 1

    def alert(self, message):
        self.alerts.append(message)

    def notify(self, message):
        self.notices.append(message)

    def confirm(self, message, on_decision):
        self.confirms.append((message, on_decision))

    def open_viewer(self, doodle):
        self.viewed.append(doodle.id)

    def close_viewer(self):
        self.closed += 1

    def show_shortcuts(self):
        self.shortcuts += 1


def assert_store_consistent(store):
    known = {d.id for d in store.doodles}
    for group in store.groups:
        assert group.items, f"group {group.name!r} is empty"
        assert all(d.id in known for d in group.items)


def index_ids(controller):
    return controller.index.ids()


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def store():
    return build_store()


@pytest.fixture
def controller(store, view, tmp_path):
    return GalleryController(store, view, export_dir=tmp_path / "exports")


@pytest.fixture
def make_controller(view, tmp_path):
    def _make(ids=("A", "B", "C", "D", "E"), groups=()):
        return GalleryController(build_store(ids, groups), view, export_dir=tmp_path / "exports")

    return _make
