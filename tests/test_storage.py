import json
import logging

from blocker_tools.doodle_gallery import config
from blocker_tools.doodle_gallery.controller import GalleryController
from blocker_tools.doodle_gallery.models import Doodle, DoodleType
from blocker_tools.doodle_gallery.storage import (
    GalleryStore,
    JsonFileStore,
    MemoryStore,
)

from conftest import PNG_DATA, build_store

DOODLES = config.STORAGE_KEYS["DOODLES"]
GROUPS = config.STORAGE_KEYS["GROUPS"]


def write_store(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


# ── file store ───────────────────────────────────────────────


def test_round_trip_through_file(tmp_path):
    path = tmp_path / "gallery.json"
    store = GalleryStore.open(path)
    assert store.doodles == [] and store.groups == []

    doodle = store.add_doodle(PNG_DATA, name="cat")
    store.doodles.append(Doodle(id="B", image_data=PNG_DATA, timestamp=5))
    store.save_doodles()

    reopened = GalleryStore.open(path)
    assert [d.id for d in reopened.doodles] == [doodle.id, "B"]
    assert reopened.doodles[0].type is DoodleType.NAMED
    assert reopened.doodles[1].type is DoodleType.SAVED

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw[DOODLES][0]["imageData"] == PNG_DATA
    assert "image_data" not in raw[DOODLES][0]


def test_other_keys_survive_writes(tmp_path):
    path = tmp_path / "gallery.json"
    write_store(path, {"site-blocker:settings": {"theme": "dark"}})
    store = GalleryStore.open(path)
    store.add_doodle(PNG_DATA)
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["site-blocker:settings"] == {"theme": "dark"}
    assert len(raw[DOODLES]) == 1


def test_no_temp_files_left_behind(tmp_path):
    path = tmp_path / "gallery.json"
    GalleryStore.open(path).add_doodle(PNG_DATA)
    assert [p.name for p in tmp_path.iterdir()] == ["gallery.json"]


def test_malformed_json_loads_empty(tmp_path, caplog):
    path = tmp_path / "gallery.json"
    path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING):
        store = GalleryStore.open(path)
    assert store.doodles == []
    assert "Could not read store file" in caplog.text


def test_non_object_file_loads_empty(tmp_path, caplog):
    path = tmp_path / "gallery.json"
    write_store(path, [1, 2, 3])
    with caplog.at_level(logging.WARNING):
        store = GalleryStore.open(path)
    assert store.groups == []
    assert "does not hold a JSON object" in caplog.text


def test_oversized_file_is_ignored(tmp_path, monkeypatch, caplog):
    path = tmp_path / "gallery.json"
    write_store(path, {DOODLES: [{"id": "A", "imageData": PNG_DATA, "timestamp": 1}]})
    monkeypatch.setattr(config, "MAX_STORE_BYTES", 10)
    with caplog.at_level(logging.WARNING):
        store = GalleryStore.open(path)
    assert store.doodles == []
    assert "over the" in caplog.text


def test_write_failure_is_reported_not_raised(tmp_path, caplog):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    kv = JsonFileStore(blocker / "gallery.json")
    with caplog.at_level(logging.ERROR):
        assert kv.set(DOODLES, []) is False
    assert "Failed to write" in caplog.text


# ── loading and validation ───────────────────────────────────


def test_non_list_value_loads_empty(caplog):
    kv = MemoryStore({DOODLES: {"id": "A"}, GROUPS: "nope"})
    store = GalleryStore(kv)
    with caplog.at_level(logging.WARNING):
        store.load()
    assert store.doodles == [] and store.groups == []
    assert "not a list" in caplog.text


def test_invalid_entries_are_skipped(caplog):
    kv = MemoryStore({
        DOODLES: [
            {"id": "A", "imageData": PNG_DATA, "timestamp": 1},
            {"id": "B", "imageData": PNG_DATA, "timestamp": "yesterday"},
            {"id": "C", "imageData": PNG_DATA, "timestamp": 3, "type": "clipboarded"},
        ],
    })
    store = GalleryStore(kv)
    with caplog.at_level(logging.WARNING):
        store.load()
    assert [d.id for d in store.doodles] == ["A", "C"]
    assert store.doodles[1].type is DoodleType.CLIPBOARDED
    assert "Skipping malformed entry 1" in caplog.text


def test_reconcile_prunes_dangling_members_on_load(caplog):
    source = build_store(ids=("A", "B", "C"), groups=[("Pets", ["A", "B"]), ("Gone", ["C"])])
    source.doodles = [d for d in source.doodles if d.id != "C" and d.id != "B"]
    source.save_doodles()

    store = GalleryStore(source.kv)
    with caplog.at_level(logging.WARNING):
        store.load()

    assert [g.name for g in store.groups] == ["Pets"]
    assert [d.id for d in store.groups[0].items] == ["A"]
    assert [g["name"] for g in store.kv.get(GROUPS)] == ["Pets"]
    assert "Pruned 1 empty groups" in caplog.text


def test_clean_load_does_not_rewrite_groups():
    source = build_store(groups=[("Pets", ["A", "B"])])
    store = GalleryStore(source.kv)
    assert store.reconcile() is False
    store.load()
    assert store.reconcile() is False


# ── queries and the drawing-tool hook ────────────────────────


def test_ungrouped_doodles_keep_store_order():
    store = build_store(groups=[("Pets", ["D", "A"])])
    assert [d.id for d in store.ungrouped_doodles()] == ["B", "C", "E"]
    assert store.grouped_ids() == {"A", "D"}


def test_add_doodle_inserts_newest_first():
    store = build_store(ids=("A",))
    doodle = store.add_doodle(PNG_DATA, doodle_type=DoodleType.CLIPBOARDED)
    assert store.doodles[0] is doodle
    assert doodle.id.startswith("doodle_")
    assert doodle.type is DoodleType.CLIPBOARDED
    assert store.kv.get(DOODLES)[0]["type"] == "clipboarded"


def test_doodle_accepts_either_field_name():
    by_alias = Doodle.model_validate({"id": "A", "imageData": "x", "timestamp": 1})
    by_name = Doodle(id="A", image_data="x", timestamp=1)
    assert by_alias == by_name
    assert by_alias.label.count(":") == 1


def test_out_of_range_timestamp_still_loads():
    kv = MemoryStore({DOODLES: [{"id": "A", "imageData": PNG_DATA, "timestamp": 10**20}]})
    store = GalleryStore(kv)
    store.load()
    controller = GalleryController(store)
    assert controller.index.ids() == ["A"]
    assert store.doodles[0].label == str(10**20)
