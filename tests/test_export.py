import base64

import pytest

from blocker_tools.doodle_gallery.errors import GalleryError
from blocker_tools.doodle_gallery.export import (
    decode_image_data,
    encode_image_file,
    export_doodle,
    export_filename,
)
from blocker_tools.doodle_gallery.models import Doodle

from conftest import PNG_BYTES, PNG_DATA


def make_doodle(name=None, image_data=PNG_DATA):
    return Doodle(id="A", image_data=image_data, name=name, timestamp=1_700_000_000_000)


def test_decode_data_url_and_bare_base64():
    assert decode_image_data(PNG_DATA) == PNG_BYTES
    assert decode_image_data(base64.b64encode(PNG_BYTES).decode()) == PNG_BYTES


def test_decode_rejects_non_base64_data_url():
    with pytest.raises(GalleryError):
        decode_image_data("data:image/svg+xml,<svg/>")


def test_decode_rejects_garbage():
    with pytest.raises(GalleryError):
        decode_image_data("data:image/png;base64,!!!not base64!!!")


@pytest.mark.parametrize(
    "name, expected",
    [
        ("My Cat", "my_cat.png"),
        ("  sunset   over  hills ", "sunset_over_hills.png"),
        ("what?!", "what.png"),
        ("???", "doodle_1700000000000.png"),
        (None, "doodle_1700000000000.png"),
    ],
)
def test_export_filename(name, expected):
    assert export_filename(make_doodle(name)) == expected


def test_export_never_overwrites(tmp_path):
    first = export_doodle(make_doodle("cat"), tmp_path)
    second = export_doodle(make_doodle("cat"), tmp_path)
    third = export_doodle(make_doodle("cat"), tmp_path)
    assert [p.name for p in (first, second, third)] == ["cat.png", "cat_1.png", "cat_2.png"]
    assert all(p.read_bytes() == PNG_BYTES for p in (first, second, third))


def test_export_creates_directory(tmp_path):
    dest = export_doodle(make_doodle(), tmp_path / "a" / "b")
    assert dest.parent.is_dir()


def test_encode_image_file(tmp_path):
    src = tmp_path / "in.png"
    src.write_bytes(PNG_BYTES)
    assert encode_image_file(src) == PNG_DATA


def test_export_into_unwritable_directory(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(GalleryError, match="Could not save"):
        export_doodle(make_doodle("cat"), blocker / "sub")
