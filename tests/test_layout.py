from blocker_tools.doodle_gallery.layout import compute_layout


def test_square_fill():
    layout = compute_layout(100, 100, 4, padding=0, gap=0, min_size=10, max_size=100)
    assert layout.item_size == 50
    assert layout.items_per_row == 2
    assert layout.rows == 2
    assert layout.icon_size == 20
    assert layout.font_size == 6
    assert layout.badge_size == 10


def test_gap_and_padding_reduce_columns():
    # usable 100 wide; 9 items -> sqrt(100*100/9) = 33
    layout = compute_layout(102, 102, 9, padding=1, gap=2, min_size=10, max_size=100)
    assert layout.item_size == 33
    assert layout.items_per_row == 2  # (100 + 2) // (33 + 2)
    assert layout.rows == 5


def test_clamped_to_min_size():
    layout = compute_layout(100, 100, 10_000, padding=0, gap=0, min_size=10, max_size=100)
    assert layout.item_size == 10
    assert layout.items_per_row == 10
    assert layout.rows == 1000


def test_clamped_to_max_size():
    layout = compute_layout(1000, 1000, 1, padding=0, gap=0, min_size=10, max_size=100)
    assert layout.item_size == 100
    assert layout.items_per_row == 10
    assert layout.rows == 1


def test_empty_collection():
    layout = compute_layout(80, 24, 0)
    assert layout.rows == 0
    assert layout.items_per_row >= 1


def test_narrow_container_keeps_one_column():
    layout = compute_layout(5, 50, 3, padding=1, gap=1, min_size=12, max_size=30)
    assert layout.items_per_row == 1
    assert layout.rows == 3
