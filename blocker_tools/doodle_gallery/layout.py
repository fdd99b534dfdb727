"""Responsive grid sizing.

Given the container size and how many tiles must fit, pick a square tile
size that fills the area, then derive how many tiles go on each row.
Units are whatever the caller measures the container in (terminal cells
for the TUI, pixels for a browser).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from . import config


@dataclass(frozen=True)
class GridLayout:
    items_per_row: int
    rows: int
    item_size: int
    icon_size: int
    font_size: int
    badge_size: int


def compute_layout(
    width: int,
    height: int,
    item_count: int,
    *,
    padding: int = config.GRID_PADDING,
    gap: int = config.GRID_GAP,
    min_size: int = config.MIN_ITEM_SIZE,
    max_size: int = config.MAX_ITEM_SIZE,
) -> GridLayout:
    usable_w = max(1, width - 2 * padding)
    usable_h = max(1, height - 2 * padding)

    if item_count > 0:
        item_area = usable_w * usable_h / item_count
        size = math.sqrt(item_area)
    else:
        size = max_size
    item_size = int(min(max(size, min_size), max_size))

    items_per_row = max(1, (usable_w + gap) // (item_size + gap))
    rows = math.ceil(item_count / items_per_row) if item_count else 0

    return GridLayout(
        items_per_row=items_per_row,
        rows=rows,
        item_size=item_size,
        icon_size=round(item_size * 0.4),
        font_size=max(1, round(item_size * 0.12)),
        badge_size=max(1, round(item_size * 0.2)),
    )
