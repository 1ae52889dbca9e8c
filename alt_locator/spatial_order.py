"""Reading-order sort for image boxes: rows top to bottom, then left to right."""

from __future__ import annotations

from typing import Callable, List, Sequence, TypeVar

from alt_locator.geometry import Rect

T = TypeVar("T")

# A candidate joins a row when the vertical overlap exceeds this share of the
# shorter span and the taller span is less than MAX_HEIGHT_RATIO times it.
MIN_OVERLAP_RATIO = 0.5
MAX_HEIGHT_RATIO = 2.0


def _joins_row(row_top: float, row_bottom: float, rect: Rect) -> bool:
    overlap = max(0.0, min(row_top, rect.top) - max(row_bottom, rect.bottom))
    row_height = row_top - row_bottom
    shorter = min(rect.height, row_height)
    taller = max(rect.height, row_height)
    if shorter <= 0:
        return False
    return overlap > shorter * MIN_OVERLAP_RATIO and taller / shorter < MAX_HEIGHT_RATIO


def sort_spatially(items: Sequence[T], key: Callable[[T], Rect]) -> List[T]:
    """Return ``items`` in reading order using ``key`` to get each box.

    Python's sort is stable, so items sharing a top edge (or a left edge
    within a row) keep their incoming order.
    """
    if not items:
        return []

    ordered = sorted(items, key=lambda item: -key(item).top)

    rows: List[List[T]] = []
    current_row = [ordered[0]]
    row_top = key(ordered[0]).top
    row_bottom = key(ordered[0]).bottom

    for item in ordered[1:]:
        rect = key(item)
        if _joins_row(row_top, row_bottom, rect):
            current_row.append(item)
            row_top = max(row_top, rect.top)
            row_bottom = min(row_bottom, rect.bottom)
        else:
            rows.append(current_row)
            current_row = [item]
            row_top = rect.top
            row_bottom = rect.bottom
    rows.append(current_row)

    result: List[T] = []
    for row in rows:
        result.extend(sorted(row, key=lambda item: key(item).left))
    return result


def sort_rects_spatially(rects: Sequence[Rect]) -> List[Rect]:
    return sort_spatially(rects, key=lambda rect: rect)


__all__ = ["MAX_HEIGHT_RATIO", "MIN_OVERLAP_RATIO", "sort_rects_spatially", "sort_spatially"]
