"""
Affine transform and rectangle helpers for content stream scanning.

PDF user space is bottom-up: ``top`` is the larger y value.  Matrices follow
the content stream convention ``[a b c d e f]`` where a point maps as
``x' = a*x + c*y + e`` and ``y' = b*x + d*y + f``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from numbers import Real
from typing import Iterable, List, Optional, Sequence, Tuple

Point = Tuple[float, float]

UNIT_SQUARE: Tuple[Point, Point, Point, Point] = ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0))


@dataclass(frozen=True)
class Rect:
    """Axis-aligned box in page space (left, bottom, right, top)."""

    left: float
    bottom: float
    right: float
    top: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_list(self) -> List[float]:
        return [self.left, self.bottom, self.right, self.top]

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "Rect":
        """Return the bounding box that covers every point."""
        xs: List[float] = []
        ys: List[float] = []
        for x, y in points:
            xs.append(x)
            ys.append(y)
        if not xs:
            raise ValueError("Cannot build a rect from zero points")
        return cls(min(xs), min(ys), max(xs), max(ys))

    @classmethod
    def from_sequence(cls, values: Sequence[object]) -> "Rect":
        """Build a normalized rect from four numbers.

        Raises ``ValueError`` for wrong arity, booleans, non-numeric or
        non-finite members.
        """
        try:
            items = list(values)
        except TypeError as exc:
            raise ValueError(f"Bounding box is not a sequence: {values!r}") from exc

        if len(items) != 4:
            raise ValueError(f"Bounding box needs 4 numbers, got {len(items)}")

        numbers: List[float] = []
        for item in items:
            if isinstance(item, bool) or not isinstance(item, (Real, Decimal)):
                raise ValueError(f"Bounding box member is not a number: {item!r}")
            number = float(item)
            if not math.isfinite(number):
                raise ValueError(f"Bounding box member is not finite: {item!r}")
            numbers.append(number)

        left, bottom, right, top = numbers
        return cls(min(left, right), min(bottom, top), max(left, right), max(bottom, top))


@dataclass(frozen=True)
class AffineTransform:
    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls()

    @classmethod
    def from_values(cls, values: Sequence[object]) -> "AffineTransform":
        items = [float(value) for value in values]  # type: ignore[arg-type]
        if len(items) != 6:
            raise ValueError(f"Transform needs 6 numbers, got {len(items)}")
        return cls(*items)

    def multiply(self, other: "AffineTransform") -> "AffineTransform":
        """Return ``self x other``: apply ``self`` first, then ``other``."""
        return AffineTransform(
            self.a * other.a + self.b * other.c,
            self.a * other.b + self.b * other.d,
            self.c * other.a + self.d * other.c,
            self.c * other.b + self.d * other.d,
            self.e * other.a + self.f * other.c + other.e,
            self.e * other.b + self.f * other.d + other.f,
        )

    def apply(self, x: float, y: float) -> Point:
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)


class AffineTransformStack:
    """Current transformation matrix with save/restore semantics."""

    def __init__(self, initial: Optional[AffineTransform] = None):
        self._stack: List[AffineTransform] = [initial or AffineTransform.identity()]

    @property
    def current(self) -> AffineTransform:
        return self._stack[-1]

    @property
    def depth(self) -> int:
        return len(self._stack)

    def push(self) -> None:
        self._stack.append(self._stack[-1])

    def pop(self) -> None:
        # Unbalanced restores are common in real content streams.
        if len(self._stack) > 1:
            self._stack.pop()

    def concat(self, matrix: AffineTransform) -> None:
        self._stack[-1] = matrix.multiply(self._stack[-1])

    def current_rect(self, corners: Sequence[Point] = UNIT_SQUARE) -> Rect:
        transform = self.current
        return Rect.from_points(transform.apply(x, y) for x, y in corners)


__all__ = ["AffineTransform", "AffineTransformStack", "Point", "Rect", "UNIT_SQUARE"]
