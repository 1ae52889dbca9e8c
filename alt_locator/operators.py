"""
Paint and control operators consumed by the operator scanner.

Page handles translate their native content representation into this small
vocabulary.  Anything else a handle emits is ignored by the scanner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from alt_locator.geometry import AffineTransform


@dataclass(frozen=True)
class SaveState:
    """``q``"""


@dataclass(frozen=True)
class RestoreState:
    """``Q``"""


@dataclass(frozen=True)
class ConcatMatrix:
    """``cm``: compose a new matrix onto the current transform."""

    matrix: AffineTransform = field(default_factory=AffineTransform.identity)


@dataclass(frozen=True)
class BeginMarkedContent:
    """``BMC``: tag only, never carries an MCID."""

    tag: str = ""


@dataclass(frozen=True)
class BeginMarkedContentProps:
    """``BDC``: tag plus a property list.

    ``properties`` is either the MCID itself (a non-negative int) or a
    mapping that may hold ``MCID``/``mcid`` and ``Type``.
    """

    tag: str = ""
    properties: Any = None


@dataclass(frozen=True)
class EndMarkedContent:
    """``EMC``"""


@dataclass(frozen=True)
class PaintImage:
    """Image XObject ``Do`` or an inline ``BI``/``EI`` image."""

    name: Optional[str] = None
    inline: bool = False


PaintOperator = Union[
    SaveState,
    RestoreState,
    ConcatMatrix,
    BeginMarkedContent,
    BeginMarkedContentProps,
    EndMarkedContent,
    PaintImage,
]


__all__ = [
    "BeginMarkedContent",
    "BeginMarkedContentProps",
    "ConcatMatrix",
    "EndMarkedContent",
    "PaintImage",
    "PaintOperator",
    "RestoreState",
    "SaveState",
]
