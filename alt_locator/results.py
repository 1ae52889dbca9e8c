"""Public result types shared by the structure walker and the resolver."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from alt_locator.geometry import Rect


class FallbackMode(str, Enum):
    SPATIAL = "spatial"
    DRAW = "draw"

    @classmethod
    def parse(cls, value: Union["FallbackMode", str]) -> "FallbackMode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for mode in cls:
                if mode.value == normalized:
                    return mode
        raise ValueError(
            f"Unsupported fallback mode {value!r}; expected one of "
            f"{', '.join(mode.value for mode in cls)}"
        )


@dataclass(frozen=True)
class ImageAltResult:
    id: str
    rect: Rect
    alt: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "rect": self.rect.as_list(), "alt": self.alt}


__all__ = ["FallbackMode", "ImageAltResult"]
