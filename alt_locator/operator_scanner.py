"""Single pass over a page's operator sequence collecting painted images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from alt_locator.geometry import AffineTransformStack, Rect
from alt_locator.marked_content import ARTIFACT_TAG, MarkedContentTracker
from alt_locator.operators import (
    BeginMarkedContent,
    BeginMarkedContentProps,
    ConcatMatrix,
    EndMarkedContent,
    PaintImage,
    RestoreState,
    SaveState,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageRegion:
    id: str
    rect: Rect
    marked_content_id: Optional[int]
    inside_marked_content: bool
    draw_order: int


def _as_mcid(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= 0 else None


def _normalize_tag(tag: Any) -> str:
    if tag is None:
        return ""
    return str(tag).lstrip("/")


def parse_marked_content_properties(tag: Any, properties: Any) -> Tuple[Optional[int], bool]:
    """Return ``(mcid, is_artifact)`` for a BDC tag and property list."""
    mcid = _as_mcid(properties)
    type_value: Any = None
    if mcid is None and isinstance(properties, Mapping):
        for key in ("MCID", "mcid", "/MCID"):
            if key in properties:
                mcid = _as_mcid(properties[key])
                if mcid is not None:
                    break
        for key in ("Type", "/Type"):
            if key in properties:
                type_value = properties[key]
                break

    is_artifact = _normalize_tag(tag) == ARTIFACT_TAG or _normalize_tag(type_value) == ARTIFACT_TAG
    return mcid, is_artifact


class OperatorScanner:
    """Walks paint operators once, tracking the CTM and marked content.

    Images inside an artifact scope are skipped.  Zero-area images are kept
    so malformed transforms stay visible to callers.
    """

    def __init__(self) -> None:
        self.transforms = AffineTransformStack()
        self.marked_content = MarkedContentTracker()
        self.skipped_artifacts = 0
        self.ignored_operators = 0

    def scan(self, operators: Iterable[Any]) -> List[ImageRegion]:
        regions: List[ImageRegion] = []
        draw_order = 0

        for index, operator in enumerate(operators):
            if isinstance(operator, SaveState):
                self.transforms.push()
            elif isinstance(operator, RestoreState):
                self.transforms.pop()
            elif isinstance(operator, ConcatMatrix):
                self.transforms.concat(operator.matrix)
            elif isinstance(operator, BeginMarkedContentProps):
                mcid, is_artifact = parse_marked_content_properties(operator.tag, operator.properties)
                self.marked_content.begin_scope(_normalize_tag(operator.tag), mcid, is_artifact)
            elif isinstance(operator, BeginMarkedContent):
                tag = _normalize_tag(operator.tag)
                self.marked_content.begin_scope(tag, None, tag == ARTIFACT_TAG)
            elif isinstance(operator, EndMarkedContent):
                self.marked_content.end_scope()
            elif isinstance(operator, PaintImage):
                if self.marked_content.is_inside_artifact():
                    self.skipped_artifacts += 1
                    continue
                regions.append(
                    ImageRegion(
                        id=f"img_op_{index}",
                        rect=self.transforms.current_rect(),
                        marked_content_id=self.marked_content.current_id(),
                        inside_marked_content=self.marked_content.is_inside_any_scope(),
                        draw_order=draw_order,
                    )
                )
                draw_order += 1
            else:
                self.ignored_operators += 1

        logger.debug(
            "[OperatorScanner] %d image(s) collected, %d artifact image(s) skipped, %d operator(s) ignored",
            len(regions),
            self.skipped_artifacts,
            self.ignored_operators,
        )
        return regions


def scan_operators(operators: Iterable[Any]) -> List[ImageRegion]:
    return OperatorScanner().scan(operators)


__all__ = ["ImageRegion", "OperatorScanner", "parse_marked_content_properties", "scan_operators"]
