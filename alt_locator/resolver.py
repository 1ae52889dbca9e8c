"""
Image to alt text attribution for a single page.

Resolution runs in three tiers, from most to least trusted:

1. Figures in the structure tree that carry both a bounding box and alt
   text.  When any exist, they are the whole answer for the page.
2. Images painted inside a marked-content scope whose MCID is linked to a
   Figure with alt text.
3. Positional fallback: remaining images, ordered spatially or by draw
   order, paired with the remaining Figure alt text slots when the counts
   agree.  On a count mismatch with exactly one alt text left, it goes to
   the largest remaining image.

Document problems never raise out of this module; they degrade to fewer
results.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Set, Union

from alt_locator.operator_scanner import ImageRegion, scan_operators
from alt_locator.page_handle import PageHandle
from alt_locator.result_cache import ResultCache
from alt_locator.results import FallbackMode, ImageAltResult
from alt_locator.settings import get_settings
from alt_locator.spatial_order import sort_spatially
from alt_locator.structure_tree import StructureNode, StructureWalkResult, walk_structure_tree

logger = logging.getLogger(__name__)


class ResolverState(str, Enum):
    PENDING = "pending"
    DIRECT_RESOLVED = "direct_resolved"
    SCANNING_OPERATORS = "scanning_operators"
    MATCHING_BY_MCID = "matching_by_mcid"
    FALLBACK_MATCHING = "fallback_matching"
    RESOLVED = "resolved"


def _resolve_mode(fallback_mode: Union[FallbackMode, str, None]) -> FallbackMode:
    if fallback_mode is None:
        return get_settings().fallback_mode
    return FallbackMode.parse(fallback_mode)


class MatchResolver:
    def __init__(self, fallback_mode: Union[FallbackMode, str, None] = None):
        self.fallback_mode = _resolve_mode(fallback_mode)
        self.state = ResolverState.PENDING

    def _transition(self, state: ResolverState) -> None:
        logger.debug("[MatchResolver] %s -> %s", self.state.value, state.value)
        self.state = state

    async def resolve(self, page: PageHandle) -> List[ImageAltResult]:
        """Fetch both page inputs concurrently and resolve them."""
        structure, operators = await asyncio.gather(
            page.get_structure_tree(),
            page.get_operator_sequence(),
            return_exceptions=True,
        )

        if isinstance(structure, BaseException):
            if not isinstance(structure, Exception):
                raise structure
            logger.info("[MatchResolver] Structure tree unavailable: %s", structure)
            structure = None

        if isinstance(operators, BaseException):
            if not isinstance(operators, Exception):
                raise operators
            logger.warning("[MatchResolver] Operator sequence unavailable: %s", operators)
            operators = []

        try:
            return self.resolve_loaded(structure, operators)
        except Exception:
            logger.exception("[MatchResolver] Unexpected failure resolving page images")
            self._transition(ResolverState.RESOLVED)
            return []

    def resolve_loaded(
        self,
        structure_tree: Optional[StructureNode],
        operators: Optional[Sequence[Any]],
    ) -> List[ImageAltResult]:
        if structure_tree is None:
            logger.info("[MatchResolver] Page has no structure tree; no alt text to attribute")
            self._transition(ResolverState.RESOLVED)
            return []

        walk = walk_structure_tree(structure_tree)

        if walk.has_direct_results:
            self._transition(ResolverState.DIRECT_RESOLVED)
            self._transition(ResolverState.RESOLVED)
            return list(walk.direct_results)

        if not walk.has_alt_text:
            self._transition(ResolverState.RESOLVED)
            return []

        self._transition(ResolverState.SCANNING_OPERATORS)
        regions = scan_operators(operators or [])

        self._transition(ResolverState.MATCHING_BY_MCID)
        results, unmatched, consumed_slots = self._match_by_mcid(regions, walk)

        if not unmatched:
            self._transition(ResolverState.RESOLVED)
            return results

        self._transition(ResolverState.FALLBACK_MATCHING)
        results.extend(self._match_by_position(unmatched, walk.alt_slots, consumed_slots))

        self._transition(ResolverState.RESOLVED)
        return results

    def _match_by_mcid(self, regions: Sequence[ImageRegion], walk: StructureWalkResult):
        mcid_to_alt = dict(walk.mcid_to_alt)
        results: List[ImageAltResult] = []
        unmatched: List[ImageRegion] = []
        consumed_slots: Set[int] = set()

        for region in regions:
            mcid = region.marked_content_id
            link = mcid_to_alt.pop(mcid, None) if mcid is not None else None
            if link is None:
                unmatched.append(region)
                continue
            consumed_slots.add(link.slot_index)
            results.append(
                ImageAltResult(id=f"img_mcid_{mcid}_{region.draw_order}", rect=region.rect, alt=link.alt)
            )

        logger.debug(
            "[MatchResolver] %d image(s) matched by MCID, %d left for fallback",
            len(results),
            len(unmatched),
        )
        return results, unmatched, consumed_slots

    def _order_for_fallback(self, regions: List[ImageRegion]) -> List[ImageRegion]:
        marked = [region for region in regions if region.inside_marked_content]
        candidates = marked or regions
        if self.fallback_mode is FallbackMode.SPATIAL:
            return sort_spatially(candidates, key=lambda region: region.rect)
        return sorted(candidates, key=lambda region: region.draw_order)

    def _match_by_position(
        self,
        regions: List[ImageRegion],
        alt_slots: Sequence[Optional[str]],
        consumed_slots: Set[int],
    ) -> List[ImageAltResult]:
        images = self._order_for_fallback(regions)
        slots = [slot for index, slot in enumerate(alt_slots) if index not in consumed_slots]

        if len(images) == len(slots):
            return [
                ImageAltResult(id=region.id, rect=region.rect, alt=slot)
                for region, slot in zip(images, slots)
                if slot is not None
            ]

        remaining_alts = [slot for slot in slots if slot is not None]
        if len(remaining_alts) == 1 and images:
            largest = max(images, key=lambda region: (region.rect.area, -region.draw_order))
            logger.debug(
                "[MatchResolver] Count mismatch (%d images, %d slots); using largest image %s",
                len(images),
                len(slots),
                largest.id,
            )
            return [ImageAltResult(id=largest.id, rect=largest.rect, alt=remaining_alts[0])]

        logger.debug(
            "[MatchResolver] Count mismatch (%d images, %d slots); dropping unmatched items",
            len(images),
            len(slots),
        )
        return []


_default_cache = ResultCache()


def get_default_cache() -> ResultCache:
    return _default_cache


async def get_page_images(
    page: PageHandle,
    fallback_mode: Union[FallbackMode, str, None] = None,
    *,
    cache: Optional[ResultCache] = None,
) -> List[ImageAltResult]:
    """Return alt text attributions for every resolvable image on ``page``.

    Results are memoized per (page, fallback mode) for the page's lifetime.
    """
    mode = _resolve_mode(fallback_mode)
    if cache is None:
        cache = _default_cache
    return await cache.get_or_compute(page, mode, lambda: MatchResolver(mode).resolve(page))


def resolve_page(
    structure_tree: Optional[StructureNode],
    operators: Optional[Sequence[Any]],
    fallback_mode: Union[FallbackMode, str, None] = None,
) -> List[ImageAltResult]:
    """Synchronous, uncached resolution of already-loaded page inputs."""
    return MatchResolver(fallback_mode).resolve_loaded(structure_tree, operators)


__all__ = [
    "MatchResolver",
    "ResolverState",
    "get_default_cache",
    "get_page_images",
    "resolve_page",
]
