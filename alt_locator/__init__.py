"""
Locate existing alt text for images painted on PDF pages.

The engine reconciles a page's structure tree with its content stream and
returns one :class:`ImageAltResult` per image it can attribute alt text to.
"""

from alt_locator.geometry import AffineTransform, AffineTransformStack, Rect
from alt_locator.marked_content import MarkedContentScope, MarkedContentTracker
from alt_locator.operator_scanner import ImageRegion, OperatorScanner, scan_operators
from alt_locator.operators import (
    BeginMarkedContent,
    BeginMarkedContentProps,
    ConcatMatrix,
    EndMarkedContent,
    PaintImage,
    RestoreState,
    SaveState,
)
from alt_locator.page_handle import PageHandle
from alt_locator.result_cache import ResultCache
from alt_locator.resolver import MatchResolver, ResolverState, get_page_images, resolve_page
from alt_locator.results import FallbackMode, ImageAltResult
from alt_locator.spatial_order import sort_rects_spatially, sort_spatially
from alt_locator.structure_roles import StructureRole
from alt_locator.structure_tree import StructureNode, StructureTreeWalker, walk_structure_tree

__version__ = "0.1.0"

__all__ = [
    "AffineTransform",
    "AffineTransformStack",
    "BeginMarkedContent",
    "BeginMarkedContentProps",
    "ConcatMatrix",
    "EndMarkedContent",
    "FallbackMode",
    "ImageAltResult",
    "ImageRegion",
    "MarkedContentScope",
    "MarkedContentTracker",
    "MatchResolver",
    "OperatorScanner",
    "PageHandle",
    "PaintImage",
    "Rect",
    "ResolverState",
    "RestoreState",
    "ResultCache",
    "SaveState",
    "StructureNode",
    "StructureRole",
    "StructureTreeWalker",
    "get_page_images",
    "resolve_page",
    "scan_operators",
    "sort_rects_spatially",
    "sort_spatially",
    "walk_structure_tree",
]
