"""
Structure tree model and the Figure walker.

The walker collects three things from a page's structure tree:

* direct results for Figures that carry both a bounding box and alt text,
* an ordered list of alt text slots (one per remaining Figure, ``None`` when
  the Figure has no alt text) used by positional fallback matching,
* an MCID -> alt text lookup for Figures linked to marked content.

Untrusted documents can nest arbitrarily deep, so both the tree walk and
the MCID collection use explicit stacks instead of recursion.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from alt_locator.geometry import Rect
from alt_locator.results import ImageAltResult
from alt_locator.structure_roles import StructureRole, normalize_role_name

logger = logging.getLogger(__name__)

MCID_STRING_PATTERN = re.compile(r"mc(\d+)")


@dataclass
class StructureNode:
    role: str = ""
    bounding_box: Optional[Sequence[Any]] = None
    alt_text: Optional[str] = None
    children: List[Union["StructureNode", int, str]] = field(default_factory=list)

    @property
    def is_figure(self) -> bool:
        return normalize_role_name(self.role) == StructureRole.FIGURE.value

    @property
    def alt(self) -> Optional[str]:
        """Alt text with blank strings treated as absent."""
        if isinstance(self.alt_text, str) and self.alt_text.strip():
            return self.alt_text
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StructureNode":
        """Build a tree from plain dictionaries.

        Nodes use ``role``/``bbox``/``alt``/``children``; content references
        are ints or ``{"type": "content", "id": ...}`` dictionaries.
        """
        root = cls()
        stack: List[Tuple[Mapping[str, Any], StructureNode]] = [(data, root)]
        while stack:
            payload, node = stack.pop()
            node.role = normalize_role_name(payload.get("role"))
            node.bounding_box = payload.get("bbox")
            node.alt_text = payload.get("alt")
            for child in payload.get("children") or []:
                if isinstance(child, Mapping):
                    if "role" in child or "children" in child:
                        child_node = cls()
                        node.children.append(child_node)
                        stack.append((child, child_node))
                    elif "id" in child:
                        node.children.append(child["id"])
                elif isinstance(child, (int, str)) and not isinstance(child, bool):
                    node.children.append(child)
        return root


def parse_mcid_reference(value: Any) -> Optional[int]:
    """Return the MCID a raw content reference encodes, if any."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str):
        match = MCID_STRING_PATTERN.search(value)
        if match:
            return int(match.group(1))
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
    return None


def _valid_rect(value: Any) -> Optional[Rect]:
    if value is None:
        return None
    try:
        return Rect.from_sequence(value)
    except ValueError as exc:
        logger.debug("[StructureTree] Ignoring malformed bounding box: %s", exc)
        return None


def _direct_bounding_box(node: StructureNode) -> Optional[Rect]:
    rect = _valid_rect(node.bounding_box)
    if rect is not None:
        return rect
    for child in node.children:
        if isinstance(child, StructureNode):
            rect = _valid_rect(child.bounding_box)
            if rect is not None:
                return rect
    return None


def _collect_mcids(node: StructureNode) -> List[int]:
    """MCIDs referenced anywhere below ``node``, in document order."""
    mcids: List[int] = []
    stack: List[Union[StructureNode, int, str]] = list(reversed(node.children))
    while stack:
        child = stack.pop()
        if isinstance(child, StructureNode):
            stack.extend(reversed(child.children))
            continue
        mcid = parse_mcid_reference(child)
        if mcid is not None:
            mcids.append(mcid)
    return mcids


@dataclass(frozen=True)
class McidAlt:
    alt: str
    slot_index: int


@dataclass
class StructureWalkResult:
    direct_results: List[ImageAltResult] = field(default_factory=list)
    alt_slots: List[Optional[str]] = field(default_factory=list)
    mcid_to_alt: Dict[int, McidAlt] = field(default_factory=dict)

    @property
    def has_direct_results(self) -> bool:
        return bool(self.direct_results)

    @property
    def has_alt_text(self) -> bool:
        return any(slot is not None for slot in self.alt_slots)


class StructureTreeWalker:
    def walk(self, root: Optional[StructureNode]) -> StructureWalkResult:
        result = StructureWalkResult()
        if root is None:
            return result

        stack: List[StructureNode] = [root]
        while stack:
            node = stack.pop()
            if node.is_figure:
                alt = node.alt
                rect = _direct_bounding_box(node)
                if rect is not None and alt is not None:
                    result.direct_results.append(
                        ImageAltResult(id=f"fig_bbox_{len(result.direct_results)}", rect=rect, alt=alt)
                    )
                    continue

                slot_index = len(result.alt_slots)
                result.alt_slots.append(alt)
                if alt is not None:
                    for mcid in _collect_mcids(node):
                        result.mcid_to_alt[mcid] = McidAlt(alt=alt, slot_index=slot_index)

            stack.extend(
                child for child in reversed(node.children) if isinstance(child, StructureNode)
            )

        logger.debug(
            "[StructureTree] %d direct figure(s), %d alt slot(s), %d MCID link(s)",
            len(result.direct_results),
            len(result.alt_slots),
            len(result.mcid_to_alt),
        )
        return result


def walk_structure_tree(root: Optional[StructureNode]) -> StructureWalkResult:
    return StructureTreeWalker().walk(root)


__all__ = [
    "McidAlt",
    "StructureNode",
    "StructureTreeWalker",
    "StructureWalkResult",
    "parse_mcid_reference",
    "walk_structure_tree",
]
