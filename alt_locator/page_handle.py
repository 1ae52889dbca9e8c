"""Interface the engine expects from a loaded document page."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from alt_locator.structure_tree import StructureNode


@runtime_checkable
class PageHandle(Protocol):
    async def get_structure_tree(self) -> Optional[StructureNode]:
        """Return the page's structure tree, or ``None`` when untagged."""
        ...

    async def get_operator_sequence(self) -> Sequence[Any]:
        """Return the page's paint and control operators in stream order."""
        ...


__all__ = ["PageHandle"]
