"""Marked-content scope tracking (BMC/BDC ... EMC)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

ARTIFACT_TAG = "Artifact"


@dataclass(frozen=True)
class MarkedContentScope:
    tag: str
    mcid: Optional[int] = None
    is_artifact: bool = False


class MarkedContentTracker:
    """Stack of open marked-content scopes.

    The active MCID is the nearest enclosing scope that carries one, while
    artifact-ness is inherited from any enclosing scope.
    """

    def __init__(self) -> None:
        self._scopes: List[MarkedContentScope] = []

    def begin_scope(self, tag: str, mcid: Optional[int] = None, is_artifact: bool = False) -> None:
        self._scopes.append(MarkedContentScope(tag=tag, mcid=mcid, is_artifact=is_artifact))

    def end_scope(self) -> None:
        if self._scopes:
            self._scopes.pop()

    def current_id(self) -> Optional[int]:
        for scope in reversed(self._scopes):
            if scope.mcid is not None:
                return scope.mcid
        return None

    def is_inside_artifact(self) -> bool:
        return any(scope.is_artifact for scope in self._scopes)

    def is_inside_any_scope(self) -> bool:
        return bool(self._scopes)

    @property
    def depth(self) -> int:
        return len(self._scopes)


__all__ = ["ARTIFACT_TAG", "MarkedContentScope", "MarkedContentTracker"]
