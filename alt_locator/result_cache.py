"""
Per-page memoization of resolver output.

Entries are keyed weakly on the page handle, so they are dropped together
with the page.  Each (page, fallback mode) pair is computed once; concurrent
callers for the same pair await the same in-flight task.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from alt_locator.results import FallbackMode, ImageAltResult

logger = logging.getLogger(__name__)

ComputeFn = Callable[[], Awaitable[Sequence[ImageAltResult]]]


class ResultCache:
    def __init__(self) -> None:
        self._entries: "weakref.WeakKeyDictionary[Any, Dict[FallbackMode, Tuple[ImageAltResult, ...]]]" = (
            weakref.WeakKeyDictionary()
        )
        self._pending: "weakref.WeakKeyDictionary[Any, Dict[FallbackMode, asyncio.Task]]" = (
            weakref.WeakKeyDictionary()
        )
        self.hits = 0
        self.misses = 0

    def get(self, page: Any, mode: FallbackMode) -> Optional[List[ImageAltResult]]:
        try:
            entry = self._entries.get(page)
        except TypeError:
            return None
        if entry is None or mode not in entry:
            return None
        return list(entry[mode])

    def put(self, page: Any, mode: FallbackMode, results: Sequence[ImageAltResult]) -> List[ImageAltResult]:
        """Store ``results`` unless the pair is already cached; return what is stored."""
        try:
            entry = self._entries.setdefault(page, {})
        except TypeError:
            logger.debug("[ResultCache] Page handle %r cannot be weakly referenced; not caching", page)
            return list(results)
        stored = entry.setdefault(mode, tuple(results))
        return list(stored)

    def release(self, page: Any) -> None:
        try:
            self._entries.pop(page, None)
            self._pending.pop(page, None)
        except TypeError:
            return

    def __contains__(self, key: Tuple[Any, FallbackMode]) -> bool:
        page, mode = key
        return self.get(page, mode) is not None

    def __len__(self) -> int:
        return sum(len(entry) for entry in self._entries.values())

    async def get_or_compute(self, page: Any, mode: FallbackMode, compute: ComputeFn) -> List[ImageAltResult]:
        cached = self.get(page, mode)
        if cached is not None:
            self.hits += 1
            return cached

        try:
            pending = self._pending.setdefault(page, {})
        except TypeError:
            self.misses += 1
            return list(await compute())

        task = pending.get(mode)
        if task is None:
            self.misses += 1

            async def _compute_and_store() -> List[ImageAltResult]:
                results = await compute()
                if self._pending.get(page) is not pending:
                    logger.debug("[ResultCache] Page released during computation; not caching")
                    return list(results)
                return self.put(page, mode, results)

            task = asyncio.ensure_future(_compute_and_store())
            pending[mode] = task
            task.add_done_callback(lambda _task: pending.pop(mode, None))
        else:
            self.hits += 1
            logger.debug("[ResultCache] Joining in-flight computation for mode %s", mode.value)

        results = await asyncio.shield(task)
        return list(results)


__all__ = ["ResultCache"]
