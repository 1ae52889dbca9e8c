import asyncio
import gc

from alt_locator.geometry import Rect
from alt_locator.result_cache import ResultCache
from alt_locator.results import FallbackMode, ImageAltResult


class Handle:
    pass


RESULT = ImageAltResult(id="img_op_0", rect=Rect(0, 0, 1, 1), alt="Dot")


def test_put_keeps_first_stored_value():
    cache = ResultCache()
    page = Handle()

    assert cache.put(page, FallbackMode.SPATIAL, [RESULT]) == [RESULT]
    assert cache.put(page, FallbackMode.SPATIAL, []) == [RESULT]
    assert (page, FallbackMode.SPATIAL) in cache
    assert (page, FallbackMode.DRAW) not in cache


def test_returned_lists_do_not_alias_cache():
    cache = ResultCache()
    page = Handle()
    cache.put(page, FallbackMode.DRAW, [RESULT])

    cache.get(page, FallbackMode.DRAW).clear()

    assert cache.get(page, FallbackMode.DRAW) == [RESULT]


def test_entries_disappear_with_page():
    cache = ResultCache()
    page = Handle()
    cache.put(page, FallbackMode.SPATIAL, [RESULT])
    assert len(cache) == 1

    del page
    gc.collect()

    assert len(cache) == 0


def test_release_drops_entries():
    cache = ResultCache()
    page = Handle()
    cache.put(page, FallbackMode.SPATIAL, [RESULT])
    cache.put(page, FallbackMode.DRAW, [])

    cache.release(page)

    assert len(cache) == 0
    assert cache.get(page, FallbackMode.SPATIAL) is None


def test_unreferenceable_pages_are_computed_without_caching():
    cache = ResultCache()
    calls = []

    async def compute():
        calls.append(1)
        return [RESULT]

    async def run():
        first = await cache.get_or_compute(42, FallbackMode.SPATIAL, compute)
        second = await cache.get_or_compute(42, FallbackMode.SPATIAL, compute)
        return first, second

    assert asyncio.run(run()) == ([RESULT], [RESULT])
    assert len(calls) == 2
    assert len(cache) == 0


def test_release_during_computation_does_not_store_result():
    cache = ResultCache()
    page = Handle()

    async def run():
        started = asyncio.Event()
        finish = asyncio.Event()

        async def compute():
            started.set()
            await finish.wait()
            return [RESULT]

        task = asyncio.ensure_future(cache.get_or_compute(page, FallbackMode.SPATIAL, compute))
        await started.wait()
        cache.release(page)
        finish.set()
        return await task

    assert asyncio.run(run()) == [RESULT]
    assert cache.get(page, FallbackMode.SPATIAL) is None
    assert len(cache) == 0
