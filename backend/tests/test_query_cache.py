import asyncio

import pytest

from core.query_cache import QueryCache


class Loader:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


async def test_fetch_loads_once_until_invalidated():
    cache = QueryCache()
    loader = Loader(["a"], ["a", "b"])

    assert await cache.fetch("inventory-items", loader) == ["a"]
    assert await cache.fetch("inventory-items", loader) == ["a"]
    assert loader.calls == 1
    assert not cache.is_stale("inventory-items")

    cache.invalidate("inventory-items")
    assert cache.is_stale("inventory-items")
    assert cache.peek("inventory-items") == ["a"]

    assert await cache.fetch("inventory-items", loader) == ["a", "b"]
    assert loader.calls == 2


async def test_failed_reload_keeps_previous_data_and_stays_stale():
    cache = QueryCache()
    loader = Loader(["a"], RuntimeError("network down"))

    await cache.fetch("inventory-items", loader)
    cache.invalidate("inventory-items")

    with pytest.raises(RuntimeError):
        await cache.fetch("inventory-items", loader)

    assert cache.peek("inventory-items") == ["a"]
    assert cache.is_stale("inventory-items")


async def test_keys_are_independent():
    cache = QueryCache()
    await cache.fetch("inventory-items", Loader([1]))
    await cache.fetch("summary", Loader({"item_count": 1}))

    cache.invalidate("inventory-items")
    assert cache.is_stale("inventory-items")
    assert not cache.is_stale("summary")
    assert cache.is_stale("never-loaded")
    cache.invalidate("never-loaded")


class BlockingLoader:
    def __init__(self, results):
        self.results = results
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self):
        snapshot = list(self.results)
        self.started.set()
        await self.release.wait()
        return snapshot


async def test_invalidate_during_load_keeps_result_stale():
    cache = QueryCache()
    rows = ["old"]
    loader = BlockingLoader(rows)

    pending = asyncio.create_task(cache.fetch("inventory-items", loader))
    await loader.started.wait()

    rows.append("new")
    cache.invalidate("inventory-items")
    loader.release.set()

    assert await pending == ["old"]
    assert cache.is_stale("inventory-items")

    reload = BlockingLoader(rows)
    reload.release.set()
    assert await cache.fetch("inventory-items", reload) == ["old", "new"]
    assert not cache.is_stale("inventory-items")


async def test_clear_drops_entries_and_in_flight_loads():
    cache = QueryCache()
    await cache.fetch("inventory-items", Loader(["a"]))

    loader = BlockingLoader(["b"])
    pending = asyncio.create_task(cache.fetch("summary", loader))
    await loader.started.wait()

    cache.clear()
    loader.release.set()
    await pending

    assert cache.peek("inventory-items") is None
    assert cache.is_stale("inventory-items")
    assert cache.is_stale("summary")
