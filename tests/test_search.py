import asyncio
import threading

from conftest import DummyClient
from puppymatch.errors import SearchError
from puppymatch.filters import FilterStateStore
from puppymatch.models import SearchResult
from puppymatch.search import BREEDS_CACHE_KEY, SearchQueryEngine, cache_get


def _request(**filters):
    store = FilterStateStore()
    if filters:
        store.apply_filters(**filters)
    return store.derive_request()


def test_refresh_issues_once_for_unchanged_request(search_cache):
    client = DummyClient(search_result=SearchResult(result_ids=("d1",), total=1))
    engine = SearchQueryEngine(client, store=search_cache, ttl_seconds=60)
    request = _request(selected_breeds=["Poodle"])

    first = asyncio.run(engine.refresh(request))
    second = asyncio.run(engine.refresh(request))

    assert first == SearchResult(result_ids=("d1",), total=1)
    assert second is None
    assert len(client.calls_to("search")) == 1
    assert client.calls_to("search")[0][1] == tuple(request.params())


def test_cached_result_is_reused_without_network(search_cache):
    client = DummyClient(search_result=SearchResult(result_ids=("d1",), total=1))
    request = _request(age_min=2)

    asyncio.run(SearchQueryEngine(client, store=search_cache, ttl_seconds=60).refresh(request))
    other = SearchQueryEngine(client, store=search_cache, ttl_seconds=60)
    result = asyncio.run(other.refresh(request))

    assert result.result_ids == ("d1",)
    assert other.result == result
    assert len(client.calls_to("search")) == 1


def test_force_bypasses_cache(search_cache):
    client = DummyClient(search_result=SearchResult(result_ids=("d1",), total=1))
    engine = SearchQueryEngine(client, store=search_cache, ttl_seconds=60)
    request = _request()

    asyncio.run(engine.refresh(request))
    asyncio.run(engine.refresh(request, force=True))

    assert len(client.calls_to("search")) == 2


def test_superseded_response_is_discarded(search_cache):
    client = DummyClient()
    old_request = _request(selected_breeds=["Beagle"])
    new_request = _request(selected_breeds=["Poodle"])
    client.search_results[tuple(old_request.params())] = SearchResult(("old",), 1)
    client.search_results[tuple(new_request.params())] = SearchResult(("new",), 1)
    gate = threading.Event()
    client.search_gates[tuple(old_request.params())] = gate
    engine = SearchQueryEngine(client, store=search_cache, ttl_seconds=60)

    async def scenario():
        old = asyncio.create_task(engine.refresh(old_request))
        await asyncio.sleep(0)
        assert engine.is_loading
        newer = await engine.refresh(new_request)
        gate.set()
        stale = await old
        return newer, stale

    newer, stale = asyncio.run(scenario())

    assert newer.result_ids == ("new",)
    assert stale is None
    assert engine.result.result_ids == ("new",)
    assert not engine.is_loading


def test_failure_keeps_previous_result_and_allows_retry(search_cache):
    client = DummyClient(search_result=SearchResult(("d1",), 1))
    engine = SearchQueryEngine(client, store=search_cache, ttl_seconds=60)
    asyncio.run(engine.refresh(_request()))

    client.search_error = SearchError("boom")
    failing = _request(selected_breeds=["Poodle"])
    assert asyncio.run(engine.refresh(failing)) is None
    assert isinstance(engine.error, SearchError)
    assert engine.result.result_ids == ("d1",)
    assert not engine.is_loading

    client.search_error = None
    client.search_result = SearchResult(("d9",), 1)
    retried = asyncio.run(engine.refresh(failing))
    assert retried.result_ids == ("d9",)
    assert engine.error is None


def test_superseded_failure_does_not_set_error(search_cache):
    client = DummyClient(search_result=SearchResult(("d1",), 1))
    old_request = _request(selected_breeds=["Beagle"])
    gate = threading.Event()
    client.search_gates[tuple(old_request.params())] = gate
    engine = SearchQueryEngine(client, store=search_cache, ttl_seconds=60)

    async def scenario():
        old = asyncio.create_task(engine.refresh(old_request))
        await asyncio.sleep(0)
        await engine.refresh(_request(selected_breeds=["Poodle"]))
        client.search_error = SearchError("late failure")
        gate.set()
        return await old

    assert asyncio.run(scenario()) is None
    assert engine.error is None
    assert engine.result.result_ids == ("d1",)


def test_load_breeds_fetches_once_and_caches(search_cache):
    client = DummyClient(breeds=["Akita", "Poodle"])
    engine = SearchQueryEngine(client, store=search_cache, ttl_seconds=60)

    assert asyncio.run(engine.load_breeds()) == ["Akita", "Poodle"]
    assert asyncio.run(engine.load_breeds()) == ["Akita", "Poodle"]
    assert len(client.calls_to("breeds")) == 1
    assert cache_get(search_cache, BREEDS_CACHE_KEY) == ["Akita", "Poodle"]


def test_load_breeds_failure_is_recorded(search_cache):
    client = DummyClient()
    client.breeds_error = SearchError("down")
    engine = SearchQueryEngine(client, store=search_cache, ttl_seconds=60)

    assert asyncio.run(engine.load_breeds()) == []
    assert isinstance(engine.breeds_error, SearchError)


def test_cache_get_drops_unreadable_entries():
    class BrokenCache:
        def __init__(self):
            self.deleted = []

        def get(self, key):
            raise RuntimeError("corrupt")

        def delete(self, key):
            self.deleted.append(key)

    store = BrokenCache()
    assert cache_get(store, "k") is None
    assert store.deleted == ["k"]
