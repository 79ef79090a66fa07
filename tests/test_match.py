import asyncio
import threading

from conftest import DummyClient, make_dog
from puppymatch.errors import MatchError
from puppymatch.favorites import FavoritesSet
from puppymatch.match import MatchResolver


def _favorites(*ids):
    favorites = FavoritesSet()
    for dog_id in ids:
        favorites.add(make_dog(dog_id))
    return favorites


def test_find_match_is_a_no_op_for_empty_favorites():
    client = DummyClient(match_id="d1")
    resolver = MatchResolver(client)

    assert asyncio.run(resolver.find_match(FavoritesSet())) is None
    assert client.calls_to("match") == []


def test_find_match_resolves_from_favorites_and_clears_them():
    client = DummyClient(match_id="d2")
    resolver = MatchResolver(client)
    favorites = _favorites("d1", "d2", "d3")
    expected = favorites.get("d2")

    result = asyncio.run(resolver.find_match(favorites))

    assert result.record is expected
    assert result.favorite_ids == ("d1", "d2", "d3")
    assert client.calls_to("match") == [("match", ("d1", "d2", "d3"))]
    assert len(favorites) == 0
    assert resolver.result is result
    assert client.calls_to("fetch") == []


def test_find_match_failure_keeps_favorites():
    client = DummyClient(match_id="d1")
    client.match_error = MatchError("boom")
    resolver = MatchResolver(client)
    favorites = _favorites("d1", "d2")

    assert asyncio.run(resolver.find_match(favorites)) is None
    assert favorites.ids() == ["d1", "d2"]
    assert isinstance(resolver.error, MatchError)
    assert not resolver.is_loading

    client.match_error = None
    assert asyncio.run(resolver.find_match(favorites)).match_id == "d1"
    assert resolver.error is None


def test_match_outside_favorites_is_an_error():
    client = DummyClient(match_id="stranger")
    resolver = MatchResolver(client)
    favorites = _favorites("d1")

    assert asyncio.run(resolver.find_match(favorites)) is None
    assert isinstance(resolver.error, MatchError)
    assert favorites.ids() == ["d1"]


def test_second_request_while_pending_is_ignored(monkeypatch):
    client = DummyClient(match_id="d1")
    gate = threading.Event()
    real_get_match = client.get_match

    def slow_get_match(ids):
        gate.wait(5)
        return real_get_match(ids)

    monkeypatch.setattr(client, "get_match", slow_get_match)
    resolver = MatchResolver(client)
    favorites = _favorites("d1", "d2")

    async def scenario():
        first = asyncio.create_task(resolver.find_match(favorites))
        await asyncio.sleep(0)
        assert resolver.is_loading
        ignored = await resolver.find_match(favorites)
        gate.set()
        return ignored, await first

    ignored, first = asyncio.run(scenario())

    assert ignored is None
    assert first.match_id == "d1"
    assert len(client.calls_to("match")) == 1
