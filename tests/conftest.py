import threading

import pytest
from diskcache import Cache

from puppymatch.models import DogRecord, SearchResult


def make_dog(dog_id, **overrides):
    fields = {
        "img": f"https://img.example.com/{dog_id}.jpg",
        "name": f"Dog {dog_id}",
        "age": 3,
        "zip_code": "60601",
        "breed": "Poodle",
    }
    fields.update(overrides)
    return DogRecord(id=dog_id, **fields)


class DummyClient:
    """In-memory stand-in for DogsClient.

    ``search_gates``/``fetch_gates`` hold threading events keyed by the call
    arguments; a gated call blocks in its worker thread until the test sets
    the event, which lets tests finish requests out of order.
    """

    def __init__(self, dogs=(), search_result=None, breeds=None, match_id=None):
        self.dogs = {dog.id: dog for dog in dogs}
        self.search_result = search_result or SearchResult(
            result_ids=tuple(self.dogs), total=len(self.dogs)
        )
        self.search_results = {}
        self.breeds = breeds if breeds is not None else ["Beagle", "Poodle"]
        self.match_id = match_id
        self.authenticated = True

        self.search_error = None
        self.fetch_error = None
        self.match_error = None
        self.breeds_error = None

        self.search_gates = {}
        self.fetch_gates = {}
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def fetch_breeds(self):
        self._record("breeds")
        if self.breeds_error:
            raise self.breeds_error
        return list(self.breeds)

    def search_dogs(self, params):
        params = tuple(params)
        self._record("search", params)
        gate = self.search_gates.get(params)
        if gate is not None:
            gate.wait(5)
        if self.search_error:
            raise self.search_error
        return self.search_results.get(params, self.search_result)

    def fetch_dogs(self, ids):
        ids = tuple(ids)
        self._record("fetch", ids)
        gate = self.fetch_gates.get(ids)
        if gate is not None:
            gate.wait(5)
        if self.fetch_error:
            raise self.fetch_error
        return [self.dogs[i] for i in ids if i in self.dogs]

    def get_match(self, ids):
        self._record("match", tuple(ids))
        if self.match_error:
            raise self.match_error
        return self.match_id

    def probe_session(self):
        self._record("probe")
        return self.authenticated

    def login(self, name, email):
        self._record("login", name, email)
        self.authenticated = True

    def logout(self):
        self._record("logout")
        self.authenticated = False


@pytest.fixture
def search_cache(tmp_path):
    store = Cache(str(tmp_path / "cache"))
    yield store
    store.close()


@pytest.fixture
def dogs():
    return [make_dog("d1"), make_dog("d2", breed="Beagle"), make_dog("d3", age=7)]


@pytest.fixture
def client(dogs):
    return DummyClient(dogs=dogs, match_id="d2")

