import pytest

from skytrack.cache import PersistentCache
from skytrack.store import FlightStore

from tests.helpers import FakeClient


@pytest.fixture
def cache_url(tmp_path):
    return f'sqlite:///{tmp_path / "cache.db"}'


@pytest.fixture
def cache(cache_url):
    cache = PersistentCache(cache_url)
    yield cache
    cache.close()


@pytest.fixture
def store(cache):
    return FlightStore(cache)


@pytest.fixture
def client():
    return FakeClient()
