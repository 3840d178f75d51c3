# Shared fixtures: a frozen clock and temporary cache stores in both access modes.

import pytest

from db.geo_cache import GeoCacheStore
from tests.factories import NOW


@pytest.fixture
def clock():
    return lambda: float(NOW)


@pytest.fixture
def cache_path(tmp_path):
    return str(tmp_path / "cache" / "geocache.sqlite3")


@pytest.fixture(params=[True, False], ids=["memory", "direct"])
def store(request, cache_path):
    s = GeoCacheStore.open(cache_path, memory=request.param)
    yield s
    s.close()


@pytest.fixture
def memory_store(cache_path):
    s = GeoCacheStore.open(cache_path, memory=True)
    yield s
    s.close()
