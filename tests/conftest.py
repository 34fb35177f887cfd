import pytest

from memval import MemoryStore, enable_warnings, set_default_store


@pytest.fixture(autouse=True)
def _isolate_globals():
    """Fresh default store and warnings on for every test."""
    set_default_store(MemoryStore(name="tests", store_name="default"))
    enable_warnings()
    yield
    enable_warnings()


@pytest.fixture
def store():
    return MemoryStore(name="tests", store_name="tests")
