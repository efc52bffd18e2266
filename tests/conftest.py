import pytest

from calci.engine import EngineState
from calci.session import CalculatorSession
from calci.store import KeyValueStore, MemoryStore, StoreError


class FailingStore(KeyValueStore):
    """A store whose every write fails, counting the attempts."""

    def __init__(self):
        self.attempts = 0

    def load(self, key):
        return None

    def save(self, key, value):
        self.attempts += 1
        raise StoreError("disk full")


@pytest.fixture
def state():
    return EngineState()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def session(store):
    return CalculatorSession(store)


@pytest.fixture
def failing_store():
    return FailingStore()
