import pytest

from pom_studio.store import MemoryBackend, PageStore


class RecordingBackend(MemoryBackend):
    def __init__(self, documents=None):
        super().__init__(documents)
        self.writes = []

    def write(self, key, text):
        self.writes.append(key)
        super().write(key, text)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def store(backend):
    """Seeded store over an empty in-memory backend."""
    return PageStore.load(backend)
