"""memcore test configuration."""
import re
from datetime import datetime, timedelta
import pytest

from memcore.database import init_db
from memcore.embeddings import EmbeddingProvider
from memcore.errors import ProviderError
from memcore.llm import CompletionProvider
from memcore.models import Memory
from memcore.store import MemoryStore

_WORD_RE = re.compile(r"[a-z0-9]+")


class KeywordEmbedder(EmbeddingProvider):
    """Deterministic bag-of-words embedder: each new word gets its own axis."""

    def __init__(self, dim=64):
        self.dim = dim
        self.vocab = {}
        self.calls = 0

    def embed(self, text):
        self.calls += 1
        vec = [0.0] * self.dim
        for word in _WORD_RE.findall(text.lower()):
            idx = self.vocab.setdefault(word, len(self.vocab) % self.dim)
            vec[idx] += 1.0
        return vec


class FailingEmbedder(EmbeddingProvider):
    def embed(self, text):
        raise ProviderError("embedding service down")


class BrokenEmbedder(EmbeddingProvider):
    """Raises something other than ProviderError, like a raw SDK error would."""

    def embed(self, text):
        raise RuntimeError("connection reset")


class FailingCompleter(CompletionProvider):
    def complete(self, system_prompt, user_content):
        raise ProviderError("completion service down")


class RecordingCompleter(CompletionProvider):
    def __init__(self, reply="Short summary."):
        self.reply = reply
        self.prompts = []

    def complete(self, system_prompt, user_content):
        self.prompts.append(system_prompt)
        return self.reply


@pytest.fixture
def session_factory(tmp_path):
    return init_db(f"sqlite:///{tmp_path / 'memory.db'}")


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def embedder():
    return KeywordEmbedder()


@pytest.fixture
def store(db, embedder):
    return MemoryStore(db, embedder)


@pytest.fixture
def failing_store(db):
    return MemoryStore(db, FailingEmbedder())


@pytest.fixture
def add_memory(store):
    """Insert a memory row directly, bypassing the writer's merge logic."""
    base = datetime(2024, 1, 1)
    counter = {"n": 0}

    def _add(user_id, content, embed=True, **fields):
        counter["n"] += 1
        fields.setdefault("created_at", base + timedelta(minutes=counter["n"]))
        fields.setdefault("relevance_score", 1.0)
        fields.setdefault("access_count", 0)
        memory = Memory(
            user_id=user_id,
            content=content,
            embedding=store.embed(content) if embed else None,
            **fields,
        )
        return store.add(memory)

    return _add
