from types import SimpleNamespace

import numpy as np
import pytest

from memcore.embeddings import HashingEmbeddingProvider, OpenAIEmbeddingProvider, build_embedder
from memcore.errors import ProviderError
from memcore.llm import OpenAICompletionProvider


class FakeEmbeddings:
    def create(self, model, input, encoding_format):
        return SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2, 0.3])])


class FakeCompletions:
    def __init__(self):
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="Brief."))])


class RaisingEmbeddings:
    def create(self, **kwargs):
        raise RuntimeError("rate limited")


def test_hashing_embedder_is_stable_and_normalized():
    embedder = HashingEmbeddingProvider(dim=256)
    vec = embedder.embed("I like hiking in the mountains")
    assert len(vec) == 256
    assert np.linalg.norm(vec) == pytest.approx(1.0)
    assert embedder.embed("I like hiking in the mountains") == vec


def test_openai_embedder_without_key():
    with pytest.raises(ProviderError):
        OpenAIEmbeddingProvider(api_key="").embed("hello")


def test_openai_embedder_uses_client():
    client = SimpleNamespace(embeddings=FakeEmbeddings())
    assert OpenAIEmbeddingProvider(api_key="", client=client).embed("hello") == [0.1, 0.2, 0.3]


def test_openai_embedder_wraps_sdk_errors():
    client = SimpleNamespace(embeddings=RaisingEmbeddings())
    with pytest.raises(ProviderError):
        OpenAIEmbeddingProvider(client=client).embed("hello")


def test_completion_provider():
    completions = FakeCompletions()
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    assert OpenAICompletionProvider(client=client).complete("system", "text") == "Brief."
    assert completions.calls[0]["messages"][0] == {"role": "system", "content": "system"}


def test_build_embedder():
    assert isinstance(build_embedder("hashing"), HashingEmbeddingProvider)
    with pytest.raises(ValueError):
        build_embedder("word2vec")
