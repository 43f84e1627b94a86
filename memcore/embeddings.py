# memcore/embeddings.py
import logging
import openai
from typing import List
from sklearn.feature_extraction.text import HashingVectorizer
from memcore.config import (EMBEDDING_BACKEND, EMBED_DIM, MAX_EMBED_CHARS,
                            OPENAI_API_KEY, OPENAI_EMBEDDING_MODEL)
from memcore.errors import ProviderError

logger = logging.getLogger(__name__)


class EmbeddingProvider:
    """Turns text into a fixed-length float vector."""

    dim = EMBED_DIM

    def embed(self, text: str) -> List[float]:
        raise NotImplementedError


class OpenAIEmbeddingProvider(EmbeddingProvider):
    def __init__(self, api_key: str = OPENAI_API_KEY, model: str = OPENAI_EMBEDDING_MODEL,
                 dim: int = EMBED_DIM, client=None):
        self.model = model
        self.dim = dim
        self._api_key = api_key
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self._api_key:
                raise ProviderError("OPENAI_API_KEY is not set")
            self._client = openai.OpenAI(api_key=self._api_key)
        return self._client

    def embed(self, text: str) -> List[float]:
        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text[:MAX_EMBED_CHARS],
                encoding_format="float",
            )
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"embedding request failed: {exc}") from exc
        return list(response.data[0].embedding)


class HashingEmbeddingProvider(EmbeddingProvider):
    """
    Offline embedder: hashed bag of words, L2-normalized.

    Needs no fitting, so the dimension never changes as memories accumulate.
    Good enough for exact and near-exact duplicates; weak on paraphrases.
    """

    def __init__(self, dim: int = EMBED_DIM):
        self.dim = dim
        self.vectorizer = HashingVectorizer(
            n_features=dim,
            lowercase=True,
            analyzer="word",
            alternate_sign=False,
            norm="l2",
        )

    def embed(self, text: str) -> List[float]:
        vec = self.vectorizer.transform([text[:MAX_EMBED_CHARS]]).toarray()[0]
        return vec.astype(float).tolist()


def build_embedder(backend: str = EMBEDDING_BACKEND) -> EmbeddingProvider:
    if backend == "hashing":
        return HashingEmbeddingProvider()
    if backend == "openai":
        if not OPENAI_API_KEY:
            logger.warning("OPENAI_API_KEY missing; memories will be stored without embeddings")
        return OpenAIEmbeddingProvider()
    raise ValueError(f"unknown embedding backend: {backend}")
