# memcore/store.py
import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from memcore.embeddings import EmbeddingProvider
from memcore.errors import NotFoundError, OwnershipError, ProviderError, StoreError
from memcore.models import Memory, MemoryCluster, utcnow
from memcore.vector_index import cosine_rank

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Store handle passed into every memory operation.

    Wraps one SQLAlchemy session plus the embedding provider. Every query is
    filtered by user_id; by-id lookups on foreign rows raise OwnershipError.
    Database failures roll the session back and surface as StoreError.
    """

    def __init__(self, db: Session, embedder: EmbeddingProvider):
        self.db = db
        self.embedder = embedder

    # -- plumbing -----------------------------------------------------------

    @contextmanager
    def transaction(self):
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Transaction rolled back: %s", exc)
            raise StoreError(str(exc)) from exc

    @contextmanager
    def reading(self):
        try:
            yield self.db
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(str(exc)) from exc

    def embed(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ProviderError("cannot embed empty text")
        try:
            vector = self.embedder.embed(text)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"{type(self.embedder).__name__} failed: {exc}") from exc
        if not vector:
            raise ProviderError("embedding provider returned an empty vector")
        return [float(x) for x in vector]

    # -- memories -----------------------------------------------------------

    def add(self, memory: Memory) -> Memory:
        with self.transaction() as db:
            db.add(memory)
        with self.reading() as db:
            db.refresh(memory)
        return memory

    def get(self, user_id: str, memory_id: str) -> Memory:
        with self.reading() as db:
            mem = db.get(Memory, memory_id)
        if mem is None:
            raise NotFoundError(f"memory {memory_id} not found")
        if mem.user_id != user_id:
            raise OwnershipError(f"memory {memory_id} does not belong to user {user_id}")
        return mem

    def memories_for_user(self, user_id: str, memory_type: Optional[str] = None,
                          limit: Optional[int] = None, offset: int = 0) -> List[Memory]:
        """Owned memories, oldest first."""
        with self.reading() as db:
            q = db.query(Memory).filter(Memory.user_id == user_id)
            if memory_type:
                q = q.filter(Memory.memory_type == memory_type)
            q = q.order_by(Memory.created_at.asc(), Memory.id.asc()).offset(offset)
            if limit is not None:
                q = q.limit(limit)
            return q.all()

    def count(self, user_id: str) -> int:
        with self.reading() as db:
            return db.query(Memory).filter(Memory.user_id == user_id).count()

    def below_relevance(self, user_id: str, threshold: float) -> List[Memory]:
        with self.reading() as db:
            return (db.query(Memory)
                    .filter(Memory.user_id == user_id, Memory.relevance_score < threshold)
                    .order_by(Memory.relevance_score.asc())
                    .all())

    def unembedded(self, user_id: str) -> List[Memory]:
        with self.reading() as db:
            return (db.query(Memory)
                    .filter(Memory.user_id == user_id, Memory.embedding.is_(None))
                    .order_by(Memory.created_at.asc())
                    .all())

    def search(self, user_id: str, vector: List[float], threshold: float,
               limit: Optional[int] = None, exclude: Iterable[str] = ()) -> List[Tuple[Memory, float]]:
        """Owned, embedded memories with cosine similarity >= threshold, best first."""
        skip = set(exclude)
        with self.reading() as db:
            rows = (db.query(Memory)
                    .filter(Memory.user_id == user_id, Memory.embedding.isnot(None))
                    .all())
        rows = [m for m in rows if m.id not in skip]
        by_id = {m.id: m for m in rows}
        hits = cosine_rank(vector, [(m.id, m.embedding) for m in rows], threshold, limit)
        return [(by_id[mid], sim) for mid, sim in hits]

    def update(self, memory: Memory, **fields) -> Memory:
        with self.transaction():
            for name, value in fields.items():
                setattr(memory, name, value)
            memory.updated_at = utcnow()
        return memory

    def delete(self, memory: Memory):
        with self.transaction() as db:
            db.delete(memory)

    def record_access(self, user_id: str, memory_ids: Iterable[str], boost: float) -> int:
        ids = list(memory_ids)
        if not ids:
            return 0
        now = utcnow()
        with self.transaction() as db:
            rows = (db.query(Memory)
                    .filter(Memory.user_id == user_id, Memory.id.in_(ids))
                    .all())
            for m in rows:
                m.access_count = (m.access_count or 0) + 1
                m.last_accessed = now
                m.relevance_score = min(1.0, (m.relevance_score or 0.0) * boost)
        return len(rows)

    # -- clusters -----------------------------------------------------------

    def clusters_for_user(self, user_id: str) -> List[MemoryCluster]:
        with self.reading() as db:
            return (db.query(MemoryCluster)
                    .filter(MemoryCluster.user_id == user_id)
                    .order_by(MemoryCluster.memory_count.desc(), MemoryCluster.created_at.asc())
                    .all())

    def get_cluster(self, user_id: str, cluster_id: str) -> MemoryCluster:
        with self.reading() as db:
            cluster = db.get(MemoryCluster, cluster_id)
        if cluster is None:
            raise NotFoundError(f"cluster {cluster_id} not found")
        if cluster.user_id != user_id:
            raise OwnershipError(f"cluster {cluster_id} does not belong to user {user_id}")
        return cluster

    def add_cluster(self, cluster: MemoryCluster) -> MemoryCluster:
        with self.transaction() as db:
            db.add(cluster)
        return cluster

    def delete_cluster(self, cluster: MemoryCluster):
        with self.transaction() as db:
            db.delete(cluster)

    def cluster_members(self, user_id: str, cluster_id: str) -> List[Memory]:
        with self.reading() as db:
            return (db.query(Memory)
                    .filter(Memory.user_id == user_id, Memory.cluster_id == cluster_id)
                    .order_by(Memory.relevance_score.desc())
                    .all())
