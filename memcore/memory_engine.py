# memcore/memory_engine.py
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from memcore import clusters, dedup, extraction, maintenance, retriever, writer
from memcore.config import RETRIEVE_K, SIMILARITY_THRESHOLD
from memcore.data_models import ExtractionConfig, MemoryRecord, SaveOptions
from memcore.embeddings import EmbeddingProvider
from memcore.llm import CompletionProvider
from memcore.store import MemoryStore
from memcore.summarizer import Summarizer


class MemoryEngine:
    """One user-facing object per session: store handle plus optional summarizer."""

    def __init__(self, db: Session, embedder: EmbeddingProvider,
                 completer: Optional[CompletionProvider] = None):
        self.store = MemoryStore(db, embedder)
        self.summarizer = Summarizer(completer) if completer is not None else None

    # writes

    def save_memory(self, user_id: str, content: str, options: Optional[SaveOptions] = None) -> MemoryRecord:
        return writer.save_memory(self.store, content, user_id, options, self.summarizer)

    def save_from_messages(self, user_id: str, messages: List[Dict],
                           config: Optional[ExtractionConfig] = None) -> List[MemoryRecord]:
        candidates = extraction.extract_memory_candidates(messages, config)
        return extraction.save_extracted_memories(self.store, candidates, user_id, config, self.summarizer)

    def delete_memory(self, user_id: str, memory_id: str):
        memory = self.store.get(user_id, memory_id)
        cluster_id = memory.cluster_id
        self.store.delete(memory)
        if cluster_id:
            clusters.refresh_clusters(self.store, user_id, {cluster_id})

    # reads

    def retrieve_relevant(self, user_id: str, context: str, limit: int = RETRIEVE_K,
                          similarity_threshold: float = SIMILARITY_THRESHOLD, adaptive: bool = False,
                          defer=None):
        if adaptive:
            return retriever.get_relevant_memories_adaptive(self.store, user_id, context, defer=defer)
        return retriever.get_relevant_memories(self.store, user_id, context, limit,
                                               similarity_threshold, defer=defer)

    def memory_context(self, user_id: str, context: str, limit: int = 3,
                       similarity_threshold: float = 0.4) -> str:
        memories = self.retrieve_relevant(user_id, context, limit, similarity_threshold)
        return retriever.format_memory_context(memories)

    def record_access(self, user_id: str, memory_id: str) -> MemoryRecord:
        memory = self.store.get(user_id, memory_id)
        retriever.record_memory_access(self.store, user_id, [memory.id])
        return MemoryRecord.from_row(memory)

    def list_memories(self, user_id: str, memory_type: Optional[str] = None,
                      limit: Optional[int] = None, offset: int = 0) -> List[MemoryRecord]:
        rows = self.store.memories_for_user(user_id, memory_type, limit, offset)
        return [MemoryRecord.from_row(m) for m in rows]

    def stats(self, user_id: str):
        return maintenance.get_memory_stats(self.store, user_id)

    def efficiency(self, user_id: str):
        return maintenance.get_memory_efficiency_metrics(self.store, user_id)

    def clusters(self, user_id: str):
        return clusters.get_memory_clusters(self.store, user_id)

    def cluster_memories(self, user_id: str, cluster_id: str):
        return clusters.get_memories_by_cluster(self.store, user_id, cluster_id)

    # maintenance

    def optimize(self, user_id: str):
        return maintenance.optimize_memory_system(self.store, user_id)

    def cleanup(self, user_id: str, action: str) -> int:
        if action == "dedup":
            return dedup.remove_duplicate_memories(self.store, user_id)
        if action == "consolidate":
            return dedup.consolidate_similar_memories(self.store, user_id)
        if action == "prune":
            return maintenance.prune_low_relevance_memories(self.store, user_id)
        if action == "decay":
            return maintenance.decay_memory_relevance(self.store, user_id)
        if action == "summarize":
            if self.summarizer is None:
                return 0
            return maintenance.summarize_long_memories(self.store, self.summarizer, user_id)
        raise ValueError(f"unknown cleanup action: {action}")

    def regenerate_embeddings(self, user_id: str) -> int:
        return maintenance.backfill_embeddings(self.store, user_id)
