# memcore/maintenance.py
import logging
from collections import Counter
from datetime import datetime
from typing import Optional
from memcore.config import (ARCHIVED_RELEVANCE, CONSOLIDATE_THRESHOLD, DECAY_FACTOR, DECAY_IDLE_DAYS,
                            DEDUP_THRESHOLD, LOW_RELEVANCE_THRESHOLD, MIN_ACCESS_TO_KEEP,
                            PRUNE_THRESHOLD, STALE_AFTER_DAYS)
from memcore.data_models import EfficiencyMetrics, MemoryRecord, MemoryStats, OptimizationResult
from memcore.dedup import consolidate_similar_memories, count_duplicate_memories
from memcore.errors import ProviderError, StoreError
from memcore.models import utcnow
from memcore.store import MemoryStore
from memcore.summarizer import Summarizer, should_summarize
from memcore.utils import days_since, preview

logger = logging.getLogger(__name__)


def prune_low_relevance_memories(store: MemoryStore, user_id: str,
                                 relevance_threshold: float = PRUNE_THRESHOLD,
                                 now: Optional[datetime] = None) -> int:
    """
    Archive stale, rarely used low-relevance memories by dropping their
    relevance to the archive floor. Nothing is deleted.

    A memory is archived only if it is below relevance_threshold AND has not
    been accessed for more than STALE_AFTER_DAYS AND was accessed fewer than
    MIN_ACCESS_TO_KEEP times. Memories already at the floor are left alone.
    """
    now = now or utcnow()
    pruned = 0
    for memory in store.below_relevance(user_id, relevance_threshold):
        if memory.relevance_score <= ARCHIVED_RELEVANCE:
            continue
        if days_since(memory.last_accessed, now) <= STALE_AFTER_DAYS:
            continue
        if (memory.access_count or 0) >= MIN_ACCESS_TO_KEEP:
            continue
        memory_id, content = memory.id, memory.content
        try:
            store.update(memory, relevance_score=ARCHIVED_RELEVANCE)
        except StoreError as exc:
            logger.warning("Could not archive %s: %s", memory_id, exc)
            continue
        pruned += 1
        logger.info("Archived low relevance memory: %s", preview(content))
    logger.info("Pruned %d low relevance memories for %s", pruned, user_id)
    return pruned


def decay_memory_relevance(store: MemoryStore, user_id: str, now: Optional[datetime] = None,
                           factor: float = DECAY_FACTOR, idle_days: float = DECAY_IDLE_DAYS) -> int:
    """Multiply relevance by factor for memories idle over idle_days, never below the archive floor."""
    now = now or utcnow()
    decayed = 0
    with store.transaction():
        for memory in store.memories_for_user(user_id):
            score = memory.relevance_score or 0.0
            if score <= ARCHIVED_RELEVANCE:
                continue
            if days_since(memory.last_accessed or memory.created_at, now) <= idle_days:
                continue
            memory.relevance_score = max(score * factor, ARCHIVED_RELEVANCE)
            decayed += 1
    return decayed


def optimize_memory_system(store: MemoryStore, user_id: str) -> OptimizationResult:
    total = store.count(user_id)
    logger.info("Starting memory optimization for %s (%d memories)", user_id, total)
    pruned = prune_low_relevance_memories(store, user_id, PRUNE_THRESHOLD)
    consolidated = consolidate_similar_memories(store, user_id, CONSOLIDATE_THRESHOLD)
    try:
        decay_memory_relevance(store, user_id)
    except StoreError as exc:
        logger.warning("Relevance decay failed for %s: %s", user_id, exc)
    logger.info("Memory optimization completed: %d pruned, %d consolidated", pruned, consolidated)
    return OptimizationResult(pruned=pruned, consolidated=consolidated, total_memories=total)


def get_memory_stats(store: MemoryStore, user_id: str) -> MemoryStats:
    memories = store.memories_for_user(user_id)
    clusters = store.clusters_for_user(user_id)
    total = len(memories)
    if not total:
        return MemoryStats(total_clusters=len(clusters))
    top = sorted(memories, key=lambda m: m.relevance_score or 0.0, reverse=True)[:5]
    return MemoryStats(
        total_memories=total,
        total_clusters=len(clusters),
        avg_relevance_score=sum(m.relevance_score or 0.0 for m in memories) / total,
        avg_importance_score=sum(m.importance_score or 0.0 for m in memories) / total,
        total_access_count=sum(m.access_count or 0 for m in memories),
        type_distribution=dict(Counter(m.memory_type for m in memories)),
        most_relevant_memories=[MemoryRecord.from_row(m) for m in top],
    )


def get_memory_efficiency_metrics(store: MemoryStore, user_id: str) -> EfficiencyMetrics:
    """0-100 score: 50% average relevance, 30% share not low-relevance, 20% share not duplicated."""
    memories = store.memories_for_user(user_id)
    total = len(memories)
    if not total:
        return EfficiencyMetrics()
    avg_relevance = sum(m.relevance_score or 0.0 for m in memories) / total
    low = sum(1 for m in memories if (m.relevance_score or 0.0) < LOW_RELEVANCE_THRESHOLD)
    duplicates = count_duplicate_memories(store, user_id, DEDUP_THRESHOLD)
    score = (avg_relevance * 50
             + max(0.0, 1 - low / total) * 30
             + max(0.0, 1 - duplicates / total) * 20)
    return EfficiencyMetrics(
        total_memories=total,
        avg_relevance_score=avg_relevance,
        low_relevance_count=low,
        duplicate_count=duplicates,
        efficiency_score=round(max(0.0, min(100.0, score))),
    )


def backfill_embeddings(store: MemoryStore, user_id: str) -> int:
    """Embed memories that were saved while the provider was down."""
    filled = 0
    for memory in store.unembedded(user_id):
        try:
            vector = store.embed(memory.content)
        except ProviderError as exc:
            logger.warning("Still cannot embed %s: %s", memory.id, exc)
            continue
        try:
            store.update(memory, embedding=vector)
        except StoreError as exc:
            logger.warning("Could not store embedding for %s: %s", memory.id, exc)
            continue
        filled += 1
    logger.info("Backfilled %d embeddings for %s", filled, user_id)
    return filled


def summarize_long_memories(store: MemoryStore, summarizer: Summarizer, user_id: str) -> int:
    """Condense stored over-long memories in place; the embedding follows the new text."""
    summarized = 0
    for memory in store.memories_for_user(user_id):
        if not should_summarize(memory.content):
            continue
        shorter = summarizer.summarize_memory_with_type(memory.content, memory.memory_type)
        if shorter == memory.content:
            continue
        fields = {"content": shorter}
        try:
            fields["embedding"] = store.embed(shorter)
        except ProviderError as exc:
            logger.warning("Summary of %s stored with its old embedding: %s", memory.id, exc)
        memory_id = memory.id
        try:
            store.update(memory, **fields)
        except StoreError as exc:
            logger.warning("Could not store summary of %s: %s", memory_id, exc)
            continue
        summarized += 1
    return summarized
