# memcore/dedup.py
"""
Near-duplicate handling over one user's memories.

Both passes walk the user's memories oldest first and run one similarity
search per surviving memory, so they are O(n^2) in the worst case. That is
fine for personal memory stores of a few hundred rows.
"""
import logging
from typing import List
from memcore.clusters import refresh_clusters
from memcore.config import CONSOLIDATE_THRESHOLD, DEDUP_THRESHOLD, MERGE_SEPARATOR
from memcore.data_models import MemoryMatch
from memcore.errors import ProviderError, StoreError
from memcore.models import Memory, utcnow
from memcore.store import MemoryStore
from memcore.utils import preview

logger = logging.getLogger(__name__)


def _vector_for(store: MemoryStore, memory: Memory):
    if memory.embedding is not None:
        return memory.embedding
    return store.embed(memory.content)


def _outranks(a: Memory, b: Memory) -> bool:
    """True when a should be kept over b."""
    if (a.relevance_score or 0.0) != (b.relevance_score or 0.0):
        return (a.relevance_score or 0.0) > (b.relevance_score or 0.0)
    if a.created_at != b.created_at:
        return a.created_at < b.created_at
    return a.id < b.id


def find_similar_memories(store: MemoryStore, content: str, user_id: str,
                          threshold: float = 0.7, limit: int = 5) -> List[MemoryMatch]:
    """Owned memories similar to content. The caller filters out self matches."""
    try:
        vector = store.embed(content)
    except ProviderError as exc:
        logger.warning("Similarity lookup skipped: %s", exc)
        return []
    return [MemoryMatch(id=m.id, content=m.content, similarity=sim)
            for m, sim in store.search(user_id, vector, threshold, limit)]


def consolidate_similar_memories(store: MemoryStore, user_id: str,
                                 threshold: float = CONSOLIDATE_THRESHOLD) -> int:
    """Fold similar memories into the oldest one of each group; returns merges done."""
    memories = store.memories_for_user(user_id)
    by_id = {m.id: m for m in memories}
    order = [m.id for m in memories]
    processed = set()
    touched_clusters = set()
    consolidated = 0

    for anchor_id in order:
        if anchor_id in processed:
            continue
        processed.add(anchor_id)
        anchor = by_id[anchor_id]
        try:
            hits = store.search(user_id, _vector_for(store, anchor), threshold, exclude=processed)
        except (ProviderError, StoreError) as exc:
            logger.warning("Skipping consolidation of %s: %s", anchor_id, exc)
            continue

        for similar, similarity in hits:
            similar_id = similar.id
            processed.add(similar_id)
            cluster_id = similar.cluster_id
            merged = f"{anchor.content}{MERGE_SEPARATOR}{similar.content}"
            vector = None
            try:
                vector = store.embed(merged)
            except ProviderError as exc:
                logger.warning("Merged memory %s keeps its old embedding: %s", anchor_id, exc)
            try:
                with store.transaction() as db:
                    anchor.content = merged
                    if vector is not None:
                        anchor.embedding = vector
                    anchor.updated_at = utcnow()
                    db.delete(similar)
            except StoreError as exc:
                logger.warning("Could not merge %s into %s: %s", similar_id, anchor_id, exc)
                continue
            consolidated += 1
            touched_clusters.update(c for c in (cluster_id, anchor.cluster_id) if c)
            logger.debug("Merged %s into %s (similarity %.3f)", similar_id, anchor_id, similarity)

    if touched_clusters:
        try:
            refresh_clusters(store, user_id, touched_clusters)
        except StoreError as exc:
            logger.warning("Cluster rollups not refreshed after consolidation: %s", exc)
    logger.info("Consolidated %d similar memories for %s", consolidated, user_id)
    return consolidated


def remove_duplicate_memories(store: MemoryStore, user_id: str,
                              threshold: float = DEDUP_THRESHOLD) -> int:
    """
    Delete near-duplicates, keeping the higher relevance_score of each pair
    (the earlier one on a tie). Every surviving pair is compared while both
    are alive, so a second run right after finds nothing to remove.
    """
    memories = store.memories_for_user(user_id)
    by_id = {m.id: m for m in memories}
    order = [m.id for m in memories]
    removed_ids = set()
    touched_clusters = set()

    for anchor_id in order:
        if anchor_id in removed_ids:
            continue
        anchor = by_id[anchor_id]
        try:
            hits = store.search(user_id, _vector_for(store, anchor), threshold, exclude={anchor_id})
        except (ProviderError, StoreError) as exc:
            logger.warning("Skipping duplicate check of %s: %s", anchor_id, exc)
            continue

        for similar, _similarity in hits:
            loser = similar if _outranks(anchor, similar) else anchor
            loser_id, cluster_id, content = loser.id, loser.cluster_id, loser.content
            try:
                store.delete(loser)
            except StoreError as exc:
                logger.warning("Could not remove duplicate %s: %s", loser_id, exc)
                continue
            removed_ids.add(loser_id)
            if cluster_id:
                touched_clusters.add(cluster_id)
            logger.info("Removed duplicate memory %s: %s", loser_id, preview(content))
            if loser_id == anchor_id:
                break

    if touched_clusters:
        try:
            refresh_clusters(store, user_id, touched_clusters)
        except StoreError as exc:
            logger.warning("Cluster rollups not refreshed after dedup: %s", exc)
    logger.info("Removed %d duplicate memories for %s", len(removed_ids), user_id)
    return len(removed_ids)


def count_duplicate_memories(store: MemoryStore, user_id: str,
                             threshold: float = DEDUP_THRESHOLD) -> int:
    """How many memories remove_duplicate_memories would consider redundant; read only."""
    processed = set()
    duplicates = 0
    for memory in store.memories_for_user(user_id):
        if memory.id in processed:
            continue
        processed.add(memory.id)
        try:
            hits = store.search(user_id, _vector_for(store, memory), threshold, exclude=processed)
        except ProviderError:
            continue
        duplicates += len(hits)
        processed.update(m.id for m, _ in hits)
    return duplicates
