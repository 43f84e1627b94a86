# memcore/retriever.py
import logging
from functools import cmp_to_key
from typing import Callable, Iterable, List, Optional
from memcore.classifier import MEMORY_TYPE_PATTERNS
from memcore.config import (ACCESS_BOOST, RETRIEVE_K, SIMILARITY_THRESHOLD, SIMILARITY_TIE_MARGIN,
                            TOKEN_BUDGET)
from memcore.data_models import SimilarMemory
from memcore.errors import ProviderError, StoreError
from memcore.store import MemoryStore
from memcore.utils import estimate_tokens, trunc_to_budget

logger = logging.getLogger(__name__)

_PATTERNS = dict(MEMORY_TYPE_PATTERNS)


def _mentions(context: str, memory_type: str) -> bool:
    return any(p.search(context) for p in _PATTERNS[memory_type])


def _compare(a: SimilarMemory, b: SimilarMemory) -> int:
    # negative when a ranks above b
    if abs(a.similarity - b.similarity) > SIMILARITY_TIE_MARGIN:
        return -1 if a.similarity > b.similarity else 1
    for field in ("relevance_score", "importance_score", "access_count", "similarity"):
        x, y = getattr(a, field), getattr(b, field)
        if x != y:
            return -1 if x > y else 1
    return 0


def rank_memories(items: List[SimilarMemory]) -> List[SimilarMemory]:
    """
    Best first. Similarity decides unless two items are within
    SIMILARITY_TIE_MARGIN of each other; near-ties go to the higher
    relevance_score, then importance_score, then access_count.
    """
    return sorted(items, key=cmp_to_key(_compare))


def get_relevant_memories(store: MemoryStore, user_id: str, context: str,
                          limit: int = RETRIEVE_K,
                          similarity_threshold: float = SIMILARITY_THRESHOLD,
                          defer: Optional[Callable[[List[str]], None]] = None) -> List[SimilarMemory]:
    """
    Top memories for context, best first, each at or above similarity_threshold.

    Sits on the hot path of every chat turn: embedding or store failures
    give an empty list instead of an exception. Returned items are snapshots,
    so the access bookkeeping afterwards cannot change them.
    """
    if not user_id or not context or not context.strip() or limit <= 0:
        return []
    try:
        query = store.embed(context)
    except ProviderError as exc:
        logger.warning("Retrieval skipped, context could not be embedded: %s", exc)
        return []
    try:
        hits = store.search(user_id, query, similarity_threshold)
    except StoreError as exc:
        logger.warning("Retrieval failed for %s: %s", user_id, exc)
        return []

    ranked = [SimilarMemory.from_row(m, similarity=sim) for m, sim in hits
              if sim >= similarity_threshold]
    results = rank_memories(ranked)[:limit]

    ids = [m.id for m in results]
    if ids:
        try:
            if defer is not None:
                defer(ids)
            else:
                record_memory_access(store, user_id, ids)
        except Exception:
            logger.warning("Access bookkeeping failed for %s", user_id, exc_info=True)
    return results


def record_memory_access(store: MemoryStore, user_id: str, memory_ids: Iterable[str]) -> int:
    return store.record_access(user_id, memory_ids, ACCESS_BOOST)


def calculate_adaptive_threshold(memory_count: int, context: str) -> float:
    threshold = 0.6
    if memory_count < 10:
        threshold = 0.4
    elif memory_count < 50:
        threshold = 0.5
    if _mentions(context, "technical"):
        threshold -= 0.1
    if _mentions(context, "personal") or _mentions(context, "preference") or "name" in context.lower():
        threshold -= 0.1
    if _mentions(context, "project"):
        threshold -= 0.05
    return round(max(threshold, 0.2), 4)


def get_optimal_memory_limit(memory_count: int, context: str) -> int:
    limit = 5
    if memory_count > 100:
        limit = 8
    elif memory_count > 50:
        limit = 6
    if _mentions(context, "technical"):
        limit += 2
    if len(context) > 100:
        limit += 1
    return min(limit, 10)


def get_relevant_memories_adaptive(store: MemoryStore, user_id: str, context: str,
                                   defer=None) -> List[SimilarMemory]:
    try:
        count = store.count(user_id)
    except StoreError as exc:
        logger.warning("Adaptive retrieval failed for %s: %s", user_id, exc)
        return []
    return get_relevant_memories(
        store, user_id, context,
        limit=get_optimal_memory_limit(count, context),
        similarity_threshold=calculate_adaptive_threshold(count, context),
        defer=defer,
    )


def format_memory_context(memories: List[SimilarMemory], token_budget: int = TOKEN_BUDGET) -> str:
    """Prompt block listing the memories, trimmed to token_budget."""
    items = [(m.content, m.similarity) for m in memories]
    kept = trunc_to_budget(items, token_budget, estimate_tokens)
    if not kept:
        return ""
    lines = "\n".join(f"• {text}" for text, _ in kept)
    return f"\n\nUser Context:\n{lines}\n"
