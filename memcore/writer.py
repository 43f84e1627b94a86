# memcore/writer.py
import logging
from typing import Dict, List, Optional, Tuple
from memcore.classifier import (calculate_importance_score, determine_memory_type,
                                extract_semantic_tags, is_question)
from memcore.clusters import find_or_create_cluster, refresh_cluster
from memcore.config import MERGE_SEPARATOR
from memcore.data_models import MemoryRecord, SaveOptions
from memcore.errors import MemoryCoreError, ProviderError, StoreError, ValidationError
from memcore.models import Memory
from memcore.store import MemoryStore
from memcore.summarizer import Summarizer, should_summarize

logger = logging.getLogger(__name__)


def validate_content(content: str, user_id: str, level: str = "normal") -> str:
    if not user_id or not str(user_id).strip():
        raise ValidationError("user_id is required")
    if content is None or not str(content).strip():
        raise ValidationError("memory content must not be empty")
    text = str(content).strip()
    if level == "lenient":
        return text
    if len(text) < 3:
        raise ValidationError("memory content is too short")
    if level == "strict":
        if is_question(text):
            raise ValidationError("questions are not stored as memories")
        if len(text.split()) < 3:
            raise ValidationError("memory content needs at least three words")
    return text


def merge_memory_content(store: MemoryStore, target: Memory, extra: str) -> Memory:
    """Append extra to target's content as additional information and re-embed it."""
    content = f"{target.content}{MERGE_SEPARATOR}{extra}"
    fields = {"content": content}
    try:
        fields["embedding"] = store.embed(content)
    except ProviderError as exc:
        logger.warning("Merged memory %s keeps its old embedding: %s", target.id, exc)
    return store.update(target, **fields)


def _refresh_cluster_of(store: MemoryStore, user_id: str, cluster_id: Optional[str]):
    if cluster_id is None:
        return
    try:
        refresh_cluster(store, store.get_cluster(user_id, cluster_id))
    except StoreError as exc:
        logger.warning("Cluster rollup for %s not refreshed: %s", cluster_id, exc)


def save_memory(store: MemoryStore, content: str, user_id: str,
                options: Optional[SaveOptions] = None,
                summarizer: Optional[Summarizer] = None) -> MemoryRecord:
    """
    Store one fact for user_id, or fold it into a near-duplicate.

    The write never depends on the embedding provider: if embedding fails the
    row is stored unembedded (and skips the duplicate check). Datastore
    failures surface as StoreError.
    """
    options = options or SaveOptions()
    text = validate_content(content, user_id, options.validation_level)
    memory_type = determine_memory_type(text)

    if options.summarize and summarizer is not None and should_summarize(text):
        text = summarizer.summarize_memory_with_type(text, memory_type)

    embedding = None
    try:
        embedding = store.embed(text)
    except ProviderError as exc:
        logger.warning("Storing memory for %s without embedding: %s", user_id, exc)

    if embedding is not None and options.detect_duplicates:
        hits = store.search(user_id, embedding, options.duplicate_threshold, limit=1)
        if hits:
            existing, similarity = hits[0]
            merge_memory_content(store, existing, text)
            logger.info("Merged new content into memory %s (similarity %.3f)", existing.id, similarity)
            _refresh_cluster_of(store, user_id, existing.cluster_id)
            return MemoryRecord.from_row(existing)

    tags = extract_semantic_tags(text)
    cluster_id = None
    if embedding is not None and options.assign_cluster:
        cluster_id = find_or_create_cluster(store, user_id, embedding, tags, memory_type)

    memory = store.add(Memory(
        user_id=user_id,
        content=text,
        embedding=embedding,
        relevance_score=1.0,
        access_count=0,
        semantic_tags=tags,
        memory_type=memory_type,
        importance_score=calculate_importance_score(text, memory_type),
        cluster_id=cluster_id,
        source=options.source,
    ))

    _refresh_cluster_of(store, user_id, cluster_id)
    logger.info("Saved memory %s for %s (type=%s, importance=%.2f, tags=%s)",
                memory.id, user_id, memory.memory_type, memory.importance_score, ", ".join(tags))
    return MemoryRecord.from_row(memory)


def save_memories_batch(store: MemoryStore, items: List[Dict],
                        summarizer: Optional[Summarizer] = None) -> Tuple[List[MemoryRecord], List[Dict]]:
    """items: [{"content", "user_id", optional "source"}]; one failure does not stop the rest."""
    results, errors = [], []
    for item in items:
        options = SaveOptions(source=item.get("source", "user"))
        try:
            results.append(save_memory(store, item.get("content"), item.get("user_id"), options, summarizer))
        except MemoryCoreError as exc:
            logger.warning("Batch save failed for one memory: %s", exc)
            errors.append({"item": item, "error": str(exc)})
    return results, errors
