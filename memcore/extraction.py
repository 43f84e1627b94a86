# memcore/extraction.py
import logging
from typing import Dict, List, Optional
from rapidfuzz import fuzz
from memcore.classifier import determine_memory_type, is_question
from memcore.data_models import ExtractionConfig, MemoryCandidate, MemoryRecord, SaveOptions
from memcore.errors import MemoryCoreError
from memcore.store import MemoryStore
from memcore.summarizer import Summarizer
from memcore.utils import preview
from memcore.writer import save_memory

logger = logging.getLogger(__name__)

TYPE_CONFIDENCE = {
    "personal": 0.9,
    "preference": 0.85,
    "technical": 0.8,
    "project": 0.75,
}
NEAR_DUPLICATE_RATIO = 95


def _is_near_duplicate(content: str, kept: List[MemoryCandidate]) -> bool:
    return any(fuzz.token_set_ratio(content.lower(), c.content.lower()) >= NEAR_DUPLICATE_RATIO
               for c in kept)


def _message_text(content) -> str:
    """Plain text of a chat message; list-of-parts content keeps only its text parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return " ".join(part["text"] for part in content
                        if isinstance(part, dict) and part.get("type") == "text"
                        and isinstance(part.get("text"), str))
    return ""


def extract_memory_candidates(messages: List[Dict], config: Optional[ExtractionConfig] = None) -> List[MemoryCandidate]:
    """
    Pick memory-worthy user statements out of a chat transcript.

    Each message is classified once, so a message matching several
    categories yields a single candidate of its highest-precedence type.
    Questions, assistant turns and uncategorized chatter are skipped.
    """
    config = config or ExtractionConfig()
    candidates: List[MemoryCandidate] = []
    for message in messages:
        if message.get("role") != "user":
            continue
        content = _message_text(message.get("content")).strip()
        if not (config.min_content_length <= len(content) <= config.max_content_length):
            continue
        if is_question(content):
            continue
        memory_type = determine_memory_type(content)
        confidence = TYPE_CONFIDENCE.get(memory_type)
        if confidence is None or confidence < config.extraction_threshold:
            continue
        if _is_near_duplicate(content, candidates):
            continue
        candidates.append(MemoryCandidate(content=content, confidence=confidence, memory_type=memory_type))

    candidates.sort(key=lambda c: c.confidence, reverse=True)
    return candidates[:config.max_memories_per_conversation]


def save_extracted_memories(store: MemoryStore, candidates: List[MemoryCandidate], user_id: str,
                            config: Optional[ExtractionConfig] = None,
                            summarizer: Optional[Summarizer] = None) -> List[MemoryRecord]:
    config = config or ExtractionConfig()
    options = SaveOptions(
        source="user",
        summarize=config.enable_summarization,
        detect_duplicates=config.enable_duplicate_detection,
    )
    saved = []
    for candidate in candidates:
        try:
            saved.append(save_memory(store, candidate.content, user_id, options, summarizer))
        except MemoryCoreError as exc:
            logger.warning("Failed to save extracted memory %r: %s", preview(candidate.content), exc)
            continue
        logger.info("Saved extracted memory (%s, confidence %.2f): %s",
                    candidate.memory_type, candidate.confidence, preview(candidate.content))
    return saved
