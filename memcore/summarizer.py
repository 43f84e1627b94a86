# memcore/summarizer.py
import logging
from typing import Dict, List, Optional
from memcore.config import SUMMARIZE_MIN_CHARS
from memcore.errors import ProviderError
from memcore.llm import CompletionProvider

logger = logging.getLogger(__name__)

GENERAL_PROMPT = (
    "Summarize the following information in a concise, clear way that captures the key points "
    "for future reference. Keep it under 100 words and maintain the essential meaning. "
    "Focus on actionable or important details."
)

TYPE_PROMPTS = {
    "personal": "Summarize this personal information in a clear, concise way. Focus on key details "
                "like name, role, location, or important personal facts. Keep it under 100 words.",
    "preference": "Summarize this preference or opinion in a clear way. Focus on what the person likes, "
                  "dislikes, or prefers. Keep it under 100 words.",
    "technical": "Summarize this technical information in a concise way. Focus on technologies, tools, "
                 "skills, or technical preferences. Keep it under 100 words.",
    "project": "Summarize this project information in a clear way. Focus on goals, deadlines, "
               "requirements, or project details. Keep it under 100 words.",
    "general": GENERAL_PROMPT,
}


def should_summarize(content: str) -> bool:
    return len(content) > SUMMARIZE_MIN_CHARS


class Summarizer:
    """Best-effort condensation of long memories; never fails the caller."""

    def __init__(self, completer: CompletionProvider):
        self.completer = completer

    def _complete(self, prompt: str, content: str) -> str:
        try:
            summary = self.completer.complete(prompt, content)
        except ProviderError as exc:
            logger.warning("Summarization failed, keeping original content: %s", exc)
            return content
        summary = (summary or "").strip()
        return summary or content

    def summarize_memory(self, content: str) -> str:
        return self._complete(GENERAL_PROMPT, content)

    def summarize_memory_with_type(self, content: str, memory_type: str) -> str:
        return self._complete(TYPE_PROMPTS.get(memory_type, GENERAL_PROMPT), content)

    def summarize_memories(self, items: List[Dict[str, Optional[str]]]) -> List[Dict[str, str]]:
        """items: [{"content": ..., "type": optional memory type}]"""
        results = []
        for item in items:
            content = item["content"]
            if not should_summarize(content):
                summarized = content
            elif item.get("type"):
                summarized = self.summarize_memory_with_type(content, item["type"])
            else:
                summarized = self.summarize_memory(content)
            results.append({"original": content, "summarized": summarized})
        return results
