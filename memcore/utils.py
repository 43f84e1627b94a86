# memcore/utils.py
from datetime import datetime
from typing import List, Optional, Tuple


def estimate_tokens(text: str) -> int:
    words = len(text.split())
    return max(1, int(words / 0.75))


def trunc_to_budget(items: List[Tuple[str, float]], budget: int, estimator) -> List[Tuple[str, float]]:
    kept = []
    used = 0
    for text, score in items:
        t = estimator(text)
        if used + t > budget:
            break
        kept.append((text, score))
        used += t
    return kept


def days_since(moment: Optional[datetime], now: datetime) -> float:
    """Days elapsed since moment; a missing moment counts as the epoch."""
    if moment is None:
        moment = datetime(1970, 1, 1)
    return (now - moment).total_seconds() / 86400.0


def preview(text: str, size: int = 50) -> str:
    return text if len(text) <= size else text[:size] + "..."
