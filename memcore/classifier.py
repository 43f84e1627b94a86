# memcore/classifier.py
"""
Content heuristics for memories: semantic tags, memory type and importance.

MEMORY_TYPE_PATTERNS is the one place category keywords live. It is
evaluated top to bottom and the first category with a matching pattern wins,
so "My name is Alex and I work on the backend" is personal, not technical:

    personal > preference > project > technical > general
"""
import re
from collections import Counter
from typing import List, Tuple
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS


def _compile(*patterns):
    return tuple(re.compile(p, re.I) for p in patterns)


MEMORY_TYPE_PATTERNS: Tuple[Tuple[str, tuple], ...] = (
    ("personal", _compile(
        r"\bmy name(?: is|'s)\b", r"\bcall me\b", r"\bi work as\b", r"\bi work (?:at|for)\b",
        r"\bmy (?:job|role|title|occupation) is\b", r"\bi live in\b", r"\bi(?:'m| am) from\b",
        r"\bmy age is\b", r"\bi(?:'m| am) \d+ years old\b", r"\bmy (?:email|phone|location|birthday)\b",
        r"\bi(?:'m| am) an? (?:nurse|doctor|teacher|student|engineer|developer|designer|manager)\b",
        r"\bmy (?:wife|husband|partner|son|daughter|kids|children|family)\b",
    )),
    ("preference", _compile(
        r"\bi (?:really )?(?:like|love|prefer|enjoy|hate|dislike)\b", r"\bi don'?t like\b",
        r"\bmy favou?rite\b", r"\bi(?:'m| am) (?:into|interested in|passionate about|obsessed with)\b",
        r"\bi(?:'m| am) (?:not )?a fan of\b", r"\bi can'?t stand\b",
    )),
    ("project", _compile(
        r"\bprojects?\b", r"\bdeadlines?\b", r"\bmilestones?\b", r"\bsprints?\b", r"\broadmap\b",
        r"\bdeliverables?\b", r"\bobjectives?\b", r"\btimeline\b", r"\bgoals?\b",
        r"\bi(?:'m| am) (?:working on|building)\b",
    )),
    ("technical", _compile(
        r"\bprogramming\b", r"\bcod(?:e|ing)\b", r"\bsoftware\b", r"\bframeworks?\b", r"\bapis?\b",
        r"\bdatabases?\b", r"\bservers?\b", r"\bfrontend\b", r"\bbackend\b", r"\balgorithms?\b",
        r"\bdeploy(?:ment|ing)?\b", r"\bdebugg?ing\b", r"\bgit\b", r"\blibrar(?:y|ies)\b",
        r"\b(?:python|typescript|javascript|react|next\.?js|postgres(?:ql)?|sql|docker|kubernetes)\b",
    )),
)

DEFAULT_MEMORY_TYPE = "general"

TYPE_BASE_IMPORTANCE = {
    "personal": 0.7,
    "preference": 0.65,
    "project": 0.6,
    "technical": 0.6,
    "general": 0.5,
}

QUESTION_RE = re.compile(
    r"^(what|how|when|where|why|who|which|do you|can you|could you|would you|are you|is this|does this)\b",
    re.I,
)
_TOKEN_RE = re.compile(r"[a-z][a-z0-9'+#.-]*[a-z0-9+#]|[a-z]", re.I)
_NUMBER_RE = re.compile(r"\d")
_NAME_RE = re.compile(r"(?<=\s)[A-Z][a-z]+")
_DETAIL_RE = re.compile(r"\b(because|since|when)\b", re.I)


def matching_types(content: str) -> List[str]:
    """Every category whose patterns match, in precedence order."""
    return [name for name, patterns in MEMORY_TYPE_PATTERNS
            if any(p.search(content) for p in patterns)]


def determine_memory_type(content: str) -> str:
    for name, patterns in MEMORY_TYPE_PATTERNS:
        if any(p.search(content) for p in patterns):
            return name
    return DEFAULT_MEMORY_TYPE


def is_question(content: str) -> bool:
    text = content.strip()
    return bool(QUESTION_RE.match(text)) or text.endswith("?")


def extract_semantic_tags(content: str, max_tags: int = 5) -> List[str]:
    tokens = [t.lower().strip(".'") for t in _TOKEN_RE.findall(content or "")]
    tokens = [t for t in tokens
              if len(t) >= 3 and "'" not in t and not t.isdigit() and t not in ENGLISH_STOP_WORDS]
    if not tokens:
        return []
    first_seen = {}
    for i, t in enumerate(tokens):
        first_seen.setdefault(t, i)
    counts = Counter(tokens)
    ranked = sorted(counts, key=lambda t: (-counts[t], first_seen[t]))
    return ranked[:max_tags]


def calculate_importance_score(content: str, memory_type: str) -> float:
    score = TYPE_BASE_IMPORTANCE.get(memory_type, TYPE_BASE_IMPORTANCE[DEFAULT_MEMORY_TYPE])
    if len(content) > 100:
        score += 0.1
    if _NUMBER_RE.search(content):
        score += 0.1
    if _NAME_RE.search(content):
        score += 0.05
    if _DETAIL_RE.search(content):
        score += 0.05
    return round(max(0.0, min(1.0, score)), 4)
