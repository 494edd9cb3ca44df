from __future__ import annotations

import re
from typing import Iterable, Sequence

from ats_scoring.core.config.scoring import get_scoring_int, get_scoring_value

_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")

METRIC_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\d+%"),
    re.compile(r"[$€£][\d,]+"),
    re.compile(r"#\d+"),
    re.compile(r"\b\d+x\b", re.IGNORECASE),
    re.compile(r"\b\d+[KMB]\b"),
)

_CAPITALIZED_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
_ACRONYM_RE = re.compile(r"\b[A-Z]{2,}\b")

TECHNICAL_TERMS: tuple[str, ...] = (
    # languages
    r"javascript", r"typescript", r"python", r"java", r"c\+\+", r"c#", r"ruby", r"php",
    r"swift", r"kotlin", r"golang", r"rust", r"scala",
    # frontend
    r"react", r"vue", r"angular", r"next\.js", r"svelte", r"html", r"css", r"sass",
    r"tailwind", r"bootstrap",
    # backend
    r"node\.js", r"express", r"django", r"flask", r"fastapi", r"spring", r"laravel",
    r"\.net", r"asp\.net",
    # data stores
    r"sql", r"nosql", r"mongodb", r"postgresql", r"mysql", r"redis", r"elasticsearch",
    r"dynamodb", r"cassandra",
    # cloud and ops
    r"aws", r"azure", r"gcp", r"docker", r"kubernetes", r"k8s", r"terraform", r"ansible",
    r"jenkins", r"ci/cd", r"gitlab", r"github",
    # architecture
    r"rest api", r"graphql", r"grpc", r"microservices", r"serverless", r"api", r"websocket",
    # process
    r"agile", r"scrum", r"kanban", r"devops", r"tdd", r"test-driven",
    # soft skills
    r"leadership", r"communication", r"problem-solving", r"teamwork", r"analytical",
    r"strategic",
)
_TECHNICAL_TERM_RES = tuple(
    re.compile(rf"(?<![\w]){term}(?![\w])", re.IGNORECASE) for term in TECHNICAL_TERMS
)


def normalize_text(text: str) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    lowered = _PUNCT_RE.sub(" ", (text or "").lower())
    return _SPACE_RE.sub(" ", lowered).strip()


def min_keyword_length() -> int:
    return get_scoring_int("keywords.min_keyword_length", 3)


def tokenize(text: str, min_length: int | None = None) -> list[str]:
    limit = min_keyword_length() if min_length is None else min_length
    return [word for word in normalize_text(text).split(" ") if word and len(word) >= limit]


def ngram_sizes() -> tuple[int, ...]:
    raw = get_scoring_value("keywords.ngram_sizes", [3, 4, 5, 6])
    sizes = tuple(int(size) for size in raw if int(size) > 0)
    return sizes or (3, 4, 5, 6)


def extract_ngrams(text: str, sizes: Sequence[int] | None = None) -> list[str]:
    tokens = tokenize(text)
    ngrams: list[str] = []
    for n in sizes or ngram_sizes():
        if len(tokens) < n:
            continue
        for index in range(len(tokens) - n + 1):
            ngrams.append(" ".join(tokens[index : index + n]))
    return ngrams


def jaccard_similarity(left: set[str], right: set[str]) -> float:
    if not left and not right:
        return 1.0
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)


def overlap_percentage(expected: set[str], actual: set[str]) -> float:
    """Share of `expected` found in `actual`, on a 0-100 scale."""
    if not expected:
        return 0.0
    return len(expected & actual) / len(expected) * 100


def find_missing(expected: Iterable[str], actual: set[str]) -> list[str]:
    seen: set[str] = set()
    missing: list[str] = []
    for item in expected:
        if item in actual or item in seen:
            continue
        seen.add(item)
        missing.append(item)
    return missing


def dedupe_preserve_order(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def find_metrics(text: str) -> list[str]:
    found: list[str] = []
    for pattern in METRIC_PATTERNS:
        found.extend(pattern.findall(text or ""))
    return found


def count_metrics(text: str) -> int:
    return len(find_metrics(text))


def extract_keywords(text: str, max_keywords: int | None = None) -> list[str]:
    """Pull likely skill keywords: known technical terms, capitalized terms and acronyms."""
    limit = max_keywords if max_keywords is not None else get_scoring_int("keywords.max_keywords", 100)
    candidates: list[str] = []
    for pattern in _TECHNICAL_TERM_RES:
        candidates.extend(pattern.findall(text or ""))
    candidates.extend(_CAPITALIZED_RE.findall(text or ""))
    candidates.extend(_ACRONYM_RE.findall(text or ""))
    return dedupe_preserve_order(candidates)[:limit]


def edit_distance(left: str, right: str) -> int:
    if not left:
        return len(right)
    if not right:
        return len(left)
    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i] + [0] * len(right)
        for j, right_char in enumerate(right, start=1):
            if left_char == right_char:
                current[j] = previous[j - 1]
            else:
                current[j] = 1 + min(previous[j], current[j - 1], previous[j - 1])
        previous = current
    return previous[-1]


def edit_similarity(left: str, right: str) -> float:
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(left, right) / longest


def calculate_confidence(has_required_data: bool, data_completeness: float, parsing_errors: int = 0) -> float:
    if not has_required_data:
        return 0.0
    completeness = clamp(data_completeness, 0.0, 1.0)
    return completeness * max(0.3, 1.0 - 0.1 * max(0, parsing_errors))


def lerp(value: float, low: float, high: float) -> float:
    """Map `value` from [low, high] onto 0-100, saturating at both ends."""
    if value <= low:
        return 0.0
    if value >= high:
        return 100.0
    return (value - low) / (high - low) * 100


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
