from __future__ import annotations

import re
from datetime import datetime

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer
from ats_scoring.core.config.scoring import get_scoring_float, get_scoring_int
from ats_scoring.normalize.text import calculate_confidence, tokenize
from ats_scoring.schemas.resume import ExperienceEntry
from ats_scoring.schemas.scoring import AnalyzerResult

_YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")
_CURRENT_MARKERS = {"present", "current", "now", "today"}


def estimate_years_ago(entry: ExperienceEntry, index: int, now: datetime) -> int:
    end = entry.end_date.strip()
    if end and end.lower() not in _CURRENT_MARKERS:
        match = _YEAR_RE.search(end)
        if match:
            return max(0, now.year - int(match.group(0)))
    if index == 0:
        return 0
    return index * get_scoring_int("recency.assumed_years_per_role", 2)


def decay_factor(years_ago: float) -> float:
    start = get_scoring_float("recency.decay_start_years", 3)
    per_year = get_scoring_float("recency.decay_per_year", 0.1)
    max_rate = get_scoring_float("recency.max_decay_rate", 0.5)
    if years_ago <= start:
        return 1.0
    return 1.0 - min(max_rate, (years_ago - start) * per_year)


def latest_role_relevance(entry: ExperienceEntry, must_have: list[str]) -> tuple[float, float | None]:
    """Return (relevance 0-100, must-have match ratio or None when there are no must-haves)."""
    expected = list(dict.fromkeys(token for skill in must_have for token in tokenize(skill)))
    if not expected:
        return 50.0, None
    role_tokens = set(tokenize(" ".join([entry.title, entry.company, *entry.achievements])))
    ratio = sum(1 for token in expected if token in role_tokens) / len(expected)
    relevance = ratio * 100
    if ratio >= get_scoring_float("recency.latest_role_match_ratio", 0.6):
        relevance = min(100.0, relevance + get_scoring_int("recency.latest_role_boost", 10))
    return relevance, ratio


class RecencyFitAnalyzer(BaseAnalyzer):
    name = "recency_fit"

    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        structured = analyzer_input.resume_structured
        if structured is None or not structured.experience:
            return self.result(
                get_scoring_int("recency.no_experience_score", 50),
                {"error": "No structured experience available"},
                get_scoring_float("recency.no_experience_confidence", 0.6),
                ["Recency estimated as neutral without dated experience entries"],
            )

        latest = structured.experience[0]
        relevance, ratio = latest_role_relevance(latest, analyzer_input.job.must_have)
        decay = []
        for index, entry in enumerate(structured.experience):
            years_ago = estimate_years_ago(entry, index, analyzer_input.timestamp)
            decay.append(
                {
                    "role": " at ".join(part for part in (entry.title, entry.company) if part),
                    "years_ago": years_ago,
                    "decay_factor": round(decay_factor(years_ago), 2),
                }
            )
        average_decay = sum(decay_factor(item["years_ago"]) for item in decay) / len(decay)
        score = min(100.0, relevance * average_decay)

        completeness = 1.0 if len(decay) >= 2 else 0.8
        if ratio is None:
            completeness = min(completeness, 0.6)
        confidence = calculate_confidence(has_required_data=True, data_completeness=completeness)
        evidence = {
            "latest_role": {
                "title": latest.title,
                "company": latest.company,
                "match_ratio": round(ratio, 2) if ratio is not None else None,
                "keyword_match": relevance > 70,
            },
            "experience_decay": decay,
            "average_recency": round(average_decay * 100),
        }
        return self.result(score, evidence, confidence)
