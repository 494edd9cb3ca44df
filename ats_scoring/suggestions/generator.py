from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping

from ats_scoring.core.config.scoring import get_scoring_float, get_scoring_int
from ats_scoring.normalize.text import clamp, dedupe_preserve_order, round_half_up
from ats_scoring.schemas.job import JobRequirement
from ats_scoring.schemas.scoring import (
    SUBSCORE_KEYS,
    AddKeywordAction,
    AddMetricAction,
    AddPhraseAction,
    AlignTitleAction,
    AnalyzerResult,
    SubScoreKey,
    SubScores,
    Suggestion,
)
from ats_scoring.scoring.weights import get_weight
from ats_scoring.suggestions.templates import SuggestionTemplate, fill_template, templates_for

logger = logging.getLogger(__name__)

Urgency = Literal["high", "medium"]

_JOB_POSTING_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\bjob description\b",
        r"\bresponsibilit(?:y|ies)\b",
        r"\bqualifications\b",
        r"\brequirements\b",
        r"\bmust\s+have\b",
        r"\bnice\s+to\s+have\b",
        r"\byou will\b",
        r"\bwe are\b",
        r"\bapply\b",
        r"\bequal opportunity\b",
        r"\bbenefits?\b",
    )
)
_GENERIC_KEYWORDS = {
    "job title", "title", "company", "company name", "about", "about this job", "responsibilities",
    "requirements", "qualifications", "location", "role", "position", "experience", "years",
}
_GENERIC_PREFIXES = ("job title", "company", "about", "responsibilit", "requirement", "qualification")
_PHRASE_EDGE_RE = re.compile(r"^[\W_]+|[\W_]+$")
_PHRASE_PREFIX_RE = re.compile(
    r"^(?:responsible for|experience with|experience in|knowledge of|ability to)\s+", re.IGNORECASE
)


@dataclass(frozen=True)
class Gap:
    key: SubScoreKey
    score: int
    urgency: Urgency


def identify_gaps(subscores: SubScores, skip: Iterable[SubScoreKey] = ()) -> list[Gap]:
    """Sub-scores below the normal threshold, most urgent and heaviest first."""
    urgent = get_scoring_int("suggestions.urgent_threshold", 50)
    normal = get_scoring_int("suggestions.normal_threshold", 70)
    skipped = set(skip)
    gaps: list[Gap] = []
    for key, score in subscores.as_dict().items():
        if key in skipped:
            continue
        if score < urgent:
            gaps.append(Gap(key, score, "high"))
        elif score < normal:
            gaps.append(Gap(key, score, "medium"))
    gaps.sort(key=lambda gap: (gap.urgency != "high", -get_weight(gap.key)))
    return gaps


def estimate_gain(key: SubScoreKey, current_score: int, template_gain: int) -> int:
    """Composite points a fix could plausibly add, scaled into the 0-15 display range."""
    headroom = max(0, 100 - current_score)
    scale = get_scoring_float("suggestions.gain_base", 0.5) + get_weight(key) * get_scoring_float(
        "suggestions.gain_weight_scale", 2.5
    )
    raw = min(headroom, template_gain) * scale
    return int(clamp(round_half_up(raw), 0, get_scoring_int("suggestions.max_gain", 15)))


def _is_generic_keyword(keyword: str) -> bool:
    cleaned = keyword.strip().lower()
    if len(cleaned) < 3 or cleaned in _GENERIC_KEYWORDS:
        return True
    return cleaned.startswith(_GENERIC_PREFIXES)


def _normalize_phrase(phrase: str) -> str:
    cleaned = _PHRASE_EDGE_RE.sub("", phrase)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return _PHRASE_PREFIX_RE.sub("", cleaned).strip()


def select_keyword_candidates(
    missing_tokens: list[str],
    skills: list[str],
) -> list[str]:
    """Map missing tokens back to the job's own skill phrasing where possible."""
    limit = get_scoring_int("suggestions.max_keywords", 5)
    tokens = [token.lower() for token in missing_tokens]
    matched_skills = [
        skill for skill in skills if any(token in skill.lower() for token in tokens)
    ]
    raw = matched_skills or [token for token in tokens if len(token) >= 3]
    cleaned = [keyword.strip() for keyword in raw if not _is_generic_keyword(keyword)]
    return dedupe_preserve_order(cleaned)[:limit]


def select_phrase_candidates(evidence: dict[str, Any], job: JobRequirement | None) -> list[str]:
    limit = get_scoring_int("suggestions.max_phrases", 3)
    raw = evidence.get("missing") or (list(job.responsibilities) if job else [])
    cleaned = []
    for phrase in raw:
        normalized = _normalize_phrase(str(phrase))
        if not normalized:
            continue
        if any(pattern.search(normalized) for pattern in _JOB_POSTING_PATTERNS):
            continue
        if 2 <= len(normalized.split(" ")) <= 8:
            cleaned.append(normalized)
    return dedupe_preserve_order(cleaned)[:limit]


def _metric_target(evidence: dict[str, Any]) -> int:
    ideal = int(evidence.get("ideal_metrics") or 0)
    return min(3, ideal) if ideal > 0 else 3


def template_data(key: SubScoreKey, evidence: dict[str, Any], job: JobRequirement | None) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if key == "keyword_exact":
        must_have = list(job.must_have) if job else []
        nice_to_have = list(job.nice_to_have) if job else []
        keywords = select_keyword_candidates(
            evidence.get("must_have_missing") or evidence.get("missing") or [],
            must_have + nice_to_have,
        )
        if keywords:
            data.update(keyword=keywords[0], keywords=keywords, count=len(keywords))
        must_missing = set(evidence.get("must_have_missing") or [])
        nice_missing = [token for token in evidence.get("missing") or [] if token not in must_missing]
        data["nice_keywords"] = select_keyword_candidates(nice_missing, nice_to_have) if nice_missing else []
        missing_must = int(evidence.get("must_have_total", 0)) - int(evidence.get("must_have_matched", 0))
        data["keyword_source"] = (
            "must_have" if missing_must > 0 else "nice_to_have" if nice_to_have else "keywords"
        )
    elif key == "keyword_phrase":
        phrases = select_phrase_candidates(evidence, job)
        if phrases:
            data.update(phrase=phrases[0], phrases=phrases)
    elif key == "title_alignment":
        target = evidence.get("target_title") or (job.title if job else "")
        if target:
            data.update(target_title=target, seniority=evidence.get("target_seniority") or "mid")
    elif key == "metrics_presence":
        data["count"] = _metric_target(evidence)
    elif key == "section_completeness":
        missing = evidence.get("missing") or []
        if missing:
            data["section"] = missing[0]
    return data


def build_action(key: SubScoreKey, template: SuggestionTemplate, evidence: dict[str, Any], data: dict[str, Any]):
    if key == "keyword_exact":
        if "nice_keywords" in template.placeholders:
            keywords, source = data.get("nice_keywords") or [], "nice_to_have"
        else:
            keywords, source = data.get("keywords") or [], data.get("keyword_source", "keywords")
        return AddKeywordAction(keywords=keywords, source=source) if keywords else None
    if key == "keyword_phrase":
        phrases = data.get("phrases") or []
        return AddPhraseAction(phrases=phrases) if phrases else None
    if key == "title_alignment":
        if not data.get("target_title"):
            return None
        return AlignTitleAction(
            target_title=str(data["target_title"]),
            target_seniority=str(data.get("seniority") or "mid"),
            current_title=(evidence.get("best_match") or {}).get("title"),
        )
    if key == "metrics_presence":
        return AddMetricAction(target_count=_metric_target(evidence))
    return None


def suggestion_id(key: SubScoreKey, text: str) -> str:
    return f"{key}_{hashlib.sha256(text.encode('utf-8')).hexdigest()[:12]}"


def rank_suggestions(suggestions: list[Suggestion]) -> list[Suggestion]:
    return sorted(suggestions, key=lambda item: (not item.quick_win, -item.estimated_gain))


def generate_suggestions(
    subscores: SubScores,
    analyzer_results: Mapping[SubScoreKey, AnalyzerResult],
    job: JobRequirement | None = None,
) -> list[Suggestion]:
    min_gain = get_scoring_int("suggestions.min_gain", 3)
    quick_win_gain = get_scoring_int("suggestions.quick_win_min_gain", 4)
    max_suggestions = get_scoring_int("suggestions.max_suggestions", 10)

    failed = [key for key in SUBSCORE_KEYS if key not in analyzer_results or analyzer_results[key].failed]
    suggestions: dict[str, Suggestion] = {}
    for gap in identify_gaps(subscores, skip=failed):
        evidence = analyzer_results[gap.key].evidence
        data = template_data(gap.key, evidence, job)
        for template in templates_for(gap.key):
            if not template.applies(evidence, gap.score):
                continue
            text = fill_template(template, data)
            if text is None:
                continue
            gain = estimate_gain(gap.key, gap.score, template.estimated_gain)
            if gain < min_gain:
                continue
            item_id = suggestion_id(gap.key, text)
            if item_id in suggestions:
                continue
            suggestions[item_id] = Suggestion(
                id=item_id,
                text=text,
                estimated_gain=gain,
                targets=[gap.key],
                quick_win=template.quick_win and gain >= quick_win_gain,
                category=template.category,
                action=build_action(gap.key, template, evidence, data),
            )

    ranked = rank_suggestions(list(suggestions.values()))[:max_suggestions]
    logger.debug("ats_suggestions_generated total=%d kept=%d", len(suggestions), len(ranked))
    return ranked
