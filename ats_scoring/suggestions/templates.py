from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

from ats_scoring.schemas.scoring import SubScoreKey, SuggestionCategory

Condition = Callable[[dict[str, Any], int], bool]

_PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


@dataclass(frozen=True)
class SuggestionTemplate:
    text: str
    estimated_gain: int
    quick_win: bool
    category: SuggestionCategory
    condition: Condition | None = None

    def applies(self, evidence: dict[str, Any], score: int) -> bool:
        if self.condition is None:
            return True
        return bool(self.condition(evidence, score))

    @property
    def placeholders(self) -> list[str]:
        return _PLACEHOLDER_RE.findall(self.text)


def _missing_count(evidence: dict[str, Any], matched_key: str, total_key: str) -> int:
    return int(evidence.get(total_key, 0) or 0) - int(evidence.get(matched_key, 0) or 0)


def _bonus_missed(name: str, section: str) -> Condition:
    def condition(evidence: dict[str, Any], _score: int) -> bool:
        bonuses = evidence.get("bonuses") or {}
        return name in bonuses and bonuses[name] == 0 and section in (evidence.get("present") or [])

    return condition


SUGGESTION_TEMPLATES: dict[SubScoreKey, tuple[SuggestionTemplate, ...]] = {
    "keyword_exact": (
        SuggestionTemplate(
            "Add exact term '{keyword}' to Skills section and latest role achievements",
            8,
            True,
            "keywords",
            lambda ev, _: bool(ev.get("missing")),
        ),
        SuggestionTemplate(
            "Include {count} missing must-have keywords: {keywords}",
            12,
            False,
            "keywords",
            lambda ev, _: _missing_count(ev, "must_have_matched", "must_have_total") >= 3,
        ),
        SuggestionTemplate(
            "Add nice-to-have skills to strengthen match: {nice_keywords}",
            5,
            True,
            "keywords",
            lambda ev, _: _missing_count(ev, "nice_to_have_matched", "nice_to_have_total") > 0,
        ),
    ),
    "keyword_phrase": (
        SuggestionTemplate("Mirror the job phrase '{phrase}' in your experience bullets", 6, True, "content"),
        SuggestionTemplate(
            "Use exact phrases from the job responsibilities: {phrases}",
            8,
            False,
            "content",
            lambda ev, _: len(ev.get("missing") or []) >= 2,
        ),
    ),
    "semantic_relevance": (
        SuggestionTemplate("Expand summary to better describe relevant experience", 7, False, "content"),
        SuggestionTemplate("Add context to achievements showing how skills were applied", 6, False, "content"),
    ),
    "title_alignment": (
        SuggestionTemplate(
            "Include '{target_title}' in your professional summary or headline",
            8,
            True,
            "content",
        ),
        SuggestionTemplate(
            "Adjust latest role title to match seniority level ({seniority})",
            5,
            False,
            "content",
            lambda ev, _: (ev.get("best_match") or {}).get("seniority_match") is False,
        ),
    ),
    "metrics_presence": (
        SuggestionTemplate(
            "Quantify {count} achievements with percentages, dollar amounts, or numbers",
            10,
            False,
            "metrics",
        ),
        SuggestionTemplate(
            "Add metrics to latest role (e.g., '% improvement', '$ saved', '# users')",
            7,
            True,
            "metrics",
        ),
        SuggestionTemplate(
            "Include timeframes showing speed of delivery (e.g., 'in 3 months')",
            4,
            True,
            "metrics",
        ),
    ),
    "section_completeness": (
        SuggestionTemplate(
            "Add missing section: {section}",
            12,
            False,
            "structure",
            lambda ev, _: bool(ev.get("missing")),
        ),
        SuggestionTemplate(
            "Expand professional summary to 50-150 words",
            5,
            True,
            "structure",
            _bonus_missed("summary_length", "summary"),
        ),
        SuggestionTemplate(
            "Ensure all experience roles have achievement bullets",
            6,
            False,
            "structure",
            _bonus_missed("achievements", "experience"),
        ),
    ),
    "format_parseability": (
        SuggestionTemplate(
            "Switch to ATS-safe template (single column, no graphics)",
            15,
            True,
            "formatting",
            lambda _, score: score < 50,
        ),
        SuggestionTemplate(
            "Remove tables and use simple text formatting instead",
            12,
            False,
            "formatting",
            lambda ev, _: bool(ev.get("has_tables")),
        ),
        SuggestionTemplate(
            "Remove images, logos, and graphics - ATS cannot read them",
            8,
            True,
            "formatting",
            lambda ev, _: bool(ev.get("has_images")),
        ),
        SuggestionTemplate(
            "Convert multi-column layout to single column",
            10,
            False,
            "formatting",
            lambda ev, _: bool(ev.get("has_multi_column")),
        ),
    ),
    "recency_fit": (
        SuggestionTemplate("Move recent relevant projects to latest role", 6, True, "content"),
        SuggestionTemplate("Highlight continuous skill development in recent roles", 5, False, "content"),
        SuggestionTemplate("Add recent certifications or training to show current expertise", 4, True, "content"),
    ),
}


def templates_for(key: SubScoreKey) -> tuple[SuggestionTemplate, ...]:
    return SUGGESTION_TEMPLATES.get(key, ())


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
        text = ", ".join(items[:3])
        if len(items) > 3:
            text += f", and {len(items) - 3} more"
        return text
    return str(value)


def fill_template(template: SuggestionTemplate, data: dict[str, Any]) -> str | None:
    """Substitute placeholders; None when any placeholder has no usable value."""
    for name in template.placeholders:
        value = data.get(name)
        if value is None or value == "" or value == [] or value == ():
            return None
    return _PLACEHOLDER_RE.sub(lambda match: _format_value(data[match.group(1)]), template.text)
