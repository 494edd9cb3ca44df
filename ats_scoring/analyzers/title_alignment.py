from __future__ import annotations

import re

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer
from ats_scoring.core.config.scoring import get_scoring_int
from ats_scoring.extractors.resume_text import job_titles, job_titles_from_text
from ats_scoring.normalize.text import calculate_confidence, edit_similarity, jaccard_similarity
from ats_scoring.schemas.scoring import AnalyzerResult

_SENIORITY_MARKERS_RE = re.compile(r"\b(?:jr|sr|senior|junior|lead|staff|principal)\b")
_LEVEL_MARKERS_RE = re.compile(r"\b(?:i|ii|iii|iv|v|[1-5])\b")
_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")

SENIORITY_LEVELS: dict[str, int] = {
    "entry": 1,
    "junior": 1,
    "mid": 2,
    "senior": 3,
    "lead": 4,
    "staff": 4,
    "principal": 5,
    "executive": 6,
}

_TITLE_SENIORITY_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(?:vp|vice president|chief|head of|cto|ceo|cio)\b"), "executive"),
    (re.compile(r"\b(?:principal|director)\b"), "principal"),
    (re.compile(r"\bstaff\b"), "staff"),
    (re.compile(r"\blead\b"), "lead"),
    (re.compile(r"\b(?:senior|sr)\b"), "senior"),
    (re.compile(r"\b(?:junior|jr|entry|intern|graduate)\b"), "entry"),
)


def normalize_title(title: str) -> str:
    lowered = title.lower()
    lowered = _SENIORITY_MARKERS_RE.sub(" ", lowered)
    lowered = _LEVEL_MARKERS_RE.sub(" ", lowered)
    lowered = _PUNCT_RE.sub(" ", lowered)
    return _SPACE_RE.sub(" ", lowered).strip()


def title_similarity(left: str, right: str) -> float:
    norm_left = normalize_title(left)
    norm_right = normalize_title(right)
    if norm_left == norm_right:
        return 1.0
    token_overlap = jaccard_similarity(set(norm_left.split()), set(norm_right.split()))
    return 0.5 * edit_similarity(norm_left, norm_right) + 0.5 * token_overlap


def detect_title_seniority(title: str) -> str:
    lowered = title.lower()
    for pattern, level in _TITLE_SENIORITY_RULES:
        if pattern.search(lowered):
            return level
    return "mid"


def seniority_matches(title: str, target_seniority: str) -> bool:
    resume_level = SENIORITY_LEVELS.get(detect_title_seniority(title), 2)
    target_level = SENIORITY_LEVELS.get(target_seniority, 2)
    return abs(resume_level - target_level) <= get_scoring_int("title.max_seniority_gap", 1)


class TitleAlignmentAnalyzer(BaseAnalyzer):
    name = "title_alignment"

    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        target_title = analyzer_input.job.title.strip()
        target_seniority = analyzer_input.job.seniority
        if not target_title:
            return self.result(
                get_scoring_int("title.no_target_score", 50),
                {"error": "No target title available", "target_seniority": target_seniority},
                0.5,
                ["Job requirement has no title; title alignment is neutral"],
            )

        structured = analyzer_input.resume_structured
        titles = job_titles(structured) if structured is not None else job_titles_from_text(analyzer_input.resume_text)
        if not titles:
            return self.result(
                get_scoring_int("title.no_titles_score", 20),
                {
                    "error": "No job titles found in resume",
                    "target_title": target_title,
                    "target_seniority": target_seniority,
                },
                0.6,
            )

        matches = sorted(
            (
                {
                    "title": title,
                    "similarity": title_similarity(title, target_title),
                    "seniority_match": seniority_matches(title, target_seniority),
                }
                for title in titles
            ),
            key=lambda match: match["similarity"],
            reverse=True,
        )
        best = matches[0]

        score = best["similarity"] * 100
        if best["title"] == titles[0]:
            score = min(100.0, score + get_scoring_int("title.latest_role_bonus", 10))
        if not best["seniority_match"]:
            score = max(0.0, score - get_scoring_int("title.seniority_mismatch_penalty", 15))

        confidence = calculate_confidence(
            has_required_data=True,
            data_completeness=1.0 if len(titles) >= 2 else 0.8,
        )
        evidence = {
            "target_title": target_title,
            "target_seniority": target_seniority,
            "best_match": {
                "title": best["title"],
                "similarity": round(best["similarity"] * 100),
                "seniority_match": best["seniority_match"],
            },
            "all_titles": titles,
        }
        return self.result(score, evidence, confidence)
