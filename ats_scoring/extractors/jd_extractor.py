from __future__ import annotations

import re
from typing import Protocol

from ats_scoring.normalize.text import extract_keywords
from ats_scoring.schemas.job import ExtractionCompleteness, JobRequirement, Seniority

MAX_MUST_HAVE = 20
MAX_NICE_TO_HAVE = 15
MAX_RESPONSIBILITIES = 10
MAX_LIST_ITEMS = 20

_TITLE_PATTERNS = (
    re.compile(r"(?:position|role|job title|title|job)\s*:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"we are (?:looking for|hiring|seeking) (?:a|an)\s+([^\n.,]+)", re.IGNORECASE),
    re.compile(r"^\s*([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+){1,4})\s*$", re.MULTILINE),
)
_MUST_HAVE_HEADERS = (
    "required qualifications",
    "required skills",
    "must have",
    "must-have",
    "essential skills",
    "minimum qualifications",
    "requirements",
)
_NICE_TO_HAVE_HEADERS = (
    "preferred qualifications",
    "preferred skills",
    "nice to have",
    "nice-to-have",
    "bonus skills",
    "bonus points",
    "desirable",
)
_RESPONSIBILITY_HEADERS = (
    "responsibilities",
    "key responsibilities",
    "duties",
    "what you will do",
    "what you'll do",
    "your role",
    "day to day",
)
_INLINE_REQUIRED_RE = re.compile(r"(?:required|must have|essential)[:\s]+([^.\n]+)", re.IGNORECASE)
_INLINE_PREFERRED_RE = re.compile(r"(?:preferred|nice to have|bonus)[:\s]+([^.\n]+)", re.IGNORECASE)
_BULLET_RE = re.compile(r"^[ \t]*(?:[•\-\*–·]|\d+[.)])[ \t]*(.+)$", re.MULTILINE)
_LIST_SPLIT_RE = re.compile(r"[,;]")
# A "Heading:" line or an ALL-CAPS line starts the next section.
_NEXT_HEADER = r"(?=\n[ \t]*(?:[A-Z][A-Za-z'\-]*(?:[ \t]+[A-Za-z'\-]+){0,5}[ \t]*:[ \t]*(?:\n|$)|[A-Z][A-Z \t'\-]{3,}[ \t]*(?:\n|$))|\Z)"

_SENIORITY_RULES: tuple[tuple[re.Pattern[str], Seniority], ...] = (
    (re.compile(r"\b(?:senior|sr\.?|lead|principal|staff)\b", re.IGNORECASE), "senior"),
    (re.compile(r"\b(?:director|vp|vice president|chief|head of)\b", re.IGNORECASE), "executive"),
    (
        re.compile(r"\b(?:entry[ -]level|junior|jr\.?|intern|internship|graduate|0-2 years)\b", re.IGNORECASE),
        "entry",
    ),
)


class JobRequirementExtractor(Protocol):
    def extract(self, job_text: str) -> JobRequirement:
        """Turn free job-description text into a JobRequirement."""

    def is_complete(self, job: JobRequirement) -> ExtractionCompleteness:
        """Report which essential fields the extraction filled."""


def _section(text: str, headers: tuple[str, ...]) -> str | None:
    for header in headers:
        pattern = re.compile(
            r"(?:^|\n)[ \t]*(?i:" + re.escape(header) + r")[ \t]*:?[ \t]*\n?(.*?)" + _NEXT_HEADER,
            re.DOTALL,
        )
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def _list_items(block: str, split_lists: bool = False) -> list[str]:
    items = [match.group(1).strip() for match in _BULLET_RE.finditer(block)]
    if not items:
        items = [line.strip() for line in block.splitlines() if line.strip()]
    expanded: list[str] = []
    for item in items:
        parts = [part.strip() for part in _LIST_SPLIT_RE.split(item) if part.strip()]
        # "Python, Docker, AWS" is a list of skills, not one requirement.
        if split_lists and len(parts) > 1 and all(len(part.split()) <= 4 for part in parts):
            expanded.extend(parts)
        else:
            expanded.append(item)
    return [item for item in expanded if 1 < len(item) < 300][:MAX_LIST_ITEMS]


def extract_job_title(text: str) -> str:
    for pattern in _TITLE_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return ""


def _skills(text: str, headers: tuple[str, ...], inline: re.Pattern[str], limit: int) -> list[str]:
    skills: list[str] = []
    block = _section(text, headers)
    if block:
        skills.extend(_list_items(block, split_lists=True))
    for match in inline.finditer(text):
        skills.extend(extract_keywords(match.group(1)))
    return list(dict.fromkeys(skills))[:limit]


def extract_must_have(text: str) -> list[str]:
    return _skills(text, _MUST_HAVE_HEADERS, _INLINE_REQUIRED_RE, MAX_MUST_HAVE)


def extract_nice_to_have(text: str) -> list[str]:
    return _skills(text, _NICE_TO_HAVE_HEADERS, _INLINE_PREFERRED_RE, MAX_NICE_TO_HAVE)


def extract_responsibilities(text: str) -> list[str]:
    block = _section(text, _RESPONSIBILITY_HEADERS)
    return _list_items(block)[:MAX_RESPONSIBILITIES] if block else []


def detect_seniority(text: str) -> Seniority:
    """Senior markers win over executive ones, mirroring how postings use 'lead'."""
    for pattern, level in _SENIORITY_RULES:
        if pattern.search(text):
            return level
    return "mid"


def extract_job_requirement(text: str, existing: JobRequirement | None = None) -> JobRequirement:
    """Fill any field the caller did not provide from the job-description text."""
    text = text or ""
    must_have = (existing.must_have if existing else []) or extract_must_have(text)
    if not must_have:
        must_have = extract_keywords(text)[:MAX_MUST_HAVE]
    return JobRequirement(
        title=(existing.title if existing else "") or extract_job_title(text),
        company=existing.company if existing else "",
        must_have=must_have,
        nice_to_have=(existing.nice_to_have if existing else []) or extract_nice_to_have(text),
        responsibilities=(existing.responsibilities if existing else []) or extract_responsibilities(text),
        seniority=existing.seniority if existing and existing.seniority != "mid" else detect_seniority(text),
        location=existing.location if existing else "",
        industry=existing.industry if existing else "",
    )


def check_completeness(job: JobRequirement) -> ExtractionCompleteness:
    required = {
        "title": bool(job.title.strip()),
        "must_have": bool(job.must_have),
        "responsibilities": bool(job.responsibilities),
    }
    missing = [name for name, filled in required.items() if not filled]
    return ExtractionCompleteness(
        is_complete=not missing,
        completeness=(len(required) - len(missing)) / len(required),
        missing_fields=missing,
    )


class HeuristicJobExtractor(JobRequirementExtractor):
    def extract(self, job_text: str) -> JobRequirement:
        return extract_job_requirement(job_text)

    def is_complete(self, job: JobRequirement) -> ExtractionCompleteness:
        return check_completeness(job)
