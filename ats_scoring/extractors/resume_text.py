from __future__ import annotations

import re

from ats_scoring.schemas.resume import ExperienceEntry, StructuredResume

REQUIRED_SECTIONS: tuple[str, ...] = ("summary", "skills", "experience", "education")

_SECTION_HEADERS: dict[str, tuple[str, ...]] = {
    "summary": ("summary", "professional summary", "profile", "objective", "about me"),
    "skills": ("skills", "technical skills", "core competencies", "competencies", "key skills"),
    "experience": (
        "experience",
        "work experience",
        "professional experience",
        "employment history",
        "work history",
    ),
    "education": ("education", "academic background", "education and training"),
}
_SECTION_HEADER_RES: dict[str, re.Pattern[str]] = {
    section: re.compile(
        r"^\s*(?:" + "|".join(re.escape(header) for header in headers) + r")\s*:?\s*$",
        re.IGNORECASE | re.MULTILINE,
    )
    for section, headers in _SECTION_HEADERS.items()
}
_TITLE_LINE_RE = re.compile(
    r"^\s*([A-Z][A-Za-z/&\-]+(?:[ \t]+[A-Z][A-Za-z/&\-]+){0,4})[ \t]*(?:\bat\b|@|\||,|-|–)[ \t]*\S",
    re.MULTILINE,
)
_ROLE_WORDS = (
    "engineer",
    "developer",
    "manager",
    "analyst",
    "designer",
    "scientist",
    "architect",
    "consultant",
    "specialist",
    "director",
    "lead",
    "administrator",
    "coordinator",
    "officer",
    "intern",
)


def resume_to_text(resume: StructuredResume) -> str:
    """Render a structured resume as plain text with conventional section headers."""
    lines: list[str] = []
    if resume.contact and resume.contact.name:
        lines.append(resume.contact.name)

    if resume.summary.strip():
        lines.extend(["", "SUMMARY", resume.summary.strip()])

    skills = resume.skills.all()
    if skills:
        lines.extend(["", "SKILLS", ", ".join(skills)])

    if resume.experience:
        lines.extend(["", "EXPERIENCE"])
        for entry in resume.experience:
            header = " at ".join(part for part in (entry.title, entry.company) if part)
            dates = " - ".join(part for part in (entry.start_date, entry.end_date) if part)
            if header:
                lines.append(header)
            if entry.location or dates:
                lines.append(" | ".join(part for part in (entry.location, dates) if part))
            lines.extend(f"- {achievement}" for achievement in entry.achievements if achievement)

    if resume.education:
        lines.extend(["", "EDUCATION"])
        for entry in resume.education:
            parts = [entry.degree, entry.institution, entry.location, entry.graduation_date]
            line = ", ".join(part for part in parts if part)
            if line:
                lines.append(line)

    if resume.certifications:
        lines.extend(["", "CERTIFICATIONS", *resume.certifications])

    if resume.projects:
        lines.extend(["", "PROJECTS"])
        for project in resume.projects:
            lines.append(": ".join(part for part in (project.name, project.description) if part))
            if project.technologies:
                lines.append(", ".join(project.technologies))

    return "\n".join(lines).strip()


def section_text(resume: StructuredResume, section: str) -> str:
    key = section.lower()
    if key == "summary":
        return resume.summary
    if key == "skills":
        return ", ".join(resume.skills.all())
    if key == "technical_skills":
        return ", ".join(resume.skills.technical)
    if key == "soft_skills":
        return ", ".join(resume.skills.soft)
    if key == "experience":
        parts: list[str] = []
        for entry in resume.experience:
            parts.extend([entry.title, entry.company, *entry.achievements])
        return "\n".join(part for part in parts if part)
    if key == "education":
        return "\n".join(
            part for entry in resume.education for part in (entry.degree, entry.institution) if part
        )
    if key == "certifications":
        return "\n".join(resume.certifications)
    if key == "projects":
        return "\n".join(
            part for project in resume.projects for part in (project.name, project.description) if part
        )
    return ""


def latest_role(resume: StructuredResume | None) -> ExperienceEntry | None:
    if resume is None or not resume.experience:
        return None
    return resume.experience[0]


def job_titles(resume: StructuredResume) -> list[str]:
    return [entry.title.strip() for entry in resume.experience if entry.title.strip()]


def job_titles_from_text(text: str) -> list[str]:
    """Best-effort role titles from plain text, e.g. 'Backend Engineer at Acme'."""
    titles: list[str] = []
    for match in _TITLE_LINE_RE.finditer(text or ""):
        candidate = match.group(1).strip()
        lowered = candidate.lower()
        if not any(word in lowered for word in _ROLE_WORDS):
            continue
        if candidate not in titles:
            titles.append(candidate)
    return titles


def present_sections(resume: StructuredResume) -> list[str]:
    present: list[str] = []
    if resume.summary.strip():
        present.append("summary")
    if resume.skills.all():
        present.append("skills")
    if resume.experience:
        present.append("experience")
    if resume.education:
        present.append("education")
    return present


def detect_sections_in_text(text: str) -> list[str]:
    return [section for section, pattern in _SECTION_HEADER_RES.items() if pattern.search(text or "")]


def required_sections(resume: StructuredResume) -> dict[str, object]:
    present = present_sections(resume)
    missing = [section for section in REQUIRED_SECTIONS if section not in present]
    return {"has_all": not missing, "present": present, "missing": missing}


def estimate_parsing_quality(text: str, resume: StructuredResume | None) -> float:
    """Rough 0-1 estimate of how much resume structure the engine could recover."""
    if resume is not None:
        return 1.0 if resume.experience else 0.9
    if not (text or "").strip():
        return 0.0
    found = len(detect_sections_in_text(text))
    if found >= 3:
        return 0.85
    if found >= 1:
        return 0.7
    return 0.5
