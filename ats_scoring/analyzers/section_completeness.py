from __future__ import annotations

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer
from ats_scoring.core.config.scoring import get_scoring_float, get_scoring_int
from ats_scoring.extractors.resume_text import REQUIRED_SECTIONS, detect_sections_in_text, present_sections
from ats_scoring.normalize.text import calculate_confidence
from ats_scoring.schemas.resume import StructuredResume
from ats_scoring.schemas.scoring import AnalyzerResult


def _quality_bonuses(resume: StructuredResume) -> dict[str, int]:
    bonus = get_scoring_int("sections.quality_bonus", 5)
    min_words = get_scoring_int("sections.summary_min_words", 50)
    max_words = get_scoring_int("sections.summary_max_words", 150)
    min_skills = get_scoring_int("sections.min_total_skills", 5)

    summary_words = len(resume.summary.split())
    return {
        "summary_length": bonus if min_words <= summary_words <= max_words else 0,
        "skills_count": bonus if len(resume.skills.all()) >= min_skills else 0,
        "achievements": bonus
        if resume.experience and all(entry.achievements for entry in resume.experience)
        else 0,
        "education_details": bonus
        if resume.education and all(entry.degree and entry.institution for entry in resume.education)
        else 0,
    }


class SectionCompletenessAnalyzer(BaseAnalyzer):
    name = "section_completeness"

    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        structured = analyzer_input.resume_structured
        if structured is not None:
            present = present_sections(structured)
            bonuses = _quality_bonuses(structured)
            completeness = 1.0
        else:
            present = detect_sections_in_text(analyzer_input.resume_text)
            bonuses = {}
            completeness = get_scoring_float("sections.text_fallback_confidence", 0.7)

        missing = [section for section in REQUIRED_SECTIONS if section not in present]
        score = min(100.0, len(present) / len(REQUIRED_SECTIONS) * 100 + sum(bonuses.values()))

        confidence = calculate_confidence(
            has_required_data=structured is not None or bool(analyzer_input.resume_text.strip()),
            data_completeness=completeness,
        )
        evidence = {
            "present": present,
            "missing": missing,
            "bonuses": bonuses,
            "summary_words": len(structured.summary.split()) if structured is not None else None,
            "source": "structured" if structured is not None else "text",
        }
        warnings = [f"Missing sections: {', '.join(missing)}"] if missing else []
        return self.result(score, evidence, confidence, warnings)
