from __future__ import annotations

import asyncio
import re

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer, failed_result
from ats_scoring.core.config.scoring import get_scoring_int
from ats_scoring.extractors.resume_text import section_text
from ats_scoring.normalize.text import calculate_confidence, overlap_percentage, tokenize
from ats_scoring.schemas.resume import StructuredResume
from ats_scoring.schemas.scoring import AnalyzerResult
from ats_scoring.semantic.embeddings import EmbeddingProvider, cosine_similarity

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


def structured_sections(resume: StructuredResume, max_roles: int) -> list[tuple[str, str]]:
    sections = [
        ("summary", resume.summary),
        ("skills", section_text(resume, "skills")),
    ]
    for index, role in enumerate(resume.experience[:max_roles]):
        parts = [role.title, role.company, ". ".join(role.achievements)]
        sections.append((f"role_{index}", ". ".join(part for part in parts if part)))
    return sections


def text_sections(text: str, min_paragraph_chars: int) -> list[tuple[str, str]]:
    paragraphs = [
        paragraph.strip()
        for paragraph in _PARAGRAPH_SPLIT_RE.split(text or "")
        if len(paragraph.strip()) > min_paragraph_chars
    ]
    if paragraphs:
        return [(f"paragraph_{index}", paragraph) for index, paragraph in enumerate(paragraphs)]
    stripped = (text or "").strip()
    return [("resume", stripped)] if stripped else []


def must_have_coverage(resume_text: str, must_have: list[str]) -> float:
    """Percent of must-have words present in the resume; 50 when there are none."""
    expected = {token for skill in must_have for token in tokenize(skill)}
    if not expected:
        return 50.0
    return overlap_percentage(expected, set(tokenize(resume_text)))


class SemanticRelevanceAnalyzer(BaseAnalyzer):
    name = "semantic_relevance"
    requires_embeddings = True

    def __init__(self, embedding_provider: EmbeddingProvider) -> None:
        super().__init__()
        self._embedder = embedding_provider

    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        top_k = get_scoring_int("semantic.top_k_sections", 5)
        min_chars = get_scoring_int("semantic.min_section_chars", 30)
        cap_threshold = get_scoring_int("semantic.keyword_cap_threshold", 40)
        cap_ceiling = get_scoring_int("semantic.capped_score_ceiling", 70)

        job = analyzer_input.job
        job_text = analyzer_input.job_text.strip() or "\n".join(
            [job.title, *job.must_have, *job.responsibilities]
        ).strip()
        if not job_text:
            return failed_result(self.name, "no job text to compare against")

        structured = analyzer_input.resume_structured
        if structured is not None:
            candidates = structured_sections(structured, get_scoring_int("semantic.max_recent_roles", 3))
        else:
            candidates = text_sections(
                analyzer_input.resume_text, get_scoring_int("semantic.min_paragraph_chars", 50)
            )
        sections = [(name, text) for name, text in candidates if len(text.strip()) > min_chars]
        if not sections:
            return failed_result(self.name, "no resume sections long enough to embed")

        vectors = await asyncio.to_thread(self._embedder.embed, [job_text, *(text for _, text in sections)])
        job_vector, section_vectors = vectors[0], vectors[1:]

        similarities = sorted(
            (
                (name, max(0.0, cosine_similarity(job_vector, vector)))
                for (name, _), vector in zip(sections, section_vectors)
            ),
            key=lambda item: item[1],
            reverse=True,
        )
        top = similarities[:top_k]
        average = sum(similarity for _, similarity in top) / len(top)
        score = average * 100

        coverage = must_have_coverage(analyzer_input.resume_text, job.must_have)
        capped = coverage < cap_threshold and score > cap_ceiling
        if capped:
            score = cap_ceiling

        confidence = calculate_confidence(
            has_required_data=True,
            data_completeness=1.0 if structured is not None else 0.8,
        )
        evidence = {
            "top_sections": [
                {"section": name, "similarity": round(similarity, 3)} for name, similarity in top
            ],
            "average_similarity": round(average, 3),
            "must_have_coverage": round(coverage, 1),
            "capped": capped,
        }
        warnings = ["Semantic score capped by low must-have keyword coverage"] if capped else []
        return self.result(score, evidence, confidence, warnings)
