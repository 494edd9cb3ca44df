import asyncio
import sys
import unittest
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_scoring.analyzers import ANALYZER_REGISTRY, AnalyzerInput, create_analyzers
from ats_scoring.analyzers.format_parseability import TABLES_WARNING, FormatParseabilityAnalyzer
from ats_scoring.analyzers.keyword_exact import KeywordExactAnalyzer
from ats_scoring.analyzers.keyword_phrase import KeywordPhraseAnalyzer, is_meaningful_phrase
from ats_scoring.analyzers.metrics_presence import MetricsPresenceAnalyzer
from ats_scoring.analyzers.recency_fit import RecencyFitAnalyzer, decay_factor, estimate_years_ago
from ats_scoring.analyzers.section_completeness import SectionCompletenessAnalyzer
from ats_scoring.analyzers.semantic_relevance import SemanticRelevanceAnalyzer, structured_sections
from ats_scoring.analyzers.title_alignment import (
    TitleAlignmentAnalyzer,
    detect_title_seniority,
    normalize_title,
    title_similarity,
)
from ats_scoring.extractors.resume_text import resume_to_text
from ats_scoring.schemas.format import FormatReport
from ats_scoring.schemas.job import JobRequirement
from ats_scoring.schemas.resume import (
    ContactInfo,
    EducationEntry,
    ExperienceEntry,
    Skills,
    StructuredResume,
)
from ats_scoring.schemas.scoring import SUBSCORE_KEYS
from ats_scoring.semantic.embeddings import SimpleEmbeddingProvider

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)

RESUME = StructuredResume(
    contact=ContactInfo(name="Dana Smith"),
    summary="Backend engineer focused on reliable Python services.",
    skills=Skills(technical=["Python", "FastAPI", "PostgreSQL", "Redis", "AWS"], soft=["Mentoring"]),
    experience=[
        ExperienceEntry(
            title="Senior Backend Engineer",
            company="Acme",
            startDate="2021",
            endDate="Present",
            achievements=["Built Python APIs serving 2M users", "Reduced latency by 40%"],
        ),
        ExperienceEntry(
            title="Backend Engineer",
            company="Globex",
            startDate="2017",
            endDate="2021",
            achievements=["Migrated services to AWS saving $120,000 per year"],
        ),
    ],
    education=[EducationEntry(degree="BSc Computer Science", institution="State University")],
)

JOB = JobRequirement(
    title="Senior Backend Engineer",
    must_have=["Python", "Docker"],
    nice_to_have=["AWS"],
    responsibilities=["Design scalable backend services"],
    seniority="senior",
)

JOB_TEXT = (
    "Senior Backend Engineer. We build payment platforms with Python and Docker. "
    "You will design scalable backend services and mentor engineers."
)


def _input(resume=RESUME, job=JOB, job_text=JOB_TEXT, resume_text=None, format_report=None):
    return AnalyzerInput(
        resume_text=resume_to_text(resume) if resume_text is None and resume is not None else resume_text or "",
        job_text=job_text,
        job=job,
        resume_structured=resume,
        format_report=format_report,
        timestamp=NOW,
    )


def _run(analyzer, analyzer_input):
    return asyncio.run(analyzer.analyze(analyzer_input))


class RegistryTests(unittest.TestCase):
    def test_registry_covers_every_key(self):
        self.assertEqual(tuple(ANALYZER_REGISTRY), SUBSCORE_KEYS)
        analyzers = create_analyzers(SimpleEmbeddingProvider())
        self.assertEqual([analyzer.name for analyzer in analyzers], list(SUBSCORE_KEYS))
        self.assertAlmostEqual(sum(analyzer.weight for analyzer in analyzers), 1.0, places=6)


class KeywordExactTests(unittest.TestCase):
    def test_must_have_weighted_double(self):
        result = _run(KeywordExactAnalyzer(), _input())
        self.assertEqual(result.score, 60)
        self.assertEqual(result.confidence, 1.0)
        self.assertIn("python", result.evidence["matched"])
        self.assertEqual(result.evidence["must_have_missing"], ["docker"])
        self.assertEqual(result.evidence["must_have_total"], 2)
        self.assertEqual(result.evidence["nice_to_have_matched"], 1)

    def test_job_without_keywords_has_no_confidence(self):
        result = _run(KeywordExactAnalyzer(), _input(job=JobRequirement(title="Engineer")))
        self.assertEqual(result.score, 0)
        self.assertTrue(result.failed)


class KeywordPhraseTests(unittest.TestCase):
    def test_identical_text_matches_every_phrase(self):
        result = _run(KeywordPhraseAnalyzer(), _input(resume=None, resume_text=JOB_TEXT))
        self.assertEqual(result.score, 100)
        self.assertEqual(result.evidence["matched_count"], result.evidence["total_job_phrases"])

    def test_unrelated_text_reports_missing_phrases(self):
        result = _run(
            KeywordPhraseAnalyzer(),
            _input(resume=None, resume_text="Gardening enthusiast growing tomatoes and roses every summer."),
        )
        self.assertEqual(result.score, 0)
        self.assertLessEqual(len(result.evidence["missing"]), 10)
        self.assertGreater(result.evidence["total_job_phrases"], 10)

    def test_common_word_phrases_are_ignored(self):
        self.assertFalse(is_meaningful_phrase("and the for"))
        self.assertTrue(is_meaningful_phrase("and the python"))


class SemanticRelevanceTests(unittest.TestCase):
    def test_identical_text_scores_full(self):
        analyzer = SemanticRelevanceAnalyzer(SimpleEmbeddingProvider())
        result = _run(analyzer, _input(resume=None, resume_text=JOB_TEXT))
        self.assertEqual(result.score, 100)
        self.assertFalse(result.evidence["capped"])
        self.assertEqual(result.evidence["top_sections"][0]["section"], "paragraph_0")

    def test_low_keyword_coverage_caps_score(self):
        job = JobRequirement(title="Platform Engineer", must_have=["Kubernetes", "Terraform"])
        analyzer = SemanticRelevanceAnalyzer(SimpleEmbeddingProvider())
        result = _run(analyzer, _input(resume=None, resume_text=JOB_TEXT, job=job))
        self.assertEqual(result.score, 70)
        self.assertTrue(result.evidence["capped"])

    def test_structured_sections_are_embedded(self):
        analyzer = SemanticRelevanceAnalyzer(SimpleEmbeddingProvider())
        result = _run(analyzer, _input())
        sections = [item["section"] for item in result.evidence["top_sections"]]
        self.assertIn("role_0", sections)
        self.assertLessEqual(len(sections), 5)
        self.assertTrue(0 <= result.score <= 100)

    def test_unrelated_resume_scores_low(self):
        pastry_chef = (
            "Pastry chef baking croissants, sourdough loaves, fruit tarts; decorating celebration cakes; "
            "managing bakery inventory; training apprentices on lamination techniques."
        )
        analyzer = SemanticRelevanceAnalyzer(SimpleEmbeddingProvider())
        result = _run(analyzer, _input(resume=None, resume_text=pastry_chef))
        self.assertLess(result.score, 30)
        self.assertLess(result.evidence["average_similarity"], 0.3)
        self.assertFalse(result.evidence["capped"])

    def test_structured_candidates_are_summary_skills_and_recent_roles(self):
        names = [name for name, _ in structured_sections(RESUME, max_roles=1)]
        self.assertEqual(names, ["summary", "skills", "role_0"])

    def test_short_resume_fails_cleanly(self):
        analyzer = SemanticRelevanceAnalyzer(SimpleEmbeddingProvider())
        result = _run(analyzer, _input(resume=None, resume_text="Python"))
        self.assertTrue(result.failed)
        self.assertTrue(result.warnings[0].startswith("semantic_relevance analyzer failed"))


class TitleAlignmentTests(unittest.TestCase):
    def test_helpers(self):
        self.assertEqual(normalize_title("Sr. Software Engineer II"), "software engineer")
        self.assertEqual(title_similarity("Senior Backend Engineer", "Backend Engineer"), 1.0)
        self.assertEqual(detect_title_seniority("Staff Engineer"), "staff")
        self.assertEqual(detect_title_seniority("VP of Engineering"), "executive")
        self.assertEqual(detect_title_seniority("Software Engineer"), "mid")

    def test_exact_latest_title(self):
        result = _run(TitleAlignmentAnalyzer(), _input())
        self.assertEqual(result.score, 100)
        self.assertEqual(result.evidence["best_match"]["title"], "Senior Backend Engineer")
        self.assertTrue(result.evidence["best_match"]["seniority_match"])

    def test_unrelated_title_with_seniority_gap(self):
        resume = StructuredResume(experience=[ExperienceEntry(title="Principal Software Architect")])
        job = JobRequirement(title="Nurse", seniority="entry")
        result = _run(TitleAlignmentAnalyzer(), _input(resume=resume, job=job))
        self.assertLess(result.score, 40)
        self.assertFalse(result.evidence["best_match"]["seniority_match"])

    def test_neutral_and_missing_title_cases(self):
        neutral = _run(TitleAlignmentAnalyzer(), _input(job=JobRequirement(must_have=["Python"])))
        self.assertEqual((neutral.score, neutral.confidence), (50, 0.5))
        empty = _run(TitleAlignmentAnalyzer(), _input(resume=StructuredResume(summary="Hello")))
        self.assertEqual((empty.score, empty.confidence), (20, 0.6))


class MetricsPresenceTests(unittest.TestCase):
    def test_metrics_across_roles(self):
        result = _run(MetricsPresenceAnalyzer(), _input())
        self.assertEqual(result.evidence["total_metrics"], 3)
        self.assertEqual(result.evidence["metrics_per_role"], [2, 1])
        self.assertEqual(result.evidence["ideal_metrics"], 4)
        self.assertEqual(result.score, 95)

    def test_no_metrics_scores_zero(self):
        resume = StructuredResume(
            experience=[ExperienceEntry(title="Engineer", achievements=["Improved the build system"])]
        )
        result = _run(MetricsPresenceAnalyzer(), _input(resume=resume))
        self.assertEqual(result.score, 0)
        self.assertIn("No quantified achievements found", result.warnings)
        self.assertFalse(result.failed)


class SectionCompletenessTests(unittest.TestCase):
    def test_complete_resume_caps_at_100(self):
        result = _run(SectionCompletenessAnalyzer(), _input())
        self.assertEqual(result.score, 100)
        self.assertEqual(result.evidence["missing"], [])
        self.assertEqual(result.evidence["bonuses"]["summary_length"], 0)
        self.assertEqual(result.evidence["bonuses"]["skills_count"], 5)

    def test_missing_sections_reduce_score(self):
        resume = RESUME.model_copy(update={"summary": "", "education": []})
        result = _run(SectionCompletenessAnalyzer(), _input(resume=resume))
        self.assertEqual(result.score, 60)
        self.assertEqual(result.evidence["missing"], ["summary", "education"])
        self.assertIn("Missing sections: summary, education", result.warnings)

    def test_text_headers_fallback(self):
        text = "SUMMARY\nBackend engineer\n\nSKILLS\nPython, Docker\n"
        result = _run(SectionCompletenessAnalyzer(), _input(resume=None, resume_text=text))
        self.assertEqual(result.score, 50)
        self.assertAlmostEqual(result.confidence, 0.7)
        self.assertEqual(result.evidence["source"], "text")


class FormatParseabilityTests(unittest.TestCase):
    def test_report_score_and_warnings(self):
        report = FormatReport(has_tables=True, format_safety_score=40)
        result = _run(FormatParseabilityAnalyzer(), _input(format_report=report))
        self.assertEqual(result.score, 40)
        self.assertIn(TABLES_WARNING, result.warnings)
        self.assertEqual(result.confidence, 1.0)

    def test_missing_report_is_neutral(self):
        result = _run(FormatParseabilityAnalyzer(), _input())
        self.assertEqual((result.score, result.confidence), (70, 0.6))


class RecencyFitTests(unittest.TestCase):
    def test_helpers(self):
        self.assertEqual(estimate_years_ago(ExperienceEntry(endDate="Present"), 0, NOW), 0)
        self.assertEqual(estimate_years_ago(ExperienceEntry(endDate="Mar 2020"), 1, NOW), 6)
        self.assertEqual(estimate_years_ago(ExperienceEntry(), 2, NOW), 4)
        self.assertEqual(decay_factor(2), 1.0)
        self.assertAlmostEqual(decay_factor(5), 0.8)
        self.assertAlmostEqual(decay_factor(20), 0.5)

    def test_relevance_times_decay(self):
        result = _run(RecencyFitAnalyzer(), _input())
        self.assertEqual(result.score, 45)
        self.assertEqual(result.evidence["latest_role"]["match_ratio"], 0.5)
        self.assertEqual([item["years_ago"] for item in result.evidence["experience_decay"]], [0, 5])

    def test_no_experience_is_neutral(self):
        result = _run(RecencyFitAnalyzer(), _input(resume=None, resume_text="Python developer"))
        self.assertEqual((result.score, result.confidence), (50, 0.6))

    def test_timestamp_is_respected(self):
        later = replace(_input(), timestamp=datetime(2040, 1, 1, tzinfo=timezone.utc))
        result = _run(RecencyFitAnalyzer(), later)
        self.assertEqual(result.evidence["experience_decay"][1]["years_ago"], 19)
        self.assertEqual(result.score, 38)


if __name__ == "__main__":
    unittest.main()
