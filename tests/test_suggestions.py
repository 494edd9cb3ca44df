import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_scoring.schemas.job import JobRequirement
from ats_scoring.schemas.scoring import SUBSCORE_KEYS, AnalyzerResult, SubScores
from ats_scoring.suggestions.generator import (
    estimate_gain,
    generate_suggestions,
    identify_gaps,
    select_keyword_candidates,
    select_phrase_candidates,
)
from ats_scoring.suggestions.templates import SuggestionTemplate, fill_template

JOB = JobRequirement(
    title="Backend Engineer",
    must_have=["Docker", "Kubernetes", "Terraform", "Golang"],
    nice_to_have=["GraphQL"],
    responsibilities=["Design scalable backend services"],
    seniority="senior",
)

EVIDENCE = {
    "keyword_exact": {
        "matched": [],
        "missing": ["docker", "kubernetes", "terraform", "golang"],
        "must_have_missing": ["docker", "kubernetes", "terraform", "golang"],
        "must_have_matched": 0,
        "must_have_total": 4,
        "nice_to_have_matched": 0,
        "nice_to_have_total": 1,
    },
    "keyword_phrase": {"missing": ["design scalable backend services", "mentor platform engineers"]},
    "semantic_relevance": {},
    "title_alignment": {
        "target_title": "Backend Engineer",
        "target_seniority": "senior",
        "best_match": {"title": "Engineer", "seniority_match": False},
    },
    "metrics_presence": {"ideal_metrics": 4},
    "section_completeness": {
        "missing": ["summary"],
        "present": ["skills", "experience", "education"],
        "bonuses": {"summary_length": 0, "skills_count": 5, "achievements": 0, "education_details": 5},
    },
    "format_parseability": {"has_tables": True, "has_images": True, "has_multi_column": True},
    "recency_fit": {},
}


def _results(score=10, **overrides):
    results = {
        key: AnalyzerResult(score=score, confidence=1.0, evidence=EVIDENCE[key]) for key in SUBSCORE_KEYS
    }
    results.update(overrides)
    return results


class GapTests(unittest.TestCase):
    def test_gaps_ordered_by_urgency_then_weight(self):
        scores = SubScores.from_mapping(
            {key: 90 for key in SUBSCORE_KEYS}
            | {"recency_fit": 20, "keyword_exact": 60, "format_parseability": 30}
        )
        gaps = identify_gaps(scores)
        self.assertEqual([gap.key for gap in gaps], ["format_parseability", "recency_fit", "keyword_exact"])
        self.assertEqual([gap.urgency for gap in gaps], ["high", "high", "medium"])
        self.assertEqual(identify_gaps(scores, skip=["recency_fit"])[1].key, "keyword_exact")

    def test_gain_scales_with_weight_and_headroom(self):
        self.assertEqual(estimate_gain("keyword_exact", 20, 8), 8)
        self.assertEqual(estimate_gain("format_parseability", 0, 15), 13)
        self.assertEqual(estimate_gain("recency_fit", 98, 6), 1)
        self.assertLessEqual(estimate_gain("keyword_exact", 0, 40), 15)


class CandidateTests(unittest.TestCase):
    def test_keywords_use_job_phrasing_and_drop_boilerplate(self):
        self.assertEqual(
            select_keyword_candidates(["docker", "title"], ["Docker Compose", "Python"]),
            ["Docker Compose"],
        )
        self.assertEqual(select_keyword_candidates(["about", "terraform"], []), ["terraform"])

    def test_phrases_filter_posting_language(self):
        phrases = select_phrase_candidates(
            {"missing": ["responsible for scaling APIs", "we are hiring engineers", "python"]}, None
        )
        self.assertEqual(phrases, ["scaling APIs"])
        self.assertEqual(select_phrase_candidates({}, JOB), ["Design scalable backend services"])


class TemplateTests(unittest.TestCase):
    def test_unfillable_template_is_skipped(self):
        template = SuggestionTemplate("Add {keyword}", 5, True, "keywords")
        self.assertIsNone(fill_template(template, {"keyword": ""}))
        self.assertIsNone(fill_template(template, {}))

    def test_lists_are_summarised(self):
        template = SuggestionTemplate("Include {keywords}", 5, True, "keywords")
        text = fill_template(template, {"keywords": ["A", "B", "C", "D", "E"]})
        self.assertEqual(text, "Include A, B, C, and 2 more")


class GeneratorTests(unittest.TestCase):
    def test_missing_keyword_is_named(self):
        scores = SubScores.from_mapping({key: 90 for key in SUBSCORE_KEYS} | {"keyword_exact": 10})
        suggestions = generate_suggestions(scores, _results(), JOB)
        self.assertTrue(suggestions)
        self.assertTrue(all(item.targets == ["keyword_exact"] for item in suggestions))
        self.assertIn("Docker", suggestions[0].text)
        self.assertEqual(suggestions[0].action.type, "add_keyword")
        self.assertEqual(suggestions[0].action.keywords[0], "Docker")

    def test_cap_ranking_and_uniqueness(self):
        scores = SubScores.from_mapping({key: 10 for key in SUBSCORE_KEYS})
        suggestions = generate_suggestions(scores, _results(), JOB)
        self.assertEqual(len(suggestions), 10)
        self.assertEqual(len({item.id for item in suggestions}), 10)
        flags = [item.quick_win for item in suggestions]
        self.assertEqual(flags, sorted(flags, reverse=True))
        for earlier, later in zip(suggestions, suggestions[1:]):
            if earlier.quick_win == later.quick_win:
                self.assertGreaterEqual(earlier.estimated_gain, later.estimated_gain)
        for item in suggestions:
            self.assertGreaterEqual(item.estimated_gain, 3)
            self.assertLessEqual(item.estimated_gain, 15)
            if item.quick_win:
                self.assertGreaterEqual(item.estimated_gain, 4)

    def test_failed_analyzers_get_no_suggestions(self):
        scores = SubScores.from_mapping({key: 10 for key in SUBSCORE_KEYS})
        results = _results(keyword_exact=AnalyzerResult(score=0, confidence=0.0))
        suggestions = generate_suggestions(scores, results, JOB)
        self.assertNotIn("keyword_exact", {target for item in suggestions for target in item.targets})

    def test_no_gaps_no_suggestions(self):
        scores = SubScores.from_mapping({key: 95 for key in SUBSCORE_KEYS})
        self.assertEqual(generate_suggestions(scores, _results(score=95), JOB), [])

    def test_ids_are_deterministic(self):
        scores = SubScores.from_mapping({key: 10 for key in SUBSCORE_KEYS})
        first = [item.id for item in generate_suggestions(scores, _results(), JOB)]
        second = [item.id for item in generate_suggestions(scores, _results(), JOB)]
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
