from __future__ import annotations

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer
from ats_scoring.core.config.scoring import get_scoring_float
from ats_scoring.normalize.text import calculate_confidence, find_missing, tokenize
from ats_scoring.schemas.scoring import AnalyzerResult


def _skill_tokens(skills: list[str]) -> list[str]:
    tokens: list[str] = []
    for skill in skills:
        for token in tokenize(skill):
            if token not in tokens:
                tokens.append(token)
    return tokens


class KeywordExactAnalyzer(BaseAnalyzer):
    """Exact word overlap with the job's must-have and nice-to-have skills."""

    name = "keyword_exact"

    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        must_weight = get_scoring_float("keywords.must_have_weight", 2.0)
        nice_weight = get_scoring_float("keywords.nice_to_have_weight", 1.0)

        resume_tokens = set(tokenize(analyzer_input.resume_text))
        must_have = _skill_tokens(analyzer_input.job.must_have)
        nice_to_have = _skill_tokens(analyzer_input.job.nice_to_have)

        must_missing = find_missing(must_have, resume_tokens)
        nice_missing = find_missing(nice_to_have, resume_tokens)
        must_matched = len(must_have) - len(must_missing)
        nice_matched = len(nice_to_have) - len(nice_missing)

        possible = len(must_have) * must_weight + len(nice_to_have) * nice_weight
        earned = must_matched * must_weight + nice_matched * nice_weight
        score = earned / possible * 100 if possible else 0.0

        confidence = calculate_confidence(
            has_required_data=bool(must_have or nice_to_have),
            data_completeness=1.0 if must_have else 0.7,
        )
        evidence = {
            "matched": list(
                dict.fromkeys(token for token in [*must_have, *nice_to_have] if token in resume_tokens)
            ),
            "missing": [*must_missing, *[token for token in nice_missing if token not in must_missing]],
            "must_have_missing": must_missing,
            "must_have_matched": must_matched,
            "must_have_total": len(must_have),
            "nice_to_have_matched": nice_matched,
            "nice_to_have_total": len(nice_to_have),
        }
        warnings = [] if must_have or nice_to_have else ["Job requirement lists no keywords"]
        return self.result(score, evidence, confidence, warnings)
