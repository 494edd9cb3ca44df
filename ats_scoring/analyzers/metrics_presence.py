from __future__ import annotations

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer
from ats_scoring.core.config.scoring import get_scoring_int
from ats_scoring.normalize.text import calculate_confidence, find_metrics, lerp
from ats_scoring.schemas.scoring import AnalyzerResult


class MetricsPresenceAnalyzer(BaseAnalyzer):
    """Counts quantified achievements (percentages, currency, counts, multipliers)."""

    name = "metrics_presence"

    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        min_total = get_scoring_int("metrics.min_total_metrics", 3)
        per_role = get_scoring_int("metrics.ideal_metrics_per_role", 2)
        bonus_max = get_scoring_int("metrics.distribution_bonus_max", 20)
        max_examples = get_scoring_int("metrics.max_examples", 10)

        structured = analyzer_input.resume_structured
        metrics_per_role: list[int] = []
        if structured is not None and structured.experience:
            examples: list[str] = []
            for role in structured.experience:
                found = [metric for achievement in role.achievements for metric in find_metrics(achievement)]
                metrics_per_role.append(len(found))
                examples.extend(found)
            ideal = len(structured.experience) * per_role
        else:
            examples = find_metrics(analyzer_input.resume_text)
            ideal = min_total

        total = len(examples)
        if total == 0:
            score = 0.0
        else:
            score = lerp(total, 0, max(ideal, min_total))
            if metrics_per_role:
                with_metrics = sum(1 for count in metrics_per_role if count > 0)
                score = min(100.0, score + with_metrics / len(metrics_per_role) * bonus_max)

        confidence = calculate_confidence(
            has_required_data=bool(analyzer_input.resume_text.strip()) or structured is not None,
            data_completeness=1.0 if metrics_per_role else 0.8,
        )
        evidence = {
            "total_metrics": total,
            "examples": examples[:max_examples],
            "metrics_per_role": metrics_per_role,
            "ideal_metrics": ideal,
        }
        warnings = ["No quantified achievements found"] if total == 0 else []
        return self.result(score, evidence, confidence, warnings)
