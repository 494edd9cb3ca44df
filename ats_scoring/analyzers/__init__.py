from __future__ import annotations

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer, failed_result
from ats_scoring.analyzers.format_parseability import FormatParseabilityAnalyzer
from ats_scoring.analyzers.keyword_exact import KeywordExactAnalyzer
from ats_scoring.analyzers.keyword_phrase import KeywordPhraseAnalyzer
from ats_scoring.analyzers.metrics_presence import MetricsPresenceAnalyzer
from ats_scoring.analyzers.recency_fit import RecencyFitAnalyzer
from ats_scoring.analyzers.section_completeness import SectionCompletenessAnalyzer
from ats_scoring.analyzers.semantic_relevance import SemanticRelevanceAnalyzer
from ats_scoring.analyzers.title_alignment import TitleAlignmentAnalyzer
from ats_scoring.schemas.scoring import SUBSCORE_KEYS, SubScoreKey
from ats_scoring.semantic.embeddings import EmbeddingProvider

ANALYZER_REGISTRY: dict[SubScoreKey, type[BaseAnalyzer]] = {
    "keyword_exact": KeywordExactAnalyzer,
    "keyword_phrase": KeywordPhraseAnalyzer,
    "semantic_relevance": SemanticRelevanceAnalyzer,
    "title_alignment": TitleAlignmentAnalyzer,
    "metrics_presence": MetricsPresenceAnalyzer,
    "section_completeness": SectionCompletenessAnalyzer,
    "format_parseability": FormatParseabilityAnalyzer,
    "recency_fit": RecencyFitAnalyzer,
}

if tuple(ANALYZER_REGISTRY) != SUBSCORE_KEYS:
    raise RuntimeError("Analyzer registry must cover every sub-score key in order.")


def create_analyzers(embedding_provider: EmbeddingProvider) -> list[BaseAnalyzer]:
    analyzers: list[BaseAnalyzer] = []
    for analyzer_cls in ANALYZER_REGISTRY.values():
        if getattr(analyzer_cls, "requires_embeddings", False):
            analyzers.append(analyzer_cls(embedding_provider))  # type: ignore[call-arg]
        else:
            analyzers.append(analyzer_cls())
    return analyzers


__all__ = [
    "ANALYZER_REGISTRY",
    "AnalyzerInput",
    "BaseAnalyzer",
    "create_analyzers",
    "failed_result",
]
