from __future__ import annotations

from collections import defaultdict

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer
from ats_scoring.core.config.scoring import get_scoring_float, get_scoring_int
from ats_scoring.normalize.text import calculate_confidence, extract_ngrams
from ats_scoring.schemas.scoring import AnalyzerResult

COMMON_WORDS = frozenset(
    {
        "the", "and", "for", "with", "this", "that", "from", "have", "will", "are",
        "been", "has", "had", "was", "were", "can", "may", "could", "would", "should",
        "must", "being", "about", "into", "through", "during", "our", "you", "your",
    }
)


def is_meaningful_phrase(phrase: str) -> bool:
    return any(word not in COMMON_WORDS for word in phrase.split(" "))


def extract_phrases(text: str) -> list[str]:
    return list(dict.fromkeys(ngram for ngram in extract_ngrams(text) if is_meaningful_phrase(ngram)))


class _PhraseIndex:
    """Word -> phrase inverted index for fuzzy word-set matching."""

    def __init__(self, phrases: list[str]) -> None:
        self.exact = set(phrases)
        self.word_sets = [frozenset(phrase.split(" ")) for phrase in phrases]
        self.by_word: dict[str, list[int]] = defaultdict(list)
        for index, words in enumerate(self.word_sets):
            for word in words:
                self.by_word[word].append(index)

    def has_similar(self, phrase: str, threshold: float) -> bool:
        if phrase in self.exact:
            return True
        target = frozenset(phrase.split(" "))
        shared: dict[int, int] = defaultdict(int)
        for word in target:
            for index in self.by_word.get(word, ()):
                shared[index] += 1
        for index, overlap in shared.items():
            union = len(target) + len(self.word_sets[index]) - overlap
            if union and overlap / union > threshold:
                return True
        return False


class KeywordPhraseAnalyzer(BaseAnalyzer):
    name = "keyword_phrase"

    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        threshold = get_scoring_float("keywords.phrase_match_threshold", 0.7)
        max_missing = get_scoring_int("keywords.max_missing_phrases", 10)

        job_phrases = extract_phrases(analyzer_input.job_text)
        for responsibility in analyzer_input.job.responsibilities:
            job_phrases.extend(extract_phrases(responsibility))
        job_phrases = list(dict.fromkeys(job_phrases))

        index = _PhraseIndex(extract_phrases(analyzer_input.resume_text))
        matched: list[str] = []
        missing: list[str] = []
        for phrase in job_phrases:
            if index.has_similar(phrase, threshold):
                matched.append(phrase)
            else:
                missing.append(phrase)

        score = len(matched) / len(job_phrases) * 100 if job_phrases else 50.0
        confidence = calculate_confidence(
            has_required_data=bool(job_phrases),
            data_completeness=1.0 if len(job_phrases) > 3 else 0.7,
        )
        evidence = {
            "matched": matched,
            "missing": missing[:max_missing],
            "total_job_phrases": len(job_phrases),
            "matched_count": len(matched),
        }
        return self.result(score, evidence, confidence)
