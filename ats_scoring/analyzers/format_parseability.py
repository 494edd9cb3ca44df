from __future__ import annotations

from ats_scoring.analyzers.base import AnalyzerInput, BaseAnalyzer
from ats_scoring.core.config.scoring import get_scoring_float, get_scoring_int
from ats_scoring.schemas.scoring import AnalyzerResult

TABLES_WARNING = "Tables detected - ATS may not parse correctly"
IMAGES_WARNING = "Images detected - will be ignored by ATS"
MULTI_COLUMN_WARNING = "Multi-column layout may cause parsing issues"


class FormatParseabilityAnalyzer(BaseAnalyzer):
    name = "format_parseability"

    async def analyze(self, analyzer_input: AnalyzerInput) -> AnalyzerResult:
        report = analyzer_input.format_report
        if report is None:
            return self.result(
                get_scoring_int("format.no_report_score", 70),
                {"error": "No format report available"},
                get_scoring_float("format.no_report_confidence", 0.6),
                ["Format could not be analyzed; using a neutral format score"],
            )

        warnings: list[str] = []
        if report.has_tables:
            warnings.append(TABLES_WARNING)
        if report.has_images:
            warnings.append(IMAGES_WARNING)
        if report.has_multi_column:
            warnings.append(MULTI_COLUMN_WARNING)

        evidence = {
            "has_tables": report.has_tables,
            "has_images": report.has_images,
            "has_multi_column": report.has_multi_column,
            "has_headers_footers": report.has_headers_footers,
            "has_nonstandard_fonts": report.has_nonstandard_fonts,
            "has_odd_glyphs": report.has_odd_glyphs,
            "issues": list(report.issues),
        }
        return self.result(report.format_safety_score, evidence, 1.0, warnings)
