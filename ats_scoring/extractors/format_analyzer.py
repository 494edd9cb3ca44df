from __future__ import annotations

import re
from typing import Protocol

from ats_scoring.core.config.scoring import get_scoring_int
from ats_scoring.extractors.resume_text import resume_to_text
from ats_scoring.schemas.format import FormatReport, TemplateMetadata
from ats_scoring.schemas.resume import StructuredResume

_ODD_GLYPHS_RE = re.compile(r"[^\x00-\x7F\u00A0-\u024F]")
_SAFE_TEMPLATE_MARKERS = ("ats", "minimal", "simple")


class FormatAnalyzer(Protocol):
    def analyze(
        self,
        resume: StructuredResume,
        template_hint: str | None = None,
        template_metadata: TemplateMetadata | None = None,
    ) -> FormatReport:
        """Build a format report for a structured resume."""


def has_odd_glyphs(text: str) -> bool:
    return bool(_ODD_GLYPHS_RE.search(text or ""))


def is_ats_safe_template(template_hint: str | None, template_metadata: TemplateMetadata | None = None) -> bool:
    if template_metadata is not None and template_metadata.is_ats_safe:
        return True
    hint = (template_hint or "").lower()
    return any(marker in hint for marker in _SAFE_TEMPLATE_MARKERS)


def analyze_resume_format(
    resume: StructuredResume,
    template_hint: str | None = None,
    template_metadata: TemplateMetadata | None = None,
) -> FormatReport:
    """Format risks from the structured resume plus whatever the template declares."""
    odd_glyphs = has_odd_glyphs(resume_to_text(resume))

    if is_ats_safe_template(template_hint, template_metadata):
        issues = ["Unusual characters detected - may cause encoding issues"] if odd_glyphs else []
        return FormatReport(
            has_odd_glyphs=odd_glyphs,
            format_safety_score=get_scoring_int("format.ats_safe_template_score", 95),
            issues=issues,
        )

    metadata = template_metadata or TemplateMetadata()
    checks = (
        ("multi_column", metadata.has_columns, 15, "Multi-column layout detected - may cause parsing issues"),
        ("tables", metadata.has_tables, 20, "Tables detected - ATS may not parse correctly"),
        ("images", metadata.has_graphics, 10, "Images detected - will be ignored by ATS"),
        ("odd_glyphs", odd_glyphs, 5, "Unusual characters detected - may cause encoding issues"),
    )
    score = get_scoring_int("format.base_score", 100)
    issues: list[str] = []
    for name, detected, default_penalty, message in checks:
        if detected:
            score -= get_scoring_int(f"format.penalties.{name}", default_penalty)
            issues.append(message)

    return FormatReport(
        has_tables=metadata.has_tables,
        has_images=metadata.has_graphics,
        has_multi_column=metadata.has_columns,
        has_odd_glyphs=odd_glyphs,
        format_safety_score=max(0, min(100, score)),
        issues=issues,
    )


def format_recommendations(report: FormatReport) -> list[str]:
    recommendations: list[str] = []
    if report.format_safety_score < 70:
        recommendations.append("Consider switching to an ATS-safe template (single column, no graphics)")
    if report.has_tables:
        recommendations.append("Remove tables and use simple lists or text formatting instead")
    if report.has_images:
        recommendations.append("Remove images, logos, and graphics - they won't be read by ATS")
    if report.has_headers_footers:
        recommendations.append("Remove headers and footers - move all content to main body")
    if report.has_multi_column:
        recommendations.append("Use single-column layout for better ATS parsing")
    if report.has_nonstandard_fonts:
        recommendations.append("Use standard fonts (Arial, Calibri, Times New Roman)")
    if report.has_odd_glyphs:
        recommendations.append("Replace special characters and emojis with standard ASCII text")
    return recommendations or ["Format looks ATS-safe - no major issues detected"]


def is_high_risk_format(report: FormatReport) -> bool:
    return report.format_safety_score < get_scoring_int("penalties.format_risk.threshold", 50)


class StructuredFormatAnalyzer(FormatAnalyzer):
    def analyze(
        self,
        resume: StructuredResume,
        template_hint: str | None = None,
        template_metadata: TemplateMetadata | None = None,
    ) -> FormatReport:
        return analyze_resume_format(resume, template_hint, template_metadata)
