from __future__ import annotations

from pydantic import BaseModel, Field


class FormatReport(BaseModel):
    has_tables: bool = False
    has_images: bool = False
    has_multi_column: bool = False
    has_headers_footers: bool = False
    has_nonstandard_fonts: bool = False
    has_odd_glyphs: bool = False
    format_safety_score: int = Field(default=100, ge=0, le=100)
    issues: list[str] = Field(default_factory=list)


class TemplateMetadata(BaseModel):
    family: str = ""
    is_ats_safe: bool = False
    has_columns: bool = False
    has_graphics: bool = False
    has_tables: bool = False
