from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Seniority = Literal["entry", "mid", "senior", "executive"]

_SENIORITY_ALIASES: dict[str, Seniority] = {
    "entry": "entry",
    "entry-level": "entry",
    "entry level": "entry",
    "junior": "entry",
    "intern": "entry",
    "associate": "entry",
    "mid": "mid",
    "mid-level": "mid",
    "intermediate": "mid",
    "senior": "senior",
    "lead": "senior",
    "staff": "senior",
    "principal": "senior",
    "executive": "executive",
    "director": "executive",
    "vp": "executive",
    "head": "executive",
    "chief": "executive",
}


class JobRequirement(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    company: str = ""
    must_have: list[str] = Field(default_factory=list)
    nice_to_have: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    seniority: Seniority = "mid"
    location: str = ""
    industry: str = ""

    @field_validator("seniority", mode="before")
    @classmethod
    def _coerce_seniority(cls, value: object) -> str:
        if value is None:
            return "mid"
        key = str(value).strip().lower()
        return _SENIORITY_ALIASES.get(key, "mid")

    @field_validator("must_have", "nice_to_have", "responsibilities", mode="before")
    @classmethod
    def _clean_items(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(item).strip() for item in value if str(item).strip()]


class ExtractionCompleteness(BaseModel):
    is_complete: bool
    completeness: float = Field(ge=0.0, le=1.0)
    missing_fields: list[str] = Field(default_factory=list)
