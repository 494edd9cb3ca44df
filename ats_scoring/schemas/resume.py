from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ContactInfo(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    portfolio: str = ""


class Skills(BaseModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)

    def all(self) -> list[str]:
        return [*self.technical, *self.soft]


class ExperienceEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    company: str = ""
    location: str = ""
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    achievements: list[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    degree: str = ""
    institution: str = ""
    location: str = ""
    graduation_date: str = Field(default="", alias="graduationDate")
    gpa: str = ""


class ProjectEntry(BaseModel):
    name: str = ""
    description: str = ""
    technologies: list[str] = Field(default_factory=list)


class StructuredResume(BaseModel):
    """Structured resume form. Experience is ordered most recent first."""

    contact: ContactInfo | None = None
    summary: str = ""
    skills: Skills = Field(default_factory=Skills)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    projects: list[ProjectEntry] = Field(default_factory=list)
