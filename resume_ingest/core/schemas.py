from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional, Union


Category = Literal["experiences", "education", "skills"]
Phase = Literal["ai", "fallback", "normalize", "consolidate"]
CategorySource = Literal["ai", "fallback", "none"]

# Degree and field of study come back from the model as either one string or a list
StringOrList = Union[str, List[str]]


class ExperienceRecord(BaseModel):
    """Work, project, leadership, research or volunteering entry."""
    organization: str = "Unknown"
    role_title: str = "Unknown Role"
    section_label: Optional[str] = None  # Source heading, e.g. "Leadership"
    location: Optional[str] = None
    start_date: Optional[str] = None  # YYYY-MM-DD
    end_date: Optional[str] = None  # YYYY-MM-DD, always None when is_current
    is_current: bool = False
    summary: Optional[str] = None
    achievements: List[str] = Field(default_factory=list, description="Complete bullets, never split on commas")
    skills: List[str] = Field(default_factory=list)


class EducationRecord(BaseModel):
    institution: str = "Unknown institution"
    degree: Optional[StringOrList] = None
    field_of_study: Optional[StringOrList] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)  # Coursework, honors, GPA lines


class SkillGroupRecord(BaseModel):
    category: Optional[str] = None  # e.g. "Languages"
    skills: List[str] = Field(default_factory=list)


class ParsedResumeBatch(BaseModel):
    experiences: List[ExperienceRecord] = Field(default_factory=list)
    education: List[EducationRecord] = Field(default_factory=list)
    skills: List[SkillGroupRecord] = Field(default_factory=list)


class Diagnostic(BaseModel):
    """Soft failure recorded during a parse. Never aborts the pipeline."""
    phase: Phase
    category: Optional[Category] = None
    level: Literal["info", "warning"] = "warning"
    message: str


class ParseOutcome(BaseModel):
    batch: ParsedResumeBatch = Field(default_factory=ParsedResumeBatch)
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    sources: Dict[Category, CategorySource] = Field(
        default_factory=lambda: {"experiences": "none", "education": "none", "skills": "none"},
        description="Which phase produced each category",
    )


class ExtractedText(BaseModel):
    text: str
    mime_type: str
    original_filename: Optional[str] = None


# ===== STORED-RECORD VIEWS (cross-batch dedup) =====

class ExistingExperience(BaseModel):
    organization: Optional[str] = None
    role_title: Optional[str] = None
    start_date: Optional[str] = None


class ExistingEducation(BaseModel):
    institution: Optional[str] = None
    degree: Optional[StringOrList] = None
    field_of_study: Optional[StringOrList] = None


class ExistingSkillGroup(BaseModel):
    category: Optional[str] = None
    skills: Optional[List[str]] = None


# ===== HTTP PAYLOADS =====

class ParseTextRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=50000, description="Pasted resume text")


class ParseResponse(BaseModel):
    batch: ParsedResumeBatch
    diagnostics: List[Diagnostic] = Field(default_factory=list)
    sources: Dict[Category, CategorySource] = Field(default_factory=dict)
    mime_type: Optional[str] = None
    original_filename: Optional[str] = None


class DedupeRequest(BaseModel):
    batch: ParsedResumeBatch
    existing_experiences: List[ExistingExperience] = Field(default_factory=list)
    existing_education: List[ExistingEducation] = Field(default_factory=list)
    existing_skills: List[ExistingSkillGroup] = Field(default_factory=list)


class DedupeResponse(BaseModel):
    batch: ParsedResumeBatch
    dropped: Dict[Category, int] = Field(default_factory=dict, description="Duplicates removed per category")
