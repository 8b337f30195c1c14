"""Raw value schemas for the appraisal parts A-E.

These schemas check shape only. Marks are parsed as numbers but never
range-checked here; the score calculators clamp them.
"""

from typing import Annotated, Any, Dict, List, Optional, Type
from pydantic import (
    BaseModel, BeforeValidator, ConfigDict, Field, ValidationError,
    field_validator, model_validator,
)
from pydantic.alias_generators import to_camel

from ..core.exceptions import AppraisalValidationError
from ..models.enums import PartKey
from ..utils.messages import get_message
from ..utils.sanitize_html import sanitize_optional_text, sanitize_record


def _blank_to_none(value: Any) -> Any:
    """Forms send empty strings for untouched number inputs."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


Marks = Annotated[Optional[float], BeforeValidator(_blank_to_none)]


class CamelModel(BaseModel):
    """Base schema accepting camelCase keys as stored by the forms."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )


class ContributionRecord(CamelModel):
    """One listed contribution; only ``selfMarks`` is interpreted."""
    model_config = ConfigDict(extra="allow")

    self_marks: Marks = Field(None, description="Self-assessed marks for this entry")

    @model_validator(mode="before")
    @classmethod
    def sanitize_text(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return sanitize_record(data)
        return data


# Part A - General information
class BasicDetails(CamelModel):
    model_config = ConfigDict(extra="allow")

    employee_no: Optional[str] = None
    full_name: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    date_of_joining: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None


class Qualification(CamelModel):
    model_config = ConfigDict(extra="allow")

    examination: Optional[str] = None
    board_university: Optional[str] = None
    subject: Optional[str] = None


class Experience(CamelModel):
    model_config = ConfigDict(extra="allow")

    teaching_exp_ug: Marks = None
    teaching_exp_pg: Marks = None
    industry_experience: Marks = None
    non_teaching_experience: Marks = None
    sies_experience: Marks = None
    specialization: Optional[str] = None


class PartAValues(CamelModel):
    """General information. Descriptive, not scored."""
    model_config = ConfigDict(extra="forbid")

    basic_details: BasicDetails = Field(default_factory=BasicDetails)
    qualifications: List[Qualification] = Field(default_factory=list)
    experience: Experience = Field(default_factory=Experience)


# Part B - Research & academic contributions
class PartBValues(CamelModel):
    """Research & academic contributions, one list per section."""
    model_config = ConfigDict(extra="forbid")

    research_journals: List[ContributionRecord] = Field(default_factory=list)
    books_chapters: List[ContributionRecord] = Field(default_factory=list)
    edited_books: List[ContributionRecord] = Field(default_factory=list)
    editor_books: List[ContributionRecord] = Field(default_factory=list)
    translations: List[ContributionRecord] = Field(default_factory=list)
    research_projects: List[ContributionRecord] = Field(default_factory=list)
    consultancy: List[ContributionRecord] = Field(default_factory=list)
    development_programs: List[ContributionRecord] = Field(default_factory=list)
    seminars: List[ContributionRecord] = Field(default_factory=list)
    patents: List[ContributionRecord] = Field(default_factory=list)
    awards: List[ContributionRecord] = Field(default_factory=list)
    econtent: List[ContributionRecord] = Field(default_factory=list)
    moocs: List[ContributionRecord] = Field(default_factory=list)
    guidance: List[ContributionRecord] = Field(default_factory=list)


# Part C - Academic/administrative contribution
class KeyContribution(CamelModel):
    model_config = ConfigDict(extra="forbid")

    contribution: Optional[str] = None
    self_marks: Marks = None

    @field_validator("contribution")
    @classmethod
    def sanitize_contribution(cls, v):
        return sanitize_optional_text(v)


class StudentFeedback(CamelModel):
    model_config = ConfigDict(extra="allow")

    average_rating: Marks = Field(None, description="Average rating on a 0-5 scale")
    total_responses: Marks = None
    course_name: Optional[str] = None


class PartCValues(CamelModel):
    """Academic/administrative contribution."""
    model_config = ConfigDict(extra="forbid")

    key_contribution: KeyContribution = Field(default_factory=KeyContribution)
    committee_roles: List[ContributionRecord] = Field(default_factory=list)
    professional_bodies: List[ContributionRecord] = Field(default_factory=list)
    student_feedback: StudentFeedback = Field(default_factory=StudentFeedback)


# Part D - Values
class PartDValues(CamelModel):
    """Six value ratings."""
    model_config = ConfigDict(extra="forbid")

    attendance: Marks = None
    responsibility: Marks = None
    honesty: Marks = None
    teamwork: Marks = None
    inclusiveness: Marks = None
    conduct: Marks = None


# Part E - Self assessment
class PartEValues(CamelModel):
    """Self assessment. Descriptive, not scored."""
    model_config = ConfigDict(extra="forbid")

    self_summary: Optional[str] = None
    goals: Optional[str] = None
    strengths: Optional[str] = None
    areas_for_improvement: Optional[str] = None
    training_needs: Optional[str] = None
    supporting_documents: List[str] = Field(default_factory=list)

    @field_validator(
        "self_summary", "goals", "strengths", "areas_for_improvement", "training_needs"
    )
    @classmethod
    def sanitize_text(cls, v):
        return sanitize_optional_text(v)


PART_SCHEMAS: Dict[PartKey, Type[CamelModel]] = {
    PartKey.A: PartAValues,
    PartKey.B: PartBValues,
    PartKey.C: PartCValues,
    PartKey.D: PartDValues,
    PartKey.E: PartEValues,
}


def parse_part_key(part_key: Any) -> PartKey:
    """Resolve a part key, raising a validation error for unknown keys."""
    try:
        return PartKey(part_key)
    except ValueError:
        raise AppraisalValidationError(
            get_message("part", "unknown_part", part_key=part_key)
        )


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in error['loc']) or 'values'}: {error['msg']}"
        for error in exc.errors()
    )


def validate_part_values(part_key: Any, raw_values: Any) -> Dict[str, Any]:
    """Validate raw part values and return the normalised JSON document."""
    key = parse_part_key(part_key)
    schema = PART_SCHEMAS[key]
    try:
        parsed = schema.model_validate(raw_values)
    except ValidationError as e:
        raise AppraisalValidationError(
            get_message("part", "invalid_values", part_key=key.value, errors=_format_errors(e))
        )
    return parsed.model_dump(by_alias=True, mode="json")
