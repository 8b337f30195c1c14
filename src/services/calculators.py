"""
Score calculators for appraisal parts.

Pure functions only: every calculator accepts whatever raw values were
stored for a part and never raises on bad numbers. Missing or non-numeric
marks count as 0 and numeric marks are clamped into ``[0, field_max]``.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from ..models.enums import PartKey


PART_B_CAPS: Dict[str, float] = {
    "researchJournals": 15,
    "booksChapters": 15,
    "editedBooks": 10,
    "editorBooks": 10,
    "translations": 5,
    "researchProjects": 15,
    "consultancy": 10,
    "developmentPrograms": 10,
    "seminars": 10,
    "patents": 10,
    "awards": 5,
    "econtent": 5,
    "moocs": 5,
    "guidance": 15,
}
PART_B_CEILING = 120

PART_C_CAPS: Dict[str, float] = {
    "keyContribution": 25,
    "committeeRoles": 25,
    "professionalBodies": 25,
    "studentFeedback": 25,
}
STUDENT_FEEDBACK_SCALE = 5

# attendance is the top-tier value
PART_D_FIELD_MAX: Dict[str, float] = {
    "attendance": 5,
    "responsibility": 4,
    "honesty": 4,
    "teamwork": 4,
    "inclusiveness": 4,
    "conduct": 4,
}


@dataclass(frozen=True)
class PartScore:
    """Result of scoring one part."""
    score: float
    max: float
    subtotals: Dict[str, float] = field(default_factory=dict)

    def as_total(self) -> Dict[str, float]:
        """Entry stored under ``totals[part_key]``."""
        return {"score": self.score, "max": self.max}


class Grade(NamedTuple):
    grade: str
    label: str


GRADE_BANDS: List[tuple] = [
    (90, Grade("A+", "Outstanding")),
    (80, Grade("A", "Excellent")),
    (70, Grade("B+", "Very Good")),
    (60, Grade("B", "Good")),
    (50, Grade("C", "Satisfactory")),
    (40, Grade("D", "Needs Improvement")),
]
FAIL_GRADE = Grade("F", "Unsatisfactory")


def to_number(value: Any) -> float:
    """Parse a mark leniently; anything unusable is 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return 0.0 if math.isnan(number) else number


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round2(value: float) -> float:
    return round(value, 2)


def _as_mapping(values: Any) -> Mapping[str, Any]:
    return values if isinstance(values, Mapping) else {}


def sum_with_cap(records: Any, cap: float) -> float:
    """Sum ``selfMarks`` of a list of records, capped at the section maximum."""
    if not isinstance(records, (list, tuple)):
        return 0.0
    total = 0.0
    for record in records:
        if isinstance(record, Mapping):
            total += max(0.0, to_number(record.get("selfMarks")))
    return clamp(total, 0.0, cap)


def calculate_descriptive(values: Any) -> PartScore:
    """Parts A and E carry information only."""
    return PartScore(score=0.0, max=0.0)


def calculate_part_b(values: Any) -> PartScore:
    data = _as_mapping(values)
    subtotals = {
        section: round2(sum_with_cap(data.get(section), cap))
        for section, cap in PART_B_CAPS.items()
    }
    part_max = min(sum(PART_B_CAPS.values()), PART_B_CEILING)
    score = min(sum(subtotals.values()), part_max)
    return PartScore(score=round2(score), max=float(part_max), subtotals=subtotals)


def calculate_part_c(values: Any) -> PartScore:
    data = _as_mapping(values)
    key_contribution = _as_mapping(data.get("keyContribution"))
    feedback = _as_mapping(data.get("studentFeedback"))

    rating = clamp(to_number(feedback.get("averageRating")), 0.0, STUDENT_FEEDBACK_SCALE)
    subtotals = {
        "keyContribution": clamp(
            to_number(key_contribution.get("selfMarks")), 0.0, PART_C_CAPS["keyContribution"]
        ),
        "committeeRoles": sum_with_cap(data.get("committeeRoles"), PART_C_CAPS["committeeRoles"]),
        "professionalBodies": sum_with_cap(
            data.get("professionalBodies"), PART_C_CAPS["professionalBodies"]
        ),
        "studentFeedback": clamp(
            rating / STUDENT_FEEDBACK_SCALE * PART_C_CAPS["studentFeedback"],
            0.0,
            PART_C_CAPS["studentFeedback"],
        ),
    }
    subtotals = {key: round2(value) for key, value in subtotals.items()}
    part_max = sum(PART_C_CAPS.values())
    score = min(sum(subtotals.values()), part_max)
    return PartScore(score=round2(score), max=float(part_max), subtotals=subtotals)


def calculate_part_d(values: Any) -> PartScore:
    data = _as_mapping(values)
    subtotals = {
        name: round2(clamp(to_number(data.get(name)), 0.0, field_max))
        for name, field_max in PART_D_FIELD_MAX.items()
    }
    return PartScore(
        score=round2(sum(subtotals.values())),
        max=float(sum(PART_D_FIELD_MAX.values())),
        subtotals=subtotals,
    )


CALCULATORS: Dict[PartKey, Callable[[Any], PartScore]] = {
    PartKey.A: calculate_descriptive,
    PartKey.B: calculate_part_b,
    PartKey.C: calculate_part_c,
    PartKey.D: calculate_part_d,
    PartKey.E: calculate_descriptive,
}


def calculate(part_key: str, raw_values: Any) -> PartScore:
    """Score one part. ``part_key`` must be one of A-E."""
    return CALCULATORS[PartKey(part_key)](raw_values)


PART_MAXIMA: Dict[str, float] = {key.value: calculate(key, {}).max for key in PartKey}
OVERALL_MAX: float = sum(PART_MAXIMA.values())


def empty_totals() -> Dict[str, Dict[str, float]]:
    """Totals of an appraisal with no saved parts."""
    return {"overall": {"score": 0.0, "max": OVERALL_MAX}}


def with_overall(part_totals: Mapping[str, Mapping[str, float]]) -> Dict[str, Dict[str, float]]:
    """Order part entries A-E and append the overall sum."""
    totals: Dict[str, Dict[str, float]] = {}
    for key in PartKey:
        if key.value in part_totals:
            entry = part_totals[key.value]
            totals[key.value] = {"score": float(entry["score"]), "max": float(entry["max"])}
    overall = round2(sum(entry["score"] for entry in totals.values()))
    totals["overall"] = {"score": overall, "max": OVERALL_MAX}
    return totals


def compute_totals(parts: Optional[Mapping[str, Any]]) -> Dict[str, Dict[str, float]]:
    """Recompute every saved part's total and the overall sum."""
    parts = parts or {}
    return with_overall({
        key.value: calculate(key, parts[key.value]).as_total()
        for key in PartKey
        if key.value in parts
    })


def percentage(totals: Mapping[str, Any]) -> float:
    overall = _as_mapping(totals.get("overall"))
    score = to_number(overall.get("score"))
    maximum = to_number(overall.get("max"))
    if maximum <= 0:
        return 0.0
    return round2(score / maximum * 100)


def grade_for(pct: float) -> Grade:
    """Map an overall percentage onto its grade band."""
    for threshold, grade in GRADE_BANDS:
        if pct >= threshold:
            return grade
    return FAIL_GRADE
