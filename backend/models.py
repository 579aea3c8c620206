"""
Data model for course projections.

Curriculum and progress records are read-only inputs owned by the data
sources. AnnotatedCourse is the engine's private working record; only
ProjectedCourse ever leaves a projection call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ProgressStatus(Enum):
    """Outcome of one enrollment attempt."""
    APPROVED = "APPROVED"
    FAILED = "FAILED"
    OTHER = "OTHER"


class CourseReason(Enum):
    """Why a course is offered in a projection."""
    FAILED = "FAILED"
    PENDING = "PENDING"


@dataclass(frozen=True)
class CurriculumCourse:
    """
    One course of a program's curriculum ("malla").

    Attributes:
        code: Course code as published in the catalog (e.g. "DCCB-00107")
        title: Course title
        credits: Non-negative credit load (SCT)
        level: Curricular level (semester) the course belongs to
        prerequisite_codes: Codes that must all be approved before enrolling
    """
    code: str
    title: str
    credits: int
    level: int
    prerequisite_codes: frozenset = field(default_factory=frozenset)


@dataclass(frozen=True)
class ProgressRecord:
    """One enrollment attempt on a student's progress record ("avance")."""
    course: str
    status: ProgressStatus
    nrc: str = ""
    period: str = ""
    student_id: str = ""
    excluded: bool = False
    inscription_type: str = ""


@dataclass
class AnnotatedCourse:
    """Working record for a single projection call. Never returned to callers."""
    code: str
    title: str
    credits: int
    level: int
    reason: CourseReason
    is_failed: bool
    is_prioritized: bool

    def to_projected(self) -> "ProjectedCourse":
        return ProjectedCourse(
            code=self.code,
            title=self.title,
            credits=self.credits,
            level=self.level,
            reason=self.reason,
        )


@dataclass(frozen=True)
class ProjectedCourse:
    code: str
    title: str
    credits: int
    level: int
    reason: CourseReason
    nrc: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "title": self.title,
            "credits": self.credits,
            "level": self.level,
            "reason": self.reason.value,
            "nrc": self.nrc,
        }


@dataclass(frozen=True)
class CreditRange:
    """Inclusive per-course credit bounds."""
    min: int = 0
    max: int = 10

    def contains(self, credits: int) -> bool:
        return self.min <= credits <= self.max

    def to_dict(self) -> dict:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class SelectionRules:
    """
    Caller-supplied selection configuration.

    credit_cap may be None or non-positive here; the engine resolves it
    (see rules.resolve_credit_cap) and echoes the resolved value back.
    prioritize_failed is informational only: failed courses move up only
    when "FAILED" appears in priority_order.
    """
    credit_cap: Optional[int] = None
    credit_range: CreditRange = field(default_factory=CreditRange)
    maximize_credits: bool = False
    prioritize_failed: bool = False
    priority_codes: tuple = ()
    priority_order: tuple = ("LOWEST_LEVEL",)

    def to_dict(self) -> dict:
        return {
            "credit_cap": self.credit_cap,
            "credit_range": self.credit_range.to_dict(),
            "maximize_credits": self.maximize_credits,
            "prioritize_failed": self.prioritize_failed,
            "priority_codes": list(self.priority_codes),
            "priority_tag_order": list(self.priority_order),
        }


@dataclass(frozen=True)
class ProjectionResult:
    selected_courses: tuple
    total_credits: int
    rules: SelectionRules

    @property
    def codes(self) -> list[str]:
        return [c.code for c in self.selected_courses]

    def to_dict(self) -> dict:
        return {
            "selected_courses": [c.to_dict() for c in self.selected_courses],
            "total_credits": self.total_credits,
            "rules": self.rules.to_dict(),
        }


@dataclass(frozen=True)
class ProjectionRequest:
    """
    Parsed request body. student_id, program_id and catalog only select
    data from the sources; the engine itself sees rules alone.
    """
    student_id: str
    program_id: str
    catalog: str
    rules: SelectionRules
    max_alternatives: int = 5
