from models import (
    AnnotatedCourse,
    CourseReason,
    CurriculumCourse,
    ProgressRecord,
    ProgressStatus,
    SelectionRules,
)
from normalizer import normalize_code, normalize_code_list
from ordering import order_courses
from prereq_parser import prereqs_satisfied


def derive_status_sets(progress: list[ProgressRecord]) -> tuple[set[str], set[str]]:
    """
    Reduce a student's enrollment history to (approved, failed) code sets.

    Approval supersedes earlier failures: a course approved on a retake is
    only in the approved set.
    """
    approved: set[str] = set()
    failed: set[str] = set()
    for record in progress or []:
        code = normalize_code(record.course)
        if code is None:
            continue
        if record.status == ProgressStatus.APPROVED:
            approved.add(code)
        elif record.status == ProgressStatus.FAILED:
            failed.add(code)
    return approved, failed - approved


def is_eligible(course: CurriculumCourse, approved: set[str], failed: set[str]) -> bool:
    """
    A pending course can be taken when it is a retake (prerequisites were
    met once already) or every prerequisite is approved.
    """
    if normalize_code(course.code) in failed:
        return True
    return prereqs_satisfied(course.prerequisite_codes, approved)


def get_eligible_courses(
    curriculum: list[CurriculumCourse],
    approved: set[str],
    failed: set[str],
    rules: SelectionRules,
) -> list[CurriculumCourse]:
    """
    Courses not yet approved, whose prerequisites are met (or that are
    retakes), and whose credits fall inside the inclusive credit range.
    Curriculum order is preserved; repeated codes keep their first row.
    """
    eligible: list[CurriculumCourse] = []
    seen: set[str] = set()
    for course in curriculum or []:
        code = normalize_code(course.code)
        if code is None or code in seen:
            continue
        seen.add(code)
        # Skip already approved
        if code in approved:
            continue
        if not is_eligible(course, approved, failed):
            continue
        if not rules.credit_range.contains(course.credits):
            continue
        eligible.append(course)
    return eligible


def annotate_course(
    course: CurriculumCourse,
    failed: set[str],
    priority_codes: set[str],
) -> AnnotatedCourse:
    code = normalize_code(course.code) or ""
    is_failed = code in failed
    return AnnotatedCourse(
        code=code,
        title=course.title,
        credits=course.credits,
        level=course.level,
        reason=CourseReason.FAILED if is_failed else CourseReason.PENDING,
        is_failed=is_failed,
        is_prioritized=code in priority_codes,
    )


def prepare_courses(
    curriculum: list[CurriculumCourse],
    progress: list[ProgressRecord],
    rules: SelectionRules,
) -> list[AnnotatedCourse]:
    """
    Returns the ordered working list the selection engine runs over.

    Steps:
      1. approved / failed sets from the progress record
      2. drop approved courses
      3. keep retakes and courses with every prerequisite approved
      4. keep courses inside rules.credit_range
      5. annotate failed / prioritized flags and the offer reason
      6. stable sort by rules.priority_order, falling back to level

    Never raises; empty inputs give an empty list.
    """
    approved, failed = derive_status_sets(progress)
    priority_codes = set(normalize_code_list(rules.priority_codes))
    eligible = get_eligible_courses(curriculum, approved, failed, rules)
    annotated = [annotate_course(c, failed, priority_codes) for c in eligible]
    return order_courses(annotated, rules.priority_order)
