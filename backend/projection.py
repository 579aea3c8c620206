from combinations import (
    combination_credits,
    extend_forward,
    next_combination,
    next_feasible_combination,
)
from eligibility import prepare_courses
from models import (
    AnnotatedCourse,
    CurriculumCourse,
    ProgressRecord,
    ProjectionResult,
    SelectionRules,
)
from rules import DEFAULT_MAX_ALTERNATIVES, resolve_rules


def pick_courses_until_cap(courses: list[AnnotatedCourse], cap: int) -> list[int]:
    """
    Priority-greedy fill: walk the ordered list once, taking every course that
    still fits. Overflowing courses are skipped (a later, smaller one may fit);
    scanning stops once the cap is met exactly.
    """
    selected: list[int] = []
    total = 0
    for idx, course in enumerate(courses):
        if total + course.credits <= cap:
            selected.append(idx)
            total += course.credits
        if total == cap:
            break
    return selected


def _combination_goodness(indices: list[int]) -> tuple[int, int]:
    """
    Tie-break key between subsets with the same credit sum: more courses wins,
    then the lower average list index. With equal sizes the average compares
    like the index sum, so the key stays integral.
    """
    return len(indices), -sum(indices)


def pick_courses_max_credits(courses: list[AnnotatedCourse], cap: int) -> list[int]:
    """
    0/1 knapsack over exact credit sums 0..cap.

    best[t] holds the best index subset reaching exactly t credits, or None.
    Sums are updated high to low so each course is used at most once. The
    selection is the subset at the largest reachable t.
    """
    best: list[list[int] | None] = [None] * (cap + 1)
    best[0] = []
    for idx, course in enumerate(courses):
        weight = course.credits
        if weight > cap:
            continue
        for t in range(cap, weight - 1, -1):
            prev = best[t - weight]
            if prev is None:
                continue
            candidate = prev + [idx]
            if best[t] is None or _combination_goodness(candidate) > _combination_goodness(best[t]):
                best[t] = candidate

    for t in range(cap, -1, -1):
        if best[t] is not None:
            return best[t]
    return []


def make_projection_result(
    courses: list[AnnotatedCourse],
    indices: list[int],
    rules: SelectionRules,
) -> ProjectionResult:
    selected = tuple(courses[i].to_projected() for i in indices)
    return ProjectionResult(
        selected_courses=selected,
        total_credits=sum(c.credits for c in selected),
        rules=rules,
    )


def _select_indices(courses: list[AnnotatedCourse], rules: SelectionRules) -> list[int]:
    if rules.maximize_credits:
        return pick_courses_max_credits(courses, rules.credit_cap)
    return pick_courses_until_cap(courses, rules.credit_cap)


def build_projection(
    curriculum: list[CurriculumCourse],
    progress: list[ProgressRecord],
    rules: SelectionRules,
) -> ProjectionResult:
    """
    Single best selection for the next term.

    maximize_credits=False walks the tag-ordered list greedily;
    maximize_credits=True reaches the largest credit total within the cap,
    preferring more courses and then courses earlier in the ordered list.
    """
    effective = resolve_rules(rules)
    courses = prepare_courses(curriculum, progress, effective)
    return make_projection_result(courses, _select_indices(courses, effective), effective)


def _maximized_alternatives(
    courses: list[AnnotatedCourse],
    seed: list[int],
    rules: SelectionRules,
    count: int,
) -> list[ProjectionResult]:
    # Subset size stays fixed at the seed's size.
    credits = [c.credits for c in courses]
    out: list[ProjectionResult] = []
    indices = seed
    while len(out) < count:
        indices = next_feasible_combination(indices, credits, rules.credit_cap)
        if indices is None:
            break
        out.append(make_projection_result(courses, indices, rules))
    return out


def _greedy_alternatives(
    courses: list[AnnotatedCourse],
    seed: list[int],
    rules: SelectionRules,
    count: int,
) -> list[ProjectionResult]:
    credits = [c.credits for c in courses]
    out: list[ProjectionResult] = []
    indices = seed
    while len(out) < count:
        indices = next_combination(indices, len(courses))
        if indices is None:
            break
        if combination_credits(indices, credits) > rules.credit_cap:
            continue
        filled, _ = extend_forward(indices, credits, rules.credit_cap)
        out.append(make_projection_result(courses, filled, rules))
    return out


def build_projection_options(
    curriculum: list[CurriculumCourse],
    progress: list[ProgressRecord],
    rules: SelectionRules,
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
) -> list[ProjectionResult]:
    """
    Up to max_alternatives projections, best first.

    The first entry equals build_projection(). Each later entry comes from
    stepping the previous index combination to the next one of the same size:
      - maximize_credits=True: infeasible combinations are skipped
      - maximize_credits=False: combinations over the cap are skipped, the
        rest are refilled forward with the courses that follow them
    The list is shorter than requested once stepping runs out.
    """
    effective = resolve_rules(rules)
    courses = prepare_courses(curriculum, progress, effective)
    seed = _select_indices(courses, effective)
    options = [make_projection_result(courses, seed, effective)]

    remaining = max(1, int(max_alternatives)) - 1
    if remaining <= 0:
        return options
    if effective.maximize_credits:
        options.extend(_maximized_alternatives(courses, seed, effective, remaining))
    else:
        options.extend(_greedy_alternatives(courses, seed, effective, remaining))
    return options
