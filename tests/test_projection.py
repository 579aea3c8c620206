import pytest
from data_loader import get_curriculum, get_progress
from models import CourseReason
from projection import (
    build_projection,
    build_projection_options,
    pick_courses_max_credits,
    pick_courses_until_cap,
)
from rules import MAX_CREDIT_CAP

from helpers.builders import approved, course, failed, rules


def _codes(result):
    return [c.code for c in result.selected_courses]


@pytest.fixture(scope="module")
def icci(sample_data):
    return get_curriculum(sample_data, "ICCI", "2020")


@pytest.fixture(scope="module")
def student_progress(sample_data):
    return get_progress(sample_data, "20201234", "ICCI")


class _Stub:
    def __init__(self, credits):
        self.credits = credits


def _stubs(*credits):
    return [_Stub(c) for c in credits]


# ── Selection primitives ──────────────────────────────────────────────────────

class TestPickUntilCap:
    def test_takes_in_order_while_fitting(self):
        assert pick_courses_until_cap(_stubs(6, 2, 5, 6, 5), 22) == [0, 1, 2, 3]

    def test_skips_overflow_and_keeps_scanning(self):
        assert pick_courses_until_cap(_stubs(10, 8, 6, 3), 14) == [0, 3]

    def test_stops_when_cap_met(self):
        assert pick_courses_until_cap(_stubs(5, 5, 1), 10) == [0, 1]

    def test_empty(self):
        assert pick_courses_until_cap([], 22) == []


class TestPickMaxCredits:
    def test_reaches_exact_cap_when_possible(self):
        picked = pick_courses_max_credits(_stubs(6, 2, 5, 6, 5), 22)
        assert picked == [0, 2, 3, 4]

    def test_prefers_more_courses_on_equal_sum(self):
        # {0} = 6 and {1, 2} = 6; two courses win
        assert pick_courses_max_credits(_stubs(6, 3, 3), 6) == [1, 2]

    def test_prefers_earlier_courses_on_equal_size(self):
        # {0, 1}, {0, 2} and {1, 2} all reach 8; the earliest pair wins
        assert pick_courses_max_credits(_stubs(4, 4, 4), 8) == [0, 1]

    def test_course_heavier_than_cap_ignored(self):
        assert pick_courses_max_credits(_stubs(30, 4), 10) == [1]

    def test_nothing_fits(self):
        assert pick_courses_max_credits(_stubs(30, 40), 10) == []


# ── Projection over the sample curriculum ─────────────────────────────────────

class TestBuildProjection:
    def test_greedy_default(self, icci, student_progress):
        result = build_projection(icci, student_progress, rules())
        assert _codes(result) == ["FIS-101", "ING-201", "MAT-301", "PRG-301"]
        assert result.total_credits == 19

    def test_maximize_reaches_cap(self, icci, student_progress):
        result = build_projection(icci, student_progress, rules(maximize=True))
        assert _codes(result) == ["FIS-101", "MAT-301", "PRG-301", "BDD-301"]
        assert result.total_credits == 22

    def test_credit_range_filters_small_course(self, icci, student_progress):
        result = build_projection(icci, student_progress, rules(low=5, high=10))
        assert _codes(result) == ["FIS-101", "MAT-301", "PRG-301", "BDD-301"]
        assert result.total_credits == 22

    def test_prioritized_codes_go_first(self, icci, student_progress):
        result = build_projection(
            icci,
            student_progress,
            rules(priority_codes=["BDD-301"], order=["PRIORITIZED", "LOWEST_LEVEL"]),
        )
        assert _codes(result) == ["BDD-301", "FIS-101", "ING-201", "MAT-301"]
        assert result.total_credits == 18

    def test_new_student_takes_first_level(self, icci):
        result = build_projection(icci, [], rules())
        assert _codes(result) == ["MAT-101", "FIS-101", "PRG-101", "QUI-101"]
        assert result.total_credits == 22

    def test_failed_course_marked(self, icci, student_progress):
        result = build_projection(icci, student_progress, rules())
        reasons = {c.code: c.reason for c in result.selected_courses}
        assert reasons["FIS-101"] == CourseReason.FAILED
        assert reasons["ING-201"] == CourseReason.PENDING

    def test_approved_courses_never_selected(self, icci, student_progress):
        result = build_projection(icci, student_progress, rules(maximize=True))
        assert not {"MAT-101", "PRG-101", "QUI-101", "MAT-201", "PRG-201"} & set(_codes(result))

    def test_missing_cap_defaults_to_22(self, icci):
        result = build_projection(icci, [], rules(cap=None))
        assert result.rules.credit_cap == 22
        assert result.total_credits <= 22

    def test_non_positive_cap_defaults_to_22(self, icci):
        assert build_projection(icci, [], rules(cap=0)).rules.credit_cap == 22
        assert build_projection(icci, [], rules(cap=-4)).rules.credit_cap == 22

    def test_small_cap(self, icci, student_progress):
        result = build_projection(icci, student_progress, rules(cap=7))
        assert _codes(result) == ["FIS-101"]

    def test_rules_echoed(self, icci, student_progress):
        result = build_projection(
            icci, student_progress, rules(cap="20", priority_codes=[" BDD-301 ", ""])
        )
        assert result.rules.credit_cap == 20
        assert result.rules.priority_codes == ("BDD-301",)

    def test_empty_curriculum(self):
        result = build_projection([], [approved("X")], rules())
        assert result.selected_courses == ()
        assert result.total_credits == 0

    def test_idempotent(self, icci, student_progress):
        first = build_projection(icci, student_progress, rules(maximize=True))
        second = build_projection(icci, student_progress, rules(maximize=True))
        assert first == second


class TestInvariants:
    @pytest.mark.parametrize("cap", [1, 5, 8, 13, 22, 30])
    def test_total_within_cap(self, icci, student_progress, cap):
        for maximize in (False, True):
            result = build_projection(icci, student_progress, rules(cap=cap, maximize=maximize))
            assert result.total_credits <= cap
            assert result.total_credits == sum(c.credits for c in result.selected_courses)

    @pytest.mark.parametrize("cap", [5, 8, 13, 17, 22])
    def test_maximize_never_below_greedy(self, icci, student_progress, cap):
        greedy = build_projection(icci, student_progress, rules(cap=cap))
        best = build_projection(icci, student_progress, rules(cap=cap, maximize=True))
        assert best.total_credits >= greedy.total_credits

    def test_selected_within_credit_range(self, icci, student_progress):
        result = build_projection(icci, student_progress, rules(low=3, high=5))
        assert all(3 <= c.credits <= 5 for c in result.selected_courses)

    def test_no_duplicate_codes(self):
        curriculum = [course("A", credits=4), course("A", credits=4), course("B", credits=4)]
        result = build_projection(curriculum, [], rules(maximize=True))
        assert _codes(result) == ["A", "B"]

    def test_retake_selected_despite_unmet_prereq(self):
        curriculum = [course("A", credits=6), course("B", credits=6, prereq="Z")]
        result = build_projection(curriculum, [failed("B")], rules())
        assert _codes(result) == ["A", "B"]


class TestScenarios:
    @pytest.fixture
    def two_level(self):
        return [course("C1", credits=6, level=1), course("C2", credits=4, level=2, prereq="C1")]

    def test_prereq_blocks_second_course(self, two_level):
        result = build_projection(two_level, [], rules(cap=10, high=8))
        assert _codes(result) == ["C1"]

    def test_approval_unlocks_second_course(self, two_level):
        result = build_projection(two_level, [approved("C1")], rules(cap=10, high=8))
        assert _codes(result) == ["C2"]
        assert result.total_credits == 4

    def test_maximize_single_course_when_pairs_overflow(self):
        curriculum = [course("A"), course("B"), course("C")]
        result = build_projection(curriculum, [], rules(cap=10, maximize=True))
        assert _codes(result) == ["A"]
        assert result.total_credits == 6

    def test_maximize_multiples_of_six(self):
        curriculum = [course(f"K{i}") for i in range(5)]
        result = build_projection(curriculum, [], rules(cap=22, maximize=True))
        assert _codes(result) == ["K0", "K1", "K2"]
        assert result.total_credits == 18


class TestCapBounds:
    def test_huge_cap_is_clamped_in_maximize_mode(self, icci, student_progress):
        result = build_projection(icci, student_progress, rules(cap=10**20, maximize=True))
        assert result.rules.credit_cap == MAX_CREDIT_CAP
        assert result.total_credits == 24

    def test_huge_cap_options(self, icci, student_progress):
        options = build_projection_options(
            icci, student_progress, rules(cap=10**20, maximize=True), max_alternatives=3
        )
        assert all(o.total_credits <= MAX_CREDIT_CAP for o in options)
