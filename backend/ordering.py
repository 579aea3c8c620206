"""
Tag-driven ordering of annotated courses.

A tag order such as ["FAILED", "PRIORITIZED", "LOWEST_LEVEL"] is compiled into
a chain of comparison rules. Each rule returns -1 (a before b), 1 (b before a)
or 0 (tie, ask the next rule). When every rule ties, courses fall back to
ascending level. Sorting is stable, so courses the chain treats as equal keep
their curriculum order.
"""

from functools import cmp_to_key
from typing import Callable

from models import AnnotatedCourse
from normalizer import coerce_text
from rules import TAG_FAILED, TAG_LOWEST_LEVEL, TAG_PRIORITIZED

CompareRule = Callable[[AnnotatedCourse, AnnotatedCourse], int]


def _flag_first(a_flag: bool, b_flag: bool) -> int:
    if a_flag == b_flag:
        return 0
    return -1 if a_flag else 1


def failed_first(a: AnnotatedCourse, b: AnnotatedCourse) -> int:
    return _flag_first(a.is_failed, b.is_failed)


def prioritized_first(a: AnnotatedCourse, b: AnnotatedCourse) -> int:
    return _flag_first(a.is_prioritized, b.is_prioritized)


def lowest_level_first(a: AnnotatedCourse, b: AnnotatedCourse) -> int:
    return (a.level > b.level) - (a.level < b.level)


TAG_RULES: dict[str, CompareRule] = {
    TAG_FAILED: failed_first,
    TAG_PRIORITIZED: prioritized_first,
    TAG_LOWEST_LEVEL: lowest_level_first,
}


def build_rule_chain(priority_order) -> list[CompareRule]:
    """Map tags to rules in order, case-insensitively. Unknown tags are dropped."""
    chain: list[CompareRule] = []
    for tag in priority_order or ():
        rule = TAG_RULES.get(coerce_text(tag).strip().upper())
        if rule is not None:
            chain.append(rule)
    return chain


def compare_by_tags(a: AnnotatedCourse, b: AnnotatedCourse, chain: list[CompareRule]) -> int:
    for rule in chain:
        decided = rule(a, b)
        if decided:
            return decided
    return lowest_level_first(a, b)


def order_courses(courses: list[AnnotatedCourse], priority_order) -> list[AnnotatedCourse]:
    chain = build_rule_chain(priority_order)
    return sorted(courses, key=cmp_to_key(lambda a, b: compare_by_tags(a, b, chain)))
