"""
Course projection from the command line.

Loads the curriculum/progress data, runs the projection engine for one
student and prints the selection (or several alternatives).

Usage:
    python scripts/project_student.py --student 20201234 --program ICCI --catalog 2020
    python scripts/project_student.py --student 20201234 --program ICCI --catalog 2020 \\
        --maximize --options 3 --order FAILED --order LOWEST_LEVEL
    python scripts/project_student.py ... --path path/to/data.xlsx --json
"""

import argparse
import json
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(REPO_ROOT, "backend"))

from data_loader import get_curriculum, get_progress, has_program, load_data  # noqa: E402
from models import CreditRange, SelectionRules  # noqa: E402
from projection import build_projection, build_projection_options  # noqa: E402
from rules import DEFAULT_CREDIT_RANGE, DEFAULT_PRIORITY_ORDER, PRIORITY_TAGS  # noqa: E402

DEFAULT_DATA_PATH = os.path.join(REPO_ROOT, "data")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Project next-term courses for a student.")
    parser.add_argument("--student", required=True, help="Student identifier")
    parser.add_argument("--program", required=True, help="Program identifier")
    parser.add_argument("--catalog", required=True, help="Curriculum catalog version")
    parser.add_argument("--path", default=DEFAULT_DATA_PATH, help="Data directory or .xlsx workbook")
    parser.add_argument("--cap", type=int, default=None, help="Credit cap (default 22)")
    parser.add_argument("--min-credits", type=int, default=DEFAULT_CREDIT_RANGE.min)
    parser.add_argument("--max-credits", type=int, default=DEFAULT_CREDIT_RANGE.max)
    parser.add_argument("--maximize", action="store_true", help="Maximize total credits")
    parser.add_argument("--prioritize-failed", action="store_true")
    parser.add_argument(
        "--priority",
        action="append",
        default=[],
        metavar="CODE",
        help="Course code to prioritize (repeatable)",
    )
    parser.add_argument(
        "--order",
        action="append",
        default=None,
        metavar="TAG",
        help=f"Priority tag: {', '.join(PRIORITY_TAGS)} (repeatable, in order)",
    )
    parser.add_argument("--options", type=int, default=1, help="Number of projections to list")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    return parser


def rules_from_args(args) -> SelectionRules:
    return SelectionRules(
        credit_cap=args.cap,
        credit_range=CreditRange(min=args.min_credits, max=args.max_credits),
        maximize_credits=args.maximize,
        prioritize_failed=args.prioritize_failed,
        priority_codes=tuple(args.priority),
        priority_order=tuple(args.order) if args.order is not None else DEFAULT_PRIORITY_ORDER,
    )


def format_projection(result, label: str) -> str:
    lines = [f"{label}: {result.total_credits}/{result.rules.credit_cap} credits"]
    if not result.selected_courses:
        lines.append("  (no eligible courses)")
    for course in result.selected_courses:
        lines.append(
            f"  {course.code:<12} {course.credits:>3}  L{course.level:<2} "
            f"{course.reason.value:<8} {course.title}"
        )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        data = load_data(args.path)
    except FileNotFoundError:
        print(f"[ERROR] Data path not found: {args.path}", file=sys.stderr)
        return 1

    if not has_program(data, args.program, args.catalog):
        print(f"[ERROR] Program '{args.program}' catalog '{args.catalog}' is not recognized.", file=sys.stderr)
        return 1

    curriculum = get_curriculum(data, args.program, args.catalog)
    progress = get_progress(data, args.student, args.program)
    rules = rules_from_args(args)

    if args.options > 1:
        results = build_projection_options(curriculum, progress, rules, args.options)
    else:
        results = [build_projection(curriculum, progress, rules)]

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return 0

    for n, result in enumerate(results, start=1):
        label = "Projection" if n == 1 else f"Alternative {n - 1}"
        print(format_projection(result, label))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
