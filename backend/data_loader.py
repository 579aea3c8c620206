import os

import pandas as pd

from models import CurriculumCourse, ProgressRecord, ProgressStatus
from normalizer import coerce_bool, coerce_int, coerce_text, normalize_code
from prereq_parser import parse_prereqs, prereq_course_codes

CURRICULUM_COLUMNS = ["program_id", "catalog", "code", "title", "credits", "level", "prereq"]
PROGRESS_COLUMNS = [
    "student_id",
    "program_id",
    "course",
    "status",
    "nrc",
    "period",
    "excluded",
    "inscription_type",
]

# Status spellings emitted by the progress source, including the
# registrar's Spanish labels.
_STATUS_ALIASES = {
    "APPROVED": ProgressStatus.APPROVED,
    "APROBADO": ProgressStatus.APPROVED,
    "FAILED": ProgressStatus.FAILED,
    "REPROBADO": ProgressStatus.FAILED,
}


def parse_status(raw) -> ProgressStatus:
    return _STATUS_ALIASES.get(coerce_text(raw).strip().upper(), ProgressStatus.OTHER)


def _cell(value):
    """NaN from pandas reads as missing."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    return value


def _ensure_columns(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    for col in columns:
        if col not in df.columns:
            df[col] = None
    return df


def _program_key(value) -> str:
    return coerce_text(_cell(value)).strip().upper()


def _plain_key(value) -> str:
    return coerce_text(_cell(value)).strip()


def _normalize_curriculum_df(df: pd.DataFrame) -> pd.DataFrame:
    df = _ensure_columns(df, CURRICULUM_COLUMNS)
    df["program_id"] = df["program_id"].apply(_program_key)
    df["catalog"] = df["catalog"].apply(_plain_key)
    df["code"] = df["code"].apply(lambda v: normalize_code(_cell(v)) or "")
    df = df[df["code"] != ""]

    dup_mask = df.duplicated(subset=["program_id", "catalog", "code"], keep="first")
    if dup_mask.any():
        dups = sorted(set(df.loc[dup_mask, "code"].tolist()))
        print(f"[WARN] {len(dups)} duplicate course code(s) in curriculum; keeping first row: {dups}")
        df = df[~dup_mask]
    return df.reset_index(drop=True)


def _normalize_progress_df(df: pd.DataFrame) -> pd.DataFrame:
    df = _ensure_columns(df, PROGRESS_COLUMNS)
    df["student_id"] = df["student_id"].apply(_plain_key)
    df["program_id"] = df["program_id"].apply(_program_key)
    df["course"] = df["course"].apply(lambda v: normalize_code(_cell(v)) or "")
    df = df[df["course"] != ""]
    return df.reset_index(drop=True)


def _read_tables(data_path: str) -> tuple[pd.DataFrame, pd.DataFrame]:
    # Codes like "00107" must survive as text, so nothing is parsed as numbers here.
    if os.path.isdir(data_path):
        curriculum_df = pd.read_csv(os.path.join(data_path, "curriculum.csv"), dtype=str)
        progress_path = os.path.join(data_path, "progress.csv")
        if os.path.exists(progress_path):
            progress_df = pd.read_csv(progress_path, dtype=str)
        else:
            progress_df = pd.DataFrame(columns=PROGRESS_COLUMNS)
        return curriculum_df, progress_df

    xl = pd.ExcelFile(data_path, engine="openpyxl")
    curriculum_df = xl.parse("curriculum", dtype=str)
    if "progress" in xl.sheet_names:
        progress_df = xl.parse("progress", dtype=str)
    else:
        progress_df = pd.DataFrame(columns=PROGRESS_COLUMNS)
    return curriculum_df, progress_df


def _warn_unknown_prereqs(curriculum_df: pd.DataFrame) -> None:
    for (program_id, catalog), group in curriculum_df.groupby(["program_id", "catalog"], sort=True):
        known = set(group["code"].tolist())
        unknown: set[str] = set()
        for raw in group["prereq"]:
            unknown.update(c for c in prereq_course_codes(parse_prereqs(_cell(raw))) if c not in known)
        if unknown:
            print(
                f"[WARN] {program_id}/{catalog}: {len(unknown)} prerequisite code(s) "
                f"not in curriculum: {sorted(unknown)}"
            )


def load_data(data_path: str) -> dict:
    """
    Load curriculum and progress tables. Raises on file/schema errors.

    data_path is either a directory with curriculum.csv (and optionally
    progress.csv) or an .xlsx workbook with "curriculum" and "progress" sheets.
    """
    if not os.path.exists(data_path):
        raise FileNotFoundError(data_path)

    curriculum_raw, progress_raw = _read_tables(data_path)
    curriculum_df = _normalize_curriculum_df(curriculum_raw)
    progress_df = _normalize_progress_df(progress_raw)

    programs = sorted({(p, c) for p, c in zip(curriculum_df["program_id"], curriculum_df["catalog"])})
    print(
        f"[INFO] {len(curriculum_df)} curriculum row(s) across {len(programs)} program catalog(s); "
        f"{len(progress_df)} progress record(s)"
    )
    _warn_unknown_prereqs(curriculum_df)

    return {
        "curriculum_df": curriculum_df,
        "progress_df": progress_df,
        "programs": programs,
        "course_count": len(curriculum_df),
    }


def _course_from_row(row: pd.Series) -> CurriculumCourse:
    return CurriculumCourse(
        code=row["code"],
        title=coerce_text(_cell(row.get("title"))).strip(),
        credits=coerce_int(_cell(row.get("credits")), minimum=0),
        level=coerce_int(_cell(row.get("level"))),
        prerequisite_codes=parse_prereqs(_cell(row.get("prereq"))),
    )


def _record_from_row(row: pd.Series) -> ProgressRecord:
    return ProgressRecord(
        course=row["course"],
        status=parse_status(_cell(row.get("status"))),
        nrc=coerce_text(_cell(row.get("nrc"))).strip(),
        period=coerce_text(_cell(row.get("period"))).strip(),
        student_id=row["student_id"],
        excluded=coerce_bool(_cell(row.get("excluded"))),
        inscription_type=coerce_text(_cell(row.get("inscription_type"))).strip(),
    )


def get_curriculum(data: dict, program_id: str, catalog: str) -> list[CurriculumCourse]:
    """Curriculum of one program catalog in source row order. Empty when unknown."""
    df = data.get("curriculum_df")
    if df is None or len(df) == 0:
        return []
    subset = df[(df["program_id"] == _program_key(program_id)) & (df["catalog"] == _plain_key(catalog))]
    return [_course_from_row(row) for _, row in subset.iterrows()]


def get_progress(data: dict, student_id: str, program_id: str) -> list[ProgressRecord]:
    """
    All enrollment attempts of a student in a program. Rows without a
    program_id apply to every program of that student.
    """
    df = data.get("progress_df")
    if df is None or len(df) == 0:
        return []
    program_key = _program_key(program_id)
    subset = df[
        (df["student_id"] == _plain_key(student_id))
        & ((df["program_id"] == program_key) | (df["program_id"] == ""))
    ]
    return [_record_from_row(row) for _, row in subset.iterrows()]


def has_program(data: dict, program_id: str, catalog: str) -> bool:
    return (_program_key(program_id), _plain_key(catalog)) in set(data.get("programs", []))


def list_programs(data: dict) -> list[dict]:
    df = data.get("curriculum_df")
    if df is None or len(df) == 0:
        return []
    counts = df.groupby(["program_id", "catalog"], sort=True).size()
    return [
        {"program_id": program_id, "catalog": catalog, "course_count": int(count)}
        for (program_id, catalog), count in counts.items()
    ]


def curriculum_records(courses: list[CurriculumCourse]) -> list[dict]:
    """JSON-safe curriculum rows for the API."""
    return [
        {
            "code": c.code,
            "title": c.title,
            "credits": c.credits,
            "level": c.level,
            "prerequisites": prereq_course_codes(c.prerequisite_codes),
        }
        for c in courses
    ]


def data_file_mtime(path: str):
    try:
        if os.path.isdir(path):
            mtimes = [
                os.path.getmtime(os.path.join(path, f))
                for f in os.listdir(path)
                if f.endswith(".csv")
            ]
            return max(mtimes) if mtimes else None
        return os.path.getmtime(path)
    except OSError:
        return None

