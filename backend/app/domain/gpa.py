"""
GPA aggregation rules.

Students either enter one overall GPA or up to five semester GPAs. A
semester that was not taken is stored as -1, and the overall GPA is the mean
of the semesters that were provided (-1 when none was).
"""

import math
from typing import Iterable, Optional, Sequence

NOT_PROVIDED = -1.0

SEMESTER_FIELDS = ("gpa_1_1", "gpa_1_2", "gpa_2_1", "gpa_2_2", "gpa_3_1")


def normalize_component(value: object) -> float:
    """Coerce one semester GPA; blanks, zero and junk become NOT_PROVIDED."""
    if value is None or isinstance(value, bool):
        return NOT_PROVIDED
    try:
        gpa = float(value)
    except (TypeError, ValueError):
        return NOT_PROVIDED
    if math.isnan(gpa) or gpa <= 0:
        return NOT_PROVIDED
    return gpa


def semester_components(values: Optional[Sequence[object]]) -> dict[str, float]:
    """Map up to five raw semester values onto the semester columns."""
    values = list(values or [])
    if len(values) > len(SEMESTER_FIELDS):
        raise ValueError(f"At most {len(SEMESTER_FIELDS)} semester GPAs are accepted")
    padded = values + [None] * (len(SEMESTER_FIELDS) - len(values))
    return {
        field: normalize_component(value)
        for field, value in zip(SEMESTER_FIELDS, padded)
    }


def overall_from_components(components: Iterable[float]) -> float:
    provided = [gpa for gpa in components if gpa > NOT_PROVIDED]
    if not provided:
        return NOT_PROVIDED
    return sum(provided) / len(provided)


def profile_grades(
    use_overall_gpa: bool,
    overall_gpa: Optional[float],
    semester_gpas: Optional[Sequence[object]],
) -> dict[str, float]:
    """
    Column values for a grade update.

    An explicit overall GPA clears the semester columns. Otherwise the
    overall GPA is derived from the semesters.
    """
    if use_overall_gpa:
        if overall_gpa is None:
            raise ValueError("overall_gpa is required when use_overall_gpa is set")
        grades = {field: NOT_PROVIDED for field in SEMESTER_FIELDS}
        grades["overall_gpa"] = float(overall_gpa)
        return grades

    grades = semester_components(semester_gpas)
    grades["overall_gpa"] = overall_from_components(grades.values())
    return grades
