"""
CSV parsing for hierarchy imports.

Spreadsheet exports arrive as comma separated text with a header row naming
the university, college, department and capacity columns. Fields may be
wrapped in double or single quotes to carry embedded commas. Rows whose
field count does not match the header are dropped with a warning instead of
failing the batch.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from app.infrastructure.exceptions import MalformedInputError

logger = logging.getLogger(__name__)

QUOTE_CHARS = ("\"", "'")

# Capacity is the leading integer; "10.0" and "10명" both read as 10
LEADING_INT = re.compile(r"[+-]?\d+")

REQUIRED_COLUMNS = ("university", "college", "department", "capacity")

# Header labels accepted for each column (compared case-insensitively)
COLUMN_ALIASES: Dict[str, tuple] = {
    "university": ("university", "university_name", "대학교"),
    "college": ("college", "college_name", "단과대학"),
    "department": ("department", "department_name", "학과"),
    "capacity": ("capacity", "정원"),
}


@dataclass
class ParsedCsv:
    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)
    skipped: int = 0


@dataclass(frozen=True)
class HierarchyRow:
    university: str
    college: str
    department: str
    capacity: int


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if value[:1] in QUOTE_CHARS:
        value = value[1:]
    if value[-1:] in QUOTE_CHARS:
        value = value[:-1]
    return value.strip()


def split_row(line: str) -> List[str]:
    """
    Split one CSV line into trimmed fields.

    A quote opens only at the start of a field and is closed by the same
    character; a doubled quote inside a quoted field is a literal quote.
    """
    fields: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    i = 0
    while i < len(line):
        ch = line[i]
        if quote:
            if ch == quote:
                if line[i + 1:i + 2] == quote:
                    current.append(ch)
                    i += 1
                else:
                    quote = None
            else:
                current.append(ch)
        elif ch in QUOTE_CHARS and not "".join(current).strip():
            current = []
            quote = ch
        elif ch == ",":
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current).strip())
    return fields


def parse_csv(text: str) -> ParsedCsv:
    """
    Parse CSV text into header-keyed rows.

    Raises:
        MalformedInputError: the text has no header row
    """
    lines = text.lstrip("\ufeff").splitlines()
    if not lines or not lines[0].strip():
        raise MalformedInputError("CSV input has no header row")

    headers = [_strip_quotes(h) for h in split_row(lines[0])]
    parsed = ParsedCsv(headers=headers)

    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        values = split_row(line)
        if len(values) != len(headers):
            logger.warning(
                f"Line {line_number}: {len(values)} fields but header has "
                f"{len(headers)}, skipping"
            )
            parsed.skipped += 1
            continue
        parsed.rows.append(dict(zip(headers, values)))

    return parsed


def resolve_columns(headers: Iterable[str]) -> Dict[str, str]:
    """
    Map each required column to the header label that carries it.

    Raises:
        MalformedInputError: one or more required columns are absent
    """
    by_label = {h.strip().lower(): h for h in headers}
    resolved: Dict[str, str] = {}
    missing: List[str] = []
    for column in REQUIRED_COLUMNS:
        label = next(
            (by_label[alias] for alias in COLUMN_ALIASES[column] if alias in by_label),
            None,
        )
        if label is None:
            missing.append(column)
        else:
            resolved[column] = label
    if missing:
        raise MalformedInputError(
            "Import is missing required columns: " + ", ".join(REQUIRED_COLUMNS),
            missing_columns=missing,
        )
    return resolved


def to_hierarchy_row(
    row: Mapping[str, Optional[str]],
    columns: Mapping[str, str],
) -> Optional[HierarchyRow]:
    """
    Build a typed row.

    Returns None when a name is blank or capacity does not start with a
    positive integer.
    """
    values = {}
    for column, label in columns.items():
        raw = row.get(label)
        values[column] = "" if raw is None else str(raw).strip()
    if not all(values[c] for c in ("university", "college", "department")):
        return None
    match = LEADING_INT.match(values["capacity"])
    if not match:
        return None
    capacity = int(match.group())
    if capacity <= 0:
        return None
    return HierarchyRow(
        university=values["university"],
        college=values["college"],
        department=values["department"],
        capacity=capacity,
    )
