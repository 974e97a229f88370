"""
Unit tests for the hierarchy CSV parser.
"""

import pytest

from app.domain.csv_import import (
    parse_csv,
    resolve_columns,
    split_row,
    to_hierarchy_row,
)
from app.infrastructure.exceptions import MalformedInputError


COLUMNS = {
    "university": "university",
    "college": "college",
    "department": "department",
    "capacity": "capacity",
}


class TestSplitRow:

    def test_plain_fields_are_trimmed(self):
        assert split_row(" U1 , C1,D1 , 3 ") == ["U1", "C1", "D1", "3"]

    def test_double_quotes_protect_commas(self):
        assert split_row('"Seoul, Main",C1,D1,3') == ["Seoul, Main", "C1", "D1", "3"]

    def test_single_quotes_protect_commas(self):
        assert split_row("U1,'Arts, Letters',D1,3") == ["U1", "Arts, Letters", "D1", "3"]

    def test_doubled_quote_is_literal(self):
        assert split_row('"The ""Best"" U",C,D,1') == ['The "Best" U', "C", "D", "1"]

    def test_apostrophe_inside_field_is_literal(self):
        assert split_row("King's College,C,D,1") == ["King's College", "C", "D", "1"]

    def test_empty_fields(self):
        assert split_row("a,,c") == ["a", "", "c"]


class TestParseCsv:

    def test_parses_rows_keyed_by_header(self):
        parsed = parse_csv("university,college,department,capacity\nU1,C1,D1,10\n")

        assert parsed.headers == ["university", "college", "department", "capacity"]
        assert parsed.rows == [
            {"university": "U1", "college": "C1", "department": "D1", "capacity": "10"}
        ]
        assert parsed.skipped == 0

    def test_blank_lines_are_ignored(self):
        parsed = parse_csv("university,college,department,capacity\n\nU1,C1,D1,1\n   \n")
        assert len(parsed.rows) == 1
        assert parsed.skipped == 0

    def test_wrong_field_count_is_skipped(self):
        text = (
            "university,college,department,capacity\n"
            "U1,C1,D1,1\n"
            "U1,C1,D2\n"
            "U1,C1,D3,1,extra\n"
        )
        parsed = parse_csv(text)

        assert len(parsed.rows) == 1
        assert parsed.skipped == 2

    def test_byte_order_mark_is_tolerated(self):
        parsed = parse_csv("\ufeffuniversity,college,department,capacity\nU,C,D,1")
        assert parsed.headers[0] == "university"

    def test_crlf_line_endings(self):
        parsed = parse_csv("university,college,department,capacity\r\nU,C,D,1\r\n")
        assert parsed.rows[0]["capacity"] == "1"

    @pytest.mark.parametrize("text", ["", "\n\n", "   "])
    def test_missing_header_is_malformed(self, text):
        with pytest.raises(MalformedInputError):
            parse_csv(text)


class TestResolveColumns:

    def test_english_headers(self):
        assert resolve_columns(["University", "College", "Department", "Capacity"]) == {
            "university": "University",
            "college": "College",
            "department": "Department",
            "capacity": "Capacity",
        }

    def test_korean_headers(self):
        resolved = resolve_columns(["대학교", "단과대학", "학과", "정원"])
        assert resolved["university"] == "대학교"
        assert resolved["capacity"] == "정원"

    def test_missing_columns_are_reported(self):
        with pytest.raises(MalformedInputError) as exc_info:
            resolve_columns(["university", "department"])

        assert exc_info.value.details["missing_columns"] == ["college", "capacity"]
        assert exc_info.value.code == "malformed_input"


class TestToHierarchyRow:

    def test_builds_typed_row(self):
        row = to_hierarchy_row(
            {"university": "U", "college": "C", "department": "D", "capacity": " 7 "},
            COLUMNS,
        )
        assert row.capacity == 7
        assert row.department == "D"

    def test_accepts_non_string_values(self):
        row = to_hierarchy_row(
            {"university": "U", "college": "C", "department": "D", "capacity": 4},
            COLUMNS,
        )
        assert row.capacity == 4

    @pytest.mark.parametrize("capacity,expected", [("10.0", 10), ("10명", 10), ("2.5", 2), ("+3", 3)])
    def test_capacity_reads_leading_integer(self, capacity, expected):
        row = {"university": "U", "college": "C", "department": "D", "capacity": capacity}
        assert to_hierarchy_row(row, COLUMNS).capacity == expected

    @pytest.mark.parametrize("capacity", ["0", "-3", "many", "", "0.9", "about 10"])
    def test_bad_capacity_is_rejected(self, capacity):
        row = {"university": "U", "college": "C", "department": "D", "capacity": capacity}
        assert to_hierarchy_row(row, COLUMNS) is None

    def test_blank_name_is_rejected(self):
        row = {"university": "U", "college": " ", "department": "D", "capacity": "1"}
        assert to_hierarchy_row(row, COLUMNS) is None
