"""
Unit tests for GPA aggregation rules.
"""

import pytest

from app.domain.gpa import (
    NOT_PROVIDED,
    SEMESTER_FIELDS,
    normalize_component,
    overall_from_components,
    profile_grades,
    semester_components,
)


class TestNormalizeComponent:

    @pytest.mark.parametrize("value", [None, "", "abc", 0, 0.0, -2.5, float("nan"), True])
    def test_unusable_values_become_not_provided(self, value):
        assert normalize_component(value) == NOT_PROVIDED

    def test_numeric_strings_are_parsed(self):
        assert normalize_component("3.75") == 3.75

    def test_positive_values_are_kept(self):
        assert normalize_component(4.3) == 4.3


class TestSemesterComponents:

    def test_pads_missing_semesters(self):
        components = semester_components([4.0, 3.0])

        assert list(components) == list(SEMESTER_FIELDS)
        assert components["gpa_1_1"] == 4.0
        assert components["gpa_1_2"] == 3.0
        assert components["gpa_3_1"] == NOT_PROVIDED

    def test_none_means_nothing_provided(self):
        assert set(semester_components(None).values()) == {NOT_PROVIDED}

    def test_rejects_more_than_five(self):
        with pytest.raises(ValueError):
            semester_components([4.0] * 6)


class TestOverallFromComponents:

    def test_mean_of_provided_components(self):
        assert overall_from_components([4.0, 3.0, NOT_PROVIDED, NOT_PROVIDED, 3.5]) == pytest.approx(3.5)

    def test_no_components_gives_not_provided(self):
        assert overall_from_components([NOT_PROVIDED] * 5) == NOT_PROVIDED


class TestProfileGrades:

    def test_overall_mode_clears_semesters(self):
        grades = profile_grades(True, 4.1, [3.0, 3.0])

        assert grades["overall_gpa"] == 4.1
        assert all(grades[field] == NOT_PROVIDED for field in SEMESTER_FIELDS)

    def test_overall_mode_requires_value(self):
        with pytest.raises(ValueError):
            profile_grades(True, None, None)

    def test_semester_mode_derives_overall(self):
        grades = profile_grades(False, None, [4.0, 0, 3.0])

        assert grades["gpa_1_2"] == NOT_PROVIDED
        assert grades["overall_gpa"] == pytest.approx(3.5)

    def test_semester_mode_without_values(self):
        grades = profile_grades(False, None, [])
        assert grades["overall_gpa"] == NOT_PROVIDED
