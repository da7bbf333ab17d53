"""Tests for onereply.departments module."""
import logging

import pytest

from onereply.departments import (
    UNKNOWN_DEPARTMENT_NAME,
    department_name,
    get_department,
    section_title,
    suggest_departments,
)


class TestGetDepartment:
    def test_known(self) -> None:
        dept = get_department("land_use")
        assert dept.name == "Land Use"
        assert dept.known

    def test_unknown_is_sentinel(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="onereply.departments"):
            dept = get_department("parks")
        assert dept.name == UNKNOWN_DEPARTMENT_NAME
        assert not dept.known
        assert "parks" in caplog.text

    def test_department_name(self) -> None:
        assert department_name("transportation") == "Transportation"
        assert department_name("") == UNKNOWN_DEPARTMENT_NAME


class TestSectionTitle:
    def test_known_topics(self) -> None:
        assert section_title("situation") == "Situation"
        assert section_title("nextsteps") == "Next Steps"

    def test_unknown_topic(self) -> None:
        assert section_title("appendix") == "Appendix"


class TestSuggestDepartments:
    def test_keyword_matches_in_registry_order(self) -> None:
        got = suggest_departments(
            "Fence permit and setback",
            "Building a fence near the property line; also a water leak.",
        )
        assert got == ["building", "utilities", "land_use"]

    def test_traffic(self) -> None:
        assert suggest_departments("Pothole on Main", "") == ["transportation"]

    def test_default_when_nothing_matches(self) -> None:
        assert suggest_departments("Hello", "Just saying thanks") == ["transportation"]
