"""Unit tests for abstract codes and reviewer id normalization."""

import pytest

from confreview.core.ids import (
    generate_abstract_code,
    normalize_reviewer_ids,
    parse_abstract_number,
)


class TestAbstractCodes:
    """Tests for abstract code generation and parsing."""

    def test_code_format(self) -> None:
        """Codes are the upper-cased registration id, ABS and the running number."""
        assert generate_abstract_code("reg123", 45) == "REG123-ABS-45"

    def test_code_strips_whitespace(self) -> None:
        assert generate_abstract_code("  REG9 ", 1) == "REG9-ABS-1"

    def test_number_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            generate_abstract_code("REG1", 0)

    def test_parse_number(self) -> None:
        assert parse_abstract_number("REG123-ABS-45") == 45

    def test_parse_registration_with_dashes(self) -> None:
        """Registration ids containing dashes still parse."""
        assert parse_abstract_number("CONF-2024-REG7-ABS-3") == 3

    def test_parse_malformed(self) -> None:
        assert parse_abstract_number("REG123-45") is None


class TestNormalizeReviewerIds:
    """Tests for reviewer id cleanup."""

    def test_dedupes_keeping_order(self) -> None:
        assert normalize_reviewer_ids(["R2", "R1", "R2"]) == ["R2", "R1"]

    def test_strips_and_drops_blanks(self) -> None:
        assert normalize_reviewer_ids([" R1 ", "", "  ", "R1"]) == ["R1"]
