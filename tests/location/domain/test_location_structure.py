"""Tests for location code grammar: building, parsing and validating codes."""

import pytest
from protean.exceptions import ValidationError

from stockkeeping.location.generation import enumerate_codes
from stockkeeping.location.structure import CodeRejection, LocationStructure, validate


def _make_structure(**overrides):
    defaults = {
        "tenant_id": "tenant-001",
        "warehouse_id": "wh-001",
        "max_zones": 2,
        "max_shelves": 2,
        "max_bins": 2,
    }
    defaults.update(overrides)
    return LocationStructure.create(**defaults)


class TestCodeGrammar:
    def test_default_prefixes(self):
        structure = _make_structure()
        assert structure.build_code(1, 2, 3) == "K1-P2-D3"

    def test_custom_prefixes_and_separator(self):
        structure = _make_structure(zone_prefix="Z", shelf_prefix="S", bin_prefix="B", separator=".")
        assert structure.build_code(10, 2, 7) == "Z10.S2.B7"
        assert structure.parse_code("Z10.S2.B7") == (10, 2, 7)

    def test_separator_is_matched_literally(self):
        structure = _make_structure(separator=".")
        assert structure.parse_code("K1xP1xD1") is None

    def test_prefix_ending_in_digit_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _make_structure(zone_prefix="K1")
        assert "prefix" in exc_info.value.messages

    def test_separator_with_digit_is_rejected(self):
        with pytest.raises(ValidationError):
            _make_structure(separator="1")


class TestValidate:
    def test_valid_code_returns_segments(self):
        result = _make_structure().validate("K2-P1-D2")
        assert result.is_valid
        assert result.segments == (2, 1, 2)

    def test_surrounding_whitespace_is_ignored(self):
        assert _make_structure().validate("  K1-P1-D1 ").is_valid

    @pytest.mark.parametrize("raw", ["", "K1-P1", "X1-P1-D1", "K1-P1-Dx", "K-P1-D1"])
    def test_malformed_codes(self, raw):
        result = _make_structure().validate(raw)
        assert result.reason is CodeRejection.INVALID_FORMAT
        assert result.segments is None

    @pytest.mark.parametrize("raw", ["K3-P1-D1", "K1-P3-D1", "K1-P1-D3", "K0-P1-D1"])
    def test_segments_outside_maxima(self, raw):
        result = _make_structure().validate(raw)
        assert result.reason is CodeRejection.OUT_OF_RANGE

    def test_missing_structure(self):
        result = validate(None, "K1-P1-D1")
        assert result.reason is CodeRejection.UNKNOWN_STRUCTURE

    def test_every_generated_code_validates(self):
        structure = _make_structure(max_zones=3, max_shelves=4, max_bins=5, separator="/")
        for code, zone, shelf, bin_ in enumerate_codes(structure, 3, 4, 5):
            result = structure.validate(code)
            assert result.is_valid, code
            assert result.segments == (zone, shelf, bin_)


class TestReconfigure:
    def test_maxima_can_grow_with_locations(self):
        structure = _make_structure()
        structure.reconfigure(has_locations=True, max_zones=5)
        assert structure.max_zones == 5

    def test_grammar_is_frozen_once_locations_exist(self):
        structure = _make_structure()
        with pytest.raises(ValidationError) as exc_info:
            structure.reconfigure(has_locations=True, separator="/")
        assert "separator" in exc_info.value.messages

    def test_grammar_can_change_without_locations(self):
        structure = _make_structure()
        structure.reconfigure(has_locations=False, zone_prefix="A")
        assert structure.build_code(1, 1, 1) == "A1-P1-D1"
