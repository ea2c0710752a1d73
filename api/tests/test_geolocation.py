# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for geolocation domain logic.
"""

import pytest

from domain.geolocation import (
    ADDRESS_PLACEHOLDER,
    coordinate_from_metadata,
    dms_to_decimal,
    extract_gps_metadata,
    format_address,
    parse_rational,
    parse_triple,
)


class TestParseRational:
    """Test DMS component parsing."""

    @pytest.mark.parametrize("value,expected", [
        (10, 10.0),
        (10.5, 10.5),
        ("30", 30.0),
        ("3000/100", 30.0),
        (" 1/4 ", 0.25),
    ])
    def test_valid_components(self, value, expected):
        assert parse_rational(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [
        "abc", "1/0", "x/2", None, True, [1], float("nan"), float("inf"), int("1" * 400)
    ])
    def test_invalid_components(self, value):
        assert parse_rational(value) is None


class TestDmsToDecimal:
    """Test degrees/minutes/seconds conversion."""

    def test_southern_hemisphere_is_negative(self):
        assert dms_to_decimal([10, 30, 0], "S") == -10.5

    def test_northern_hemisphere(self):
        assert dms_to_decimal([40, 0, 0], "N") == 40.0

    def test_sum_overflowing_to_infinity_is_invalid(self):
        assert dms_to_decimal([1.79e308, 1.79e308, 1.79e308], "N") is None

    def test_western_hemisphere_is_negative(self):
        assert dms_to_decimal([74, 0, 0], "W") == -74.0

    def test_missing_flag_is_non_negative(self):
        assert dms_to_decimal([12, 15, 36]) == pytest.approx(12.26)

    def test_rational_strings(self):
        assert dms_to_decimal(["40/1", "30/1", "0/1"], "E") == 40.5

    def test_invalid_component_yields_none(self):
        assert dms_to_decimal([40, "north", 0], "N") is None

    def test_short_triple_yields_none(self):
        assert dms_to_decimal([40, 0], "N") is None

    def test_values_wrapper(self):
        assert parse_triple({"values": [1, 2, 3]}) == (1.0, 2.0, 3.0)

    def test_string_is_not_a_triple(self):
        assert parse_triple("40,0,0") is None


class TestExtractGpsMetadata:
    """Test lifting GPS tags out of loose metadata."""

    def test_valid_metadata(self):
        gps = extract_gps_metadata({
            "GPSLatitude": [40, 0, 0],
            "GPSLatitudeRef": "n",
            "GPSLongitude": [74, 0, 0],
            "GPSLongitudeRef": "W",
        })

        assert gps is not None
        assert gps.latitude == (40.0, 0.0, 0.0)
        assert gps.latitude_ref == "N"
        assert gps.longitude_ref == "W"

    @pytest.mark.parametrize("metadata", [
        None,
        {},
        {"GPSLatitude": [40, 0, 0]},
        {"GPSLatitude": [40, 0, 0], "GPSLongitude": [74, "bad", 0]},
        {"GPSLatitude": [40, 0, 0], "GPSLatitudeRef": "E", "GPSLongitude": [74, 0, 0]},
        {"GPSLatitude": [40, 0, 0], "GPSLongitude": [74, 0, 0], "GPSLongitudeRef": 7},
    ])
    def test_absent_or_invalid_metadata(self, metadata):
        assert extract_gps_metadata(metadata) is None

    def test_coordinate_from_metadata(self):
        coordinate = coordinate_from_metadata({
            "GPSLatitude": ["10/1", "30/1", "0/1"],
            "GPSLatitudeRef": "S",
            "GPSLongitude": [20, 15, 0],
            "GPSLongitudeRef": "E",
        })

        assert coordinate.latitude == -10.5
        assert coordinate.longitude == 20.25


class TestFormatAddress:
    """Test address formatting."""

    def test_all_parts(self):
        address = format_address({
            "street": "Broadway",
            "city": "New York",
            "region": "New York",
            "country": "United States",
        })

        assert address == "Broadway, New York, New York, United States"

    def test_skips_missing_and_blank_parts(self):
        address = format_address({"street": None, "city": "Lisbon", "region": "  ", "country": "Portugal"})

        assert address == "Lisbon, Portugal"

    def test_all_empty_parts_fall_back_to_placeholder(self):
        assert format_address({"street": None, "city": "", "region": None, "country": None}) == ADDRESS_PLACEHOLDER

    def test_no_parts(self):
        assert format_address(None) == ADDRESS_PLACEHOLDER
