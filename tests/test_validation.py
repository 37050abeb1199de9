#!/usr/bin/env python3
"""
Unit tests for reference point validation.

Tests cover:
- Finite-number checks (NaN, Infinity, booleans, complex, numpy scalars)
- Coercion of host-supplied strings
- Typed point validation
- Duplicate detection with pixel and real-world epsilons
"""

import logging
import math

import numpy as np
import pytest

from poc_georef.coordinates import ImagePoint, RealPoint
from poc_georef.errors import InvalidInputError
from poc_georef.validation import (
    coerce_coordinate,
    detect_duplicate_points,
    find_duplicate,
    is_valid_finite_number,
    validate_image_point,
    validate_point_pair,
    validate_real_point,
)


class TestIsValidFiniteNumber:

    @pytest.mark.parametrize(
        "value",
        [0, 1, -3.5, 1e300, np.float64(2.5), np.int32(7)],
        ids=["zero", "int", "negative-float", "huge", "numpy-float", "numpy-int"],
    )
    def test_valid(self, value):
        assert is_valid_finite_number(value)

    @pytest.mark.parametrize(
        "value",
        [math.nan, math.inf, -math.inf, np.nan, True, False, 1 + 2j, "1.0", None, [1]],
        ids=["nan", "inf", "-inf", "numpy-nan", "true", "false", "complex", "string", "none", "list"],
    )
    def test_invalid(self, value):
        assert not is_valid_finite_number(value)


class TestCoerceCoordinate:

    @pytest.mark.parametrize(
        "value,expected",
        [("12.5", 12.5), ("  -80.19710 ", -80.1971), ("1e3", 1000.0), (3, 3.0), (2.25, 2.25)],
        ids=["decimal", "whitespace", "exponent", "int", "float"],
    )
    def test_accepts(self, value, expected):
        result = coerce_coordinate(value, "x")
        assert result == expected
        assert isinstance(result, float)

    @pytest.mark.parametrize(
        "value,message",
        [
            ("", "is empty"),
            ("   ", "is empty"),
            ("abc", "must be a number"),
            ("nan", "finite"),
            ("inf", "finite"),
            (None, "must be a number"),
            (True, "must be a number"),
        ],
        ids=["empty", "blank", "text", "nan-string", "inf-string", "none", "bool"],
    )
    def test_rejects(self, value, message):
        with pytest.raises(InvalidInputError, match=message):
            coerce_coordinate(value, "Latitude")

    def test_error_names_field(self):
        with pytest.raises(InvalidInputError, match="real y"):
            coerce_coordinate("north", "real y")


class TestPointValidation:

    def test_image_point_normalized_to_float(self):
        point = validate_image_point(ImagePoint(3, "4"))
        assert point == ImagePoint(3.0, 4.0)
        assert isinstance(point.y, float)

    def test_real_point_rejects_image_point(self):
        with pytest.raises(InvalidInputError, match="RealPoint"):
            validate_real_point(ImagePoint(1, 2))

    def test_image_point_rejects_tuple(self):
        with pytest.raises(InvalidInputError, match="ImagePoint"):
            validate_image_point((1, 2))

    def test_pair(self):
        image, real = validate_point_pair(ImagePoint(1, 2), RealPoint(3, 4))
        assert image == ImagePoint(1.0, 2.0)
        assert real == RealPoint(3.0, 4.0)

    def test_pair_checks_all_four_components(self):
        with pytest.raises(InvalidInputError, match="real x"):
            validate_point_pair(ImagePoint(1, 2), RealPoint(math.inf, 4))


class TestDuplicateDetection:

    @pytest.fixture
    def existing(self):
        return [
            (ImagePoint(10.0, 10.0), RealPoint(0.0, 0.0)),
            (ImagePoint(110.0, 10.0), RealPoint(100.0, 0.0)),
        ]

    def test_finds_duplicate_within_epsilon(self, existing):
        assert find_duplicate(ImagePoint(110.3, 9.8), RealPoint(100.0, 0.0), existing) == 1

    def test_same_pixel_different_real_is_not_duplicate(self, existing):
        assert find_duplicate(ImagePoint(10.0, 10.0), RealPoint(5.0, 0.0), existing) is None

    def test_same_real_distant_pixel_is_not_duplicate(self, existing):
        assert find_duplicate(ImagePoint(12.0, 10.0), RealPoint(0.0, 0.0), existing) is None

    def test_custom_epsilon(self, existing):
        assert find_duplicate(ImagePoint(12.0, 10.0), RealPoint(0.0, 0.0), existing, pixel_epsilon=5.0) == 0

    def test_detect_logs_warning(self, existing, caplog):
        with caplog.at_level(logging.WARNING, logger="poc_georef.validation"):
            assert detect_duplicate_points(ImagePoint(10.0, 10.0), RealPoint(0.0, 0.0), existing)

        assert "duplicates existing point 1" in caplog.text

    def test_detect_no_duplicate(self, existing, caplog):
        with caplog.at_level(logging.WARNING, logger="poc_georef.validation"):
            assert not detect_duplicate_points(ImagePoint(50.0, 50.0), RealPoint(1.0, 1.0), existing)

        assert caplog.text == ""
