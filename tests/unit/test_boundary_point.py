"""Tests for boundary vertex validation at ingestion time."""

from __future__ import annotations

import math
import unittest
from datetime import UTC, datetime

import pytest

from parcel_compliance.core.exceptions import ValidationError
from parcel_compliance.models.boundary import (
    BoundaryPoint,
    CoordinateValidationError,
    LatLng,
    validate_coordinate,
    validate_point_order,
)


class TestValidateCoordinate:
    @pytest.mark.parametrize(
        ("lat", "lng"),
        [(0.0, 0.0), (90.0, 180.0), (-90.0, -180.0), (6.4281, -9.4295)],
    )
    def test_accepts_in_range(self, lat: float, lng: float) -> None:
        validate_coordinate(lat, lng)

    @pytest.mark.parametrize(
        ("lat", "lng"),
        [(90.0001, 0.0), (-91.0, 0.0), (0.0, 180.5), (0.0, -181.0)],
    )
    def test_rejects_out_of_range(self, lat: float, lng: float) -> None:
        with pytest.raises(CoordinateValidationError):
            validate_coordinate(lat, lng)

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_rejects_non_finite(self, bad: float) -> None:
        with pytest.raises(CoordinateValidationError, match="finite"):
            validate_coordinate(bad, 0.0)
        with pytest.raises(CoordinateValidationError, match="finite"):
            validate_coordinate(0.0, bad)

    def test_rejects_bool(self) -> None:
        with pytest.raises(CoordinateValidationError, match="number"):
            validate_coordinate(True, 0.0)  # type: ignore[arg-type]

    def test_rejects_string(self) -> None:
        with pytest.raises(CoordinateValidationError, match="number"):
            validate_coordinate("6.4", 0.0)  # type: ignore[arg-type]


class TestBoundaryPoint(unittest.TestCase):
    """BoundaryPoint construction and serialisation."""

    def test_defaults(self) -> None:
        p = BoundaryPoint(latitude=6.4, longitude=-9.4)
        self.assertEqual(p.accuracy_m, 0.0)
        self.assertEqual(p.order, 1)
        self.assertEqual(p.captured_at.tzinfo, UTC)
        self.assertTrue(p.id)

    def test_ids_are_unique(self) -> None:
        a = BoundaryPoint(latitude=6.4, longitude=-9.4)
        b = BoundaryPoint(latitude=6.4, longitude=-9.4)
        self.assertNotEqual(a.id, b.id)

    def test_invalid_latitude_raises(self) -> None:
        with self.assertRaises(CoordinateValidationError):
            BoundaryPoint(latitude=123.0, longitude=0.0)

    def test_negative_accuracy_raises(self) -> None:
        with self.assertRaises(CoordinateValidationError):
            BoundaryPoint(latitude=6.4, longitude=-9.4, accuracy_m=-1.0)

    def test_nan_accuracy_raises(self) -> None:
        with self.assertRaises(CoordinateValidationError):
            BoundaryPoint(latitude=6.4, longitude=-9.4, accuracy_m=math.nan)

    def test_zero_order_raises(self) -> None:
        with self.assertRaises(CoordinateValidationError):
            BoundaryPoint(latitude=6.4, longitude=-9.4, order=0)

    def test_is_validation_error(self) -> None:
        with self.assertRaises(ValidationError):
            BoundaryPoint(latitude=math.nan, longitude=0.0)

    def test_frozen(self) -> None:
        p = BoundaryPoint(latitude=6.4, longitude=-9.4)
        with self.assertRaises(AttributeError):
            p.latitude = 7.0  # type: ignore[misc]

    def test_lat_lng(self) -> None:
        p = BoundaryPoint(latitude=6.4, longitude=-9.4)
        self.assertEqual(p.lat_lng, LatLng(6.4, -9.4))

    def test_to_dict(self) -> None:
        ts = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)
        p = BoundaryPoint(latitude=6.4, longitude=-9.4, accuracy_m=3.5, order=2, captured_at=ts, id="v2")
        self.assertEqual(
            p.to_dict(),
            {
                "id": "v2",
                "latitude": 6.4,
                "longitude": -9.4,
                "accuracy_m": 3.5,
                "order": 2,
                "captured_at": "2026-03-01T09:30:00+00:00",
            },
        )


class TestBoundaryPointFromDict(unittest.TestCase):
    def test_accepts_timestamp_alias(self) -> None:
        p = BoundaryPoint.from_dict(
            {"latitude": 6.4, "longitude": -9.4, "accuracy_m": 4.0, "timestamp": "2026-03-01T09:30:00Z"}
        )
        self.assertEqual(p.accuracy_m, 4.0)
        self.assertEqual(p.captured_at, datetime(2026, 3, 1, 9, 30, tzinfo=UTC))

    def test_numeric_strings_are_coerced(self) -> None:
        p = BoundaryPoint.from_dict({"latitude": "6.4", "longitude": "-9.4"})
        self.assertEqual((p.latitude, p.longitude), (6.4, -9.4))

    def test_missing_longitude_raises(self) -> None:
        with self.assertRaises(CoordinateValidationError):
            BoundaryPoint.from_dict({"latitude": 6.4})

    def test_non_numeric_raises(self) -> None:
        with self.assertRaises(CoordinateValidationError):
            BoundaryPoint.from_dict({"latitude": "north", "longitude": -9.4})

    def test_bool_raises(self) -> None:
        with self.assertRaises(CoordinateValidationError):
            BoundaryPoint.from_dict({"latitude": True, "longitude": -9.4})

    def test_nan_string_raises(self) -> None:
        with self.assertRaises(CoordinateValidationError):
            BoundaryPoint.from_dict({"latitude": "nan", "longitude": -9.4})

    def test_round_trip(self) -> None:
        original = BoundaryPoint(latitude=6.4, longitude=-9.4, accuracy_m=2.0, order=3)
        self.assertEqual(BoundaryPoint.from_dict(original.to_dict()), original)


class TestValidatePointOrder:
    def test_increasing_is_accepted(self) -> None:
        points = [BoundaryPoint(latitude=6.4, longitude=-9.4, order=i) for i in (1, 2, 5)]
        validate_point_order(points)

    def test_repeated_order_is_rejected(self) -> None:
        points = [BoundaryPoint(latitude=6.4, longitude=-9.4, order=i) for i in (1, 2, 2)]
        with pytest.raises(CoordinateValidationError, match="strictly increasing"):
            validate_point_order(points)

    def test_empty_is_accepted(self) -> None:
        validate_point_order([])
