import math

import pytest

from endorse.distance import evaluate, haversine_distance, is_supported_range, resolve_range
from endorse.models import Business, BusinessLocation
from tests import ORIGIN


def test_haversine_one_degree_of_latitude():
    assert haversine_distance(40.0, -75.0, 41.0, -75.0) == pytest.approx(69.09, abs=0.05)


def test_haversine_london_paris():
    assert haversine_distance(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(213.5, abs=2)


def test_haversine_same_point_is_zero():
    assert haversine_distance(*ORIGIN, *ORIGIN) == 0.0


def test_haversine_antipodes_do_not_fail():
    assert haversine_distance(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * 3958.8)


class TestResolveRange:
    def test_none_is_unbounded(self):
        assert resolve_range(None) == math.inf

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            resolve_range(-1)

    def test_supported_options(self):
        assert is_supported_range(None)
        assert is_supported_range(10)
        assert not is_supported_range(7)


class TestEvaluate:
    def test_closest_location_wins(self):
        business = Business(
            id="two-stores",
            name="Two Stores",
            locations=(
                BusinessLocation(lat=41.0, lng=-75.0, address="far away"),
                BusinessLocation(lat=40.005, lng=-75.0, address="around the corner"),
            ),
        )
        result = evaluate(business, *ORIGIN, max_range_miles=1)
        assert result.closest_distance == pytest.approx(0.345, abs=0.01)
        assert result.closest_location_label == "around the corner"
        assert result.is_within_range

    def test_out_of_range_still_reports_distance(self, businesses):
        far = businesses[3]
        result = evaluate(far, *ORIGIN, max_range_miles=10)
        assert not result.is_within_range
        assert result.closest_distance == pytest.approx(69.09, abs=0.05)

    def test_no_cutoff_keeps_everything_located(self, businesses):
        assert evaluate(businesses[3], *ORIGIN).is_within_range

    def test_range_is_inclusive(self):
        business = Business(id="edge", locations=(BusinessLocation(lat=40.0, lng=-75.0),))
        assert evaluate(business, *ORIGIN, max_range_miles=0).is_within_range

    def test_label_falls_back_to_business_name(self):
        business = Business(id="x", name="No Address Co", locations=(BusinessLocation(lat=40.0, lng=-75.0),))
        assert evaluate(business, *ORIGIN).closest_location_label == "No Address Co"

    def test_no_locations(self, businesses):
        result = evaluate(businesses[4], *ORIGIN)
        assert result.closest_distance is None
        assert result.closest_location_label is None
        assert not result.is_within_range

    def test_locations_without_coordinates_are_skipped(self):
        business = Business(id="x", locations=(BusinessLocation(lat=None, lng=None, address="unknown"),))
        assert evaluate(business, *ORIGIN).closest_distance is None
