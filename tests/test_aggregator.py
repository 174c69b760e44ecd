"""Tests for aggregation and the composite air quality index"""

import pytest

from unified_airquality.aggregator import Aggregator, aggregate
from unified_airquality.airquality import (
    AirQuality,
    caqi,
    caqi_sub_indices,
    compute_air_quality,
    sub_index,
)
from unified_airquality.config import AggregateBinding, DirectBinding, ServiceConfig
from unified_airquality.store import ReadingStore


class TestAggregateFunctions:
    def test_average(self):
        assert aggregate("average", [10, 20]) == 15

    def test_minimum_and_maximum(self):
        assert aggregate("minimum", [3.0, 1.0, 2.0]) == 1.0
        assert aggregate("maximum", [3.0, 1.0, 2.0]) == 3.0

    def test_empty_is_absent(self):
        assert aggregate("minimum", []) is None
        assert aggregate("average", []) is None

    def test_unknown_function_is_absent(self):
        assert aggregate("median", [1.0, 2.0]) is None


class TestAggregator:
    def _store(self):
        store = ReadingStore(["a", "b", "c"])
        store.merge("a", {"temperature": 20.0, "pressure": 1000.0})
        store.merge("b", {"temperature": 24.0})
        return store

    def test_direct_binding(self):
        services = {"temperature": ServiceConfig("temperature", bindings={"temperature": DirectBinding("a")})}
        derived = Aggregator(services).derive(self._store(), error=False)
        assert derived.values == {"temperature": 20.0}

    def test_direct_binding_unset_is_none(self):
        services = {"humidity": ServiceConfig("humidity", bindings={"humidity": DirectBinding("c")})}
        derived = Aggregator(services).derive(self._store(), error=False)
        assert derived.values == {"humidity": None}

    def test_maximum_skips_absent_sources(self):
        binding = AggregateBinding(("a", "b", "c"), "maximum")
        services = {"temperature": ServiceConfig("temperature", bindings={"temperature": binding})}
        derived = Aggregator(services).derive(self._store(), error=False)
        assert derived.values["temperature"] == 24.0

    def test_average_of_present_values_only(self):
        binding = AggregateBinding(("a", "b", "c"), "average")
        services = {"temperature": ServiceConfig("temperature", bindings={"temperature": binding})}
        derived = Aggregator(services).derive(self._store(), error=False)
        assert derived.values["temperature"] == 22.0

    def test_aggregate_over_nothing_is_none(self):
        binding = AggregateBinding(("b", "c"), "minimum")
        services = {"temperature": ServiceConfig("temperature", bindings={"pressure": binding})}
        derived = Aggregator(services).derive(self._store(), error=False)
        assert derived.values["pressure"] is None

    def test_faults_mirror_cycle_error(self):
        services = {
            "temperature": ServiceConfig("temperature", bindings={"temperature": DirectBinding("a")}),
            "humidity": ServiceConfig("humidity", bindings={"humidity": DirectBinding("a")}),
        }
        aggregator = Aggregator(services)
        assert aggregator.derive(self._store(), error=True).faults == {
            "temperature": True,
            "humidity": True,
        }
        assert aggregator.derive(self._store(), error=False).faults == {
            "temperature": False,
            "humidity": False,
        }

    def test_no_airquality_service_leaves_index_unknown(self):
        services = {"temperature": ServiceConfig("temperature", bindings={"temperature": DirectBinding("a")})}
        derived = Aggregator(services).derive(self._store(), error=False)
        assert derived.air_quality is AirQuality.UNKNOWN

    def test_airquality_without_caqi_pollutants_is_unknown(self):
        store = ReadingStore(["a"])
        store.merge("a", {"co2": 800.0})
        services = {"airquality": ServiceConfig("airquality", bindings={"co2": DirectBinding("a")})}
        derived = Aggregator(services).derive(store, error=False)
        assert derived.values == {"co2": 800.0}
        assert derived.air_quality is AirQuality.UNKNOWN

    def test_airquality_index_from_configured_pollutants(self):
        store = ReadingStore(["city"])
        store.merge("city", {"no2": 120.0, "pm10": 30.0, "o3": 90.0, "pm2.5": 20.0})
        bindings = {key: DirectBinding("city") for key in ("no2", "pm10", "o3", "pm2.5")}
        services = {"airquality": ServiceConfig("airquality", bindings=bindings)}
        derived = Aggregator(services).derive(store, error=False)
        assert derived.air_quality is AirQuality.FAIR

    def test_unknown_index_algorithm_is_unknown(self):
        store = ReadingStore(["city"])
        store.merge("city", {"no2": 500.0})
        services = {
            "airquality": ServiceConfig(
                "airquality", bindings={"no2": DirectBinding("city")}, aqi="us-epa"
            )
        }
        derived = Aggregator(services).derive(store, error=False)
        assert derived.values["no2"] == 500.0
        assert derived.air_quality is AirQuality.UNKNOWN


class TestCaqi:
    @pytest.mark.parametrize(
        "value,expected",
        [(0, 0), (49, 0), (50, 1), (99.9, 1), (100, 2), (199, 2), (200, 3), (399, 3), (400, 4), (1000, 4)],
    )
    def test_no2_boundaries(self, value, expected):
        assert caqi_sub_indices({"no2": value}) == {"no2": expected}

    def test_sub_index_thresholds(self):
        assert sub_index(24.9, (25, 50, 90, 180)) == 0
        assert sub_index(180, (25, 50, 90, 180)) == 4

    def test_composite_is_worst_sub_index(self):
        indices = caqi_sub_indices({"no2": 120, "pm10": 30, "o3": 90, "pm2.5": 20})
        assert indices == {"no2": 2, "pm10": 1, "o3": 1, "pm2.5": 1}
        assert caqi({"no2": 120, "pm10": 30, "o3": 90, "pm2.5": 20}) is AirQuality.FAIR

    @pytest.mark.parametrize(
        "values,expected",
        [
            ({"pm2.5": 5}, AirQuality.EXCELLENT),
            ({"pm2.5": 15}, AirQuality.GOOD),
            ({"o3": 200}, AirQuality.INFERIOR),
            ({"pm10": 180, "no2": 10}, AirQuality.POOR),
        ],
    )
    def test_levels(self, values, expected):
        assert caqi(values) is expected

    def test_all_unset_is_unknown(self):
        assert caqi({}) is AirQuality.UNKNOWN
        assert caqi({"no2": None, "pm10": None, "o3": None, "pm2.5": None}) is AirQuality.UNKNOWN

    def test_compute_defaults_to_caqi(self):
        assert compute_air_quality(None, {"no2": 450}) is AirQuality.POOR
        assert compute_air_quality("caqi", {"no2": 45}) is AirQuality.EXCELLENT

    def test_compute_unknown_algorithm(self):
        assert compute_air_quality("nope", {"no2": 45}) is AirQuality.UNKNOWN

    def test_stars(self):
        assert AirQuality.EXCELLENT.stars == "*****"
        assert AirQuality.POOR.stars == "*"
        assert AirQuality.UNKNOWN.stars == "?"
