"""
Composite air quality index.

Index algorithms are looked up by name. Each one takes the derived pollutant
values of a cycle and returns an AirQuality level. The only algorithm is the
Common Air Quality Index (CAQI) bucketing below.
"""

import logging
from collections.abc import Mapping, Sequence
from enum import IntEnum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class AirQuality(IntEnum):
    """Air quality levels as exposed to smart-home readers"""

    UNKNOWN = 0
    EXCELLENT = 1
    GOOD = 2
    FAIR = 3
    INFERIOR = 4
    POOR = 5

    @property
    def stars(self) -> str:
        """Star rating used in log output, "?" when unknown"""
        if self is AirQuality.UNKNOWN:
            return "?"
        return "*" * (6 - int(self))


# Upper bounds (exclusive) of sub-index 0..3; anything above is sub-index 4
CAQI_THRESHOLDS: dict[str, tuple[float, float, float, float]] = {
    "no2": (50, 100, 200, 400),
    "pm10": (25, 50, 90, 180),
    "o3": (60, 120, 180, 240),
    "pm2.5": (15, 30, 55, 110),
}

SUB_INDEX_LEVELS = (
    AirQuality.EXCELLENT,
    AirQuality.GOOD,
    AirQuality.FAIR,
    AirQuality.INFERIOR,
    AirQuality.POOR,
)


def sub_index(value: float, thresholds: Sequence[float]) -> int:
    """Bucket a value into 0..len(thresholds) using half-open intervals"""
    for level, upper in enumerate(thresholds):
        if value < upper:
            return level
    return len(thresholds)


def caqi_sub_indices(values: Mapping[str, Optional[float]]) -> dict[str, int]:
    """Sub-index per CAQI pollutant that has a value"""
    return {
        pollutant: sub_index(values[pollutant], thresholds)  # type: ignore[arg-type]
        for pollutant, thresholds in CAQI_THRESHOLDS.items()
        if values.get(pollutant) is not None
    }


def caqi(values: Mapping[str, Optional[float]]) -> AirQuality:
    """Worst CAQI sub-index across NO2, PM10, O3 and PM2.5"""
    indices = caqi_sub_indices(values)
    if not indices:
        return AirQuality.UNKNOWN
    return SUB_INDEX_LEVELS[max(indices.values())]


IndexAlgorithm = Callable[[Mapping[str, Optional[float]]], AirQuality]

INDEX_ALGORITHMS: dict[str, IndexAlgorithm] = {
    "caqi": caqi,
}

DEFAULT_INDEX_ALGORITHM = "caqi"


def compute_air_quality(
    algorithm: Optional[str],
    values: Mapping[str, Optional[float]],
) -> AirQuality:
    """
    Compute the composite index with the named algorithm.

    Only pollutants present in ``values`` are considered, so callers pass the
    fields configured for the deployment. An unknown algorithm is logged and
    yields UNKNOWN.
    """
    name = algorithm or DEFAULT_INDEX_ALGORITHM
    func = INDEX_ALGORITHMS.get(name)
    if func is None:
        logger.error(f"unknown aqi function {name}")
        return AirQuality.UNKNOWN
    return func(values)
