"""Turns per-source readings into published service values"""

import logging
from collections.abc import Mapping, Sequence
from statistics import fmean
from typing import Callable, Optional

from .airquality import CAQI_THRESHOLDS, AirQuality, compute_air_quality
from .config import AggregateBinding, Binding, DirectBinding, ServiceConfig
from .models import DerivedValues
from .store import ReadingStore

logger = logging.getLogger(__name__)

AggregateFunction = Callable[[Sequence[float]], float]

AGGREGATE_FUNCTIONS: dict[str, AggregateFunction] = {
    "minimum": min,
    "maximum": max,
    "average": fmean,
}

# Field -> (log label, unit)
FIELD_LABELS = {
    "temperature": ("Temperature", "°C"),
    "pressure": ("Pressure", "hPa"),
    "humidity": ("Humidity", "%"),
    "co": ("CO Density", "µg/m³"),
    "co2": ("CO2 Density", "µg/m³"),
    "no2": ("NO2 Density", "µg/m³"),
    "o3": ("O3 Density", "µg/m³"),
    "pm2.5": ("PM2.5 Density", "µg/m³"),
    "pm10": ("PM10 Density", "µg/m³"),
    "so2": ("SO2 Density", "µg/m³"),
    "voc": ("VOC Density", "µg/m³"),
}


def aggregate(function: str, values: Sequence[float]) -> Optional[float]:
    """
    Reduce values with a named aggregate function.

    Returns None for an empty sequence or an unknown function name.
    """
    if not values:
        return None
    func = AGGREGATE_FUNCTIONS.get(function)
    if func is None:
        logger.error(f"unknown aggregate function {function}")
        return None
    return float(func(values))


class Aggregator:
    """Derives published values, fault flags and the composite index."""

    def __init__(self, services: Mapping[str, ServiceConfig]):
        self.services = services

    def resolve(self, store: ReadingStore, key: str, binding: Binding) -> Optional[float]:
        """Value of one field under its binding; None when nothing is known"""
        if isinstance(binding, DirectBinding):
            return store.get(binding.source_id, key)
        if isinstance(binding, AggregateBinding):
            present = [
                value
                for value in (store.get(source_id, key) for source_id in binding.source_ids)
                if value is not None
            ]
            return aggregate(binding.function, present)
        raise TypeError(f"Unsupported binding {binding!r}")

    def derive(self, store: ReadingStore, error: bool) -> DerivedValues:
        """Compute every configured field from the current store contents"""
        derived = DerivedValues()

        for kind, service in self.services.items():
            derived.faults[kind] = error
            for key, binding in service.bindings.items():
                derived.values[key] = self.resolve(store, key, binding)

        airquality = self.services.get("airquality")
        if airquality is not None:
            pollutants = {
                key: derived.values[key] for key in CAQI_THRESHOLDS if key in airquality.bindings
            }
            if pollutants:
                derived.air_quality = compute_air_quality(airquality.aqi, pollutants)
            else:
                derived.air_quality = AirQuality.UNKNOWN

        self._log(derived)
        return derived

    def _log(self, derived: DerivedValues) -> None:
        for key, value in derived.values.items():
            label, unit = FIELD_LABELS.get(key, (key, ""))
            logger.info(f"{label + ':':<15}{value} {unit}")
        if "airquality" in self.services:
            logger.info(f"{'Air Quality:':<15}{derived.air_quality.stars}")
