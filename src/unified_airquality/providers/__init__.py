"""
Providers package for unified-airquality.

Each provider implements the Provider interface for one kind of source:
a remote aggregator (sensor.community), a public air quality API
(waqi.info) or a sensor on the local I2C bus (BME280).
"""

from .base import MEASUREMENT_KINDS, Provider, ProviderMetadata
from .bme280 import Bme280Provider
from .registry import PROVIDER_FACTORIES, ProviderRegistry, create_provider
from .sensor_community import SensorCommunityProvider
from .waqi import WaqiProvider

__all__ = [
    "MEASUREMENT_KINDS",
    "Provider",
    "ProviderMetadata",
    "ProviderRegistry",
    "PROVIDER_FACTORIES",
    "create_provider",
    "SensorCommunityProvider",
    "WaqiProvider",
    "Bme280Provider",
]
