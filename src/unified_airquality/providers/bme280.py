"""BME280 sensor on the local I2C bus"""

import asyncio
import logging
from typing import Any, Optional

from ..config import SourceConfig
from ..errors import AdapterInitError, AdapterPollError
from .base import Provider

logger = logging.getLogger(__name__)

SUPPORTED_KEYS = ("temperature", "humidity", "pressure")


class Bme280Provider(Provider):
    """
    Temperature, humidity and pressure from a BME280 on the I2C bus.

    The bus handle and calibration parameters are created once by
    initialize(); every poll takes one compensated sample.
    """

    kind = "bme280"

    def __init__(self, source: SourceConfig):
        super().__init__(source)
        self._bus: Optional[Any] = None
        self._calibration: Optional[Any] = None

    def _open_sync(self) -> None:
        """Open the bus and load calibration (runs in thread pool)"""
        import bme280
        import smbus2

        bus = smbus2.SMBus(self.source.i2c_bus)
        try:
            self._calibration = bme280.load_calibration_params(bus, self.source.i2c_address)
        except Exception:
            bus.close()
            raise
        self._bus = bus

    async def initialize(self) -> None:
        if self._bus is not None:
            return

        logger.debug(
            f"Initializing BME280 sensor {self.source.id} "
            f"(bus={self.source.i2c_bus}, address={self.source.i2c_address:#04x})"
        )
        try:
            await asyncio.to_thread(self._open_sync)
        except ImportError as e:
            raise AdapterInitError(
                "smbus2 / RPi.bme280 not installed - BME280 unavailable"
            ) from e
        except Exception as e:
            raise AdapterInitError(f"Cannot initialize BME280 {self.source.id}: {e}") from e

    def _read_sensor_sync(self) -> Any:
        """Take one sample (runs in thread pool)"""
        import bme280

        return bme280.sample(self._bus, self.source.i2c_address, self._calibration)

    async def poll(self) -> dict[str, float]:
        if self._bus is None:
            raise AdapterPollError(f"BME280 {self.source.id} not initialized")

        try:
            data = await asyncio.to_thread(self._read_sensor_sync)
        except Exception as e:
            raise AdapterPollError(f"Failed to read BME280 {self.source.id}: {e}") from e

        logger.debug(
            f"BME280 sensor {self.source.id} provided temperature={data.temperature} "
            f"humidity={data.humidity} pressure={data.pressure}"
        )

        result: dict[str, float] = {}
        for key in self.source.keys:
            if key not in SUPPORTED_KEYS:
                logger.error(f"Unknown source key {key}")
                continue
            result[key] = float(getattr(data, key))
        return result

    async def shutdown(self) -> None:
        if self._bus is not None:
            self._bus.close()
            self._bus = None
            self._calibration = None
