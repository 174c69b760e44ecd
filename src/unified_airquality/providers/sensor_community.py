"""Remote aggregator provider for sensor.community (formerly luftdaten.info)"""

from typing import Any, Optional

import httpx

from ..config import SourceConfig
from ..errors import AdapterPollError
from ..log_handler import get_structured_logger
from .base import Provider

logger = get_structured_logger(__name__, component="sensor_community")

DATA_API_BASE = "http://data.sensor.community"

# Measurement kind -> API value_type
VALUE_TYPES = {
    "temperature": "temperature",
    "humidity": "humidity",
    "pressure": "pressure",
    "pm2.5": "P2",
    "pm10": "P1",
}


class SensorCommunityProvider(Provider):
    """
    Latest record of a single sensor.community sensor.

    Fetches the sensor's most recent upload and extracts temperature,
    humidity, pressure, PM2.5 and PM10. A value that resolves to zero or
    nothing is reported as unavailable for this cycle.
    """

    kind = "luftdaten.info"

    def __init__(
        self,
        source: SourceConfig,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = DATA_API_BASE,
    ):
        super().__init__(source)
        self._client = client
        self._owns_client = client is None
        self._base_url = base_url.rstrip("/")

    @property
    def url(self) -> str:
        return f"{self._base_url}/airrohr/v1/sensor/{self.source.sensor}/"

    async def initialize(self) -> None:
        """Create the HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
            self._owns_client = True
        logger.debug("Provider initialized", source_id=self.source.id, url=self.url)

    async def poll(self) -> dict[str, float]:
        if self._client is None:
            raise AdapterPollError(f"HTTP client for '{self.source.id}' not initialized")

        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
            records = response.json()
        except httpx.HTTPError as e:
            raise AdapterPollError(f"Could not get sensor data: {e}") from e
        except ValueError as e:
            raise AdapterPollError(f"Malformed sensor data: {e}") from e

        values = self._latest_values(records)
        result: dict[str, float] = {}

        for key in self.source.keys:
            if key not in VALUE_TYPES:
                logger.error(f"Unknown source key {key}", source_id=self.source.id)
                continue
            value = values.get(VALUE_TYPES[key])
            # Zero readings are indistinguishable from missing ones here
            if not value:
                logger.warning(f"null value for {key}", source_id=self.source.id)
                continue
            result[key] = value / 100.0 if key == "pressure" else value

        return result

    def _latest_values(self, records: Any) -> dict[str, float]:
        """Pick the newest record and map its value_type -> float"""
        if not isinstance(records, list) or not records:
            raise AdapterPollError(f"No records for sensor {self.source.sensor}")

        try:
            latest = max(records, key=lambda r: r.get("timestamp", ""))
            values: dict[str, float] = {}
            for item in latest.get("sensordatavalues", []):
                try:
                    values[item["value_type"]] = float(item["value"])
                except (TypeError, ValueError):
                    continue
            return values
        except (AttributeError, KeyError, TypeError) as e:
            raise AdapterPollError(f"Malformed sensor data: {e}") from e

    async def shutdown(self) -> None:
        """Close the HTTP client if we created it"""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
