"""Public air quality provider using the waqi.info feed API"""

from typing import Optional

import httpx

from ..config import SourceConfig
from ..errors import AdapterPollError
from ..log_handler import get_structured_logger
from .base import Provider

logger = get_structured_logger(__name__, component="waqi")

WAQI_API_BASE = "http://api.waqi.info"

# Measurement kind -> iaqi short code
IAQI_CODES = {
    "temperature": "t",
    "pressure": "p",
    "co": "co",
    "no2": "no2",
    "o3": "o3",
    "pm2.5": "pm25",
    "pm10": "pm10",
    "so2": "so2",
}


class WaqiProvider(Provider):
    """
    City feed from the World Air Quality Index project.

    One HTTP request per poll. The feed must report status "ok" and a valid
    station index; anything else fails the source for this cycle.
    """

    kind = "waqi.info"

    def __init__(
        self,
        source: SourceConfig,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = WAQI_API_BASE,
    ):
        super().__init__(source)
        self._client = client
        self._owns_client = client is None
        self._base_url = base_url.rstrip("/")

    async def initialize(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=30.0)
            self._owns_client = True

    async def poll(self) -> dict[str, float]:
        if self._client is None:
            raise AdapterPollError(f"HTTP client for '{self.source.id}' not initialized")

        url = f"{self._base_url}/feed/{self.source.city}/"
        try:
            response = await self._client.get(url, params={"token": self.source.token})
            response.raise_for_status()
            observations = response.json()
        except httpx.HTTPError as e:
            raise AdapterPollError(f"Network or Unknown Error from {self.kind}: {e}") from e
        except ValueError as e:
            raise AdapterPollError(f"Malformed response from {self.kind}: {e}") from e

        if not isinstance(observations, dict):
            raise AdapterPollError(f"Malformed response from {self.kind}")

        status = observations.get("status")
        data = observations.get("data")
        if status == "error":
            raise AdapterPollError(f"Observation Error - {data} from {self.kind}")
        if status != "ok" or not isinstance(data, dict):
            raise AdapterPollError(f"Unexpected status {status!r} from {self.kind}")
        if str(data.get("idx")) == "-1":
            raise AdapterPollError(f"Configuration Error - Invalid City Code from {self.kind}")

        iaqi = data.get("iaqi") or {}
        result: dict[str, float] = {}

        for key in self.source.keys:
            code = IAQI_CODES.get(key)
            if code is None:
                logger.error(f"Unknown source key {key}", source_id=self.source.id)
                continue
            if code not in iaqi:
                logger.warning(f"null value for {key}", source_id=self.source.id)
                continue
            try:
                result[key] = float(iaqi[code]["v"])
            except (KeyError, TypeError, ValueError):
                logger.warning(f"unparseable value for {key}", source_id=self.source.id)

        logger.debug("Fetched feed", source_id=self.source.id, city=self.source.city)
        return result

    async def shutdown(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
