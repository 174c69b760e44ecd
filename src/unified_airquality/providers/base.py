"""
Base interface for all providers in unified-airquality.

A provider turns one configured source into readings. Providers do NOT keep
readings between polls - the orchestrator merges what they return into the
reading store.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..config import SourceConfig

# Canonical measurement kinds a reading may carry
MEASUREMENT_KINDS = (
    "temperature",
    "humidity",
    "pressure",
    "pm2.5",
    "pm10",
    "co",
    "co2",
    "no2",
    "o3",
    "so2",
    "voc",
)


@dataclass
class ProviderMetadata:
    """
    Metadata describing a provider instance.

    Attributes:
        source_id: Id of the configured source this provider serves
        kind: Provider kind as written in the configuration
        name: Human-readable name
        description: Brief description of where readings come from
    """

    source_id: str
    kind: str
    name: str
    description: str


class Provider(ABC):
    """
    Abstract base class for all providers.

    Subclasses fetch readings for exactly one SourceConfig. They report
    failures by raising AdapterInitError / AdapterPollError; the caller
    decides what a failure means for the cycle.
    """

    kind: str = ""

    def __init__(self, source: SourceConfig):
        self.source = source

    @abstractmethod
    async def initialize(self) -> None:
        """
        Set up connections or handles. Must be safe to call more than once.

        Raises:
            AdapterInitError: If setup fails
        """

    @abstractmethod
    async def poll(self) -> dict[str, float]:
        """
        Fetch the requested keys for this cycle.

        Returns:
            Mapping of measurement kind to value, containing only the keys
            that could be resolved this cycle

        Raises:
            AdapterPollError: If the whole call failed
        """

    def get_metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            source_id=self.source.id,
            kind=self.kind,
            name=f"{self.kind} ({self.source.id})",
            description=self.__class__.__doc__.strip().splitlines()[0]
            if self.__class__.__doc__
            else "",
        )

    async def shutdown(self) -> None:
        """Release resources. Default is a no-op."""
