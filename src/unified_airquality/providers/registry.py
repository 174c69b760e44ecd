"""Provider registry: one provider per configured source, in configured order"""

import logging
from typing import Callable, Optional

from ..config import SourceConfig
from ..errors import ConfigurationError
from .base import Provider
from .bme280 import Bme280Provider
from .sensor_community import SensorCommunityProvider
from .waqi import WaqiProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[SourceConfig], Provider]

# Provider kind (as configured) -> factory
PROVIDER_FACTORIES: dict[str, ProviderFactory] = {
    "luftdaten.info": SensorCommunityProvider,
    "sensor.community": SensorCommunityProvider,
    "waqi.info": WaqiProvider,
    "bme280": Bme280Provider,
}


def create_provider(
    source: SourceConfig,
    factories: Optional[dict[str, ProviderFactory]] = None,
) -> Provider:
    """
    Create the provider for a source.

    Raises:
        ConfigurationError: If the provider kind is unknown
    """
    factories = PROVIDER_FACTORIES if factories is None else factories
    factory = factories.get(source.provider)
    if factory is None:
        raise ConfigurationError(f"Unknown provider {source.provider}")
    return factory(source)


class ProviderRegistry:
    """
    Registry for the providers of all configured sources.

    Keeps the configured order; the orchestrator relies on it. Sources whose
    provider could not be created are still listed (with no provider) so
    their store entry exists; the orchestrator logs and skips them.
    """

    def __init__(self):
        """Initialize empty registry"""
        self._sources: dict[str, SourceConfig] = {}
        self._providers: dict[str, Optional[Provider]] = {}

    @classmethod
    def from_sources(
        cls,
        sources: list[SourceConfig],
        factories: Optional[dict[str, ProviderFactory]] = None,
    ) -> "ProviderRegistry":
        """Build a registry from configured sources, logging unknown providers"""
        registry = cls()
        for source in sources:
            try:
                provider: Optional[Provider] = create_provider(source, factories)
            except ConfigurationError as e:
                logger.error(f"{e} for source '{source.id}'")
                provider = None
            registry.register(source, provider)
        return registry

    def register(self, source: SourceConfig, provider: Optional[Provider]) -> None:
        """
        Register a source and its provider.

        Raises:
            ValueError: If a source with the same ID is already registered
        """
        if source.id in self._sources:
            raise ValueError(f"Source '{source.id}' is already registered")

        self._sources[source.id] = source
        self._providers[source.id] = provider
        if provider is not None:
            metadata = provider.get_metadata()
            logger.info(f"Registered source: {metadata.name} (id={metadata.source_id})")

    def get(self, source_id: str) -> Optional[Provider]:
        return self._providers.get(source_id)

    def items(self) -> list[tuple[SourceConfig, Optional[Provider]]]:
        """All (source, provider) pairs in configured order"""
        return [(source, self._providers[source_id]) for source_id, source in self._sources.items()]

    def source_ids(self) -> list[str]:
        return list(self._sources.keys())

    async def shutdown_all(self) -> None:
        """Shutdown all registered providers"""
        logger.info(f"Shutting down {len(self._sources)} provider(s)...")

        for source_id, provider in self._providers.items():
            if provider is None:
                continue
            try:
                await provider.shutdown()
            except Exception as e:
                logger.error(f"Error shutting down provider '{source_id}': {e}")

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, source_id: str) -> bool:
        return source_id in self._sources
