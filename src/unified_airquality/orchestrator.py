"""
Update orchestrator: initializes and polls every source, one at a time.

Sources are processed strictly sequentially in configured order so that
shared transports (one I2C bus, rate-limited public APIs) never see more
than one request from us at a time. A failing source never aborts the
cycle; it only flags the cycle as faulted.
"""

import logging
import time

from .errors import AdapterPollError
from .models import CycleState
from .providers.registry import ProviderRegistry
from .store import ReadingStore, apply_offsets

logger = logging.getLogger(__name__)


class UpdateOrchestrator:
    """Drives initialization and poll cycles over a ProviderRegistry."""

    def __init__(self, registry: ProviderRegistry, store: ReadingStore):
        self.registry = registry
        self.store = store
        self._cycle_count = 0
        self._init_failures: list[str] = []
        for source_id in registry.source_ids():
            store.ensure(source_id)

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    async def initialize_all(self) -> list[str]:
        """
        Initialize every provider in order.

        Returns:
            Ids of the sources that failed to initialize
        """
        logger.debug("Initializing all sources...")
        failed: list[str] = []

        for source, provider in self.registry.items():
            self.store.ensure(source.id)
            if provider is None:
                logger.error(f"Unknown provider {source.provider} for source '{source.id}'")
                continue
            try:
                await provider.initialize()
                logger.debug(f"Initialized source '{source.id}'")
            except Exception as e:
                logger.error(f"Error initializing source '{source.id}': {e}")
                failed.append(source.id)

        self._init_failures = list(failed)
        if failed:
            logger.warning(f"Initialized sources with failures: {failed}")
        else:
            logger.debug("Successfully initialized all sources.")
        return failed

    async def run_cycle(self) -> CycleState:
        """
        Poll every source once and merge the results into the store.

        Never raises: every per-source problem is logged, and poll or
        initialization failures are recorded in the returned CycleState.
        """
        self._cycle_count += 1
        cycle = CycleState(index=self._cycle_count)
        # Initialization failures count against the first cycle after init
        for source_id in self._init_failures:
            cycle.mark_failed(source_id)
        self._init_failures = []
        logger.debug(f"updating data (cycle {cycle.index})...")

        for source, provider in self.registry.items():
            # Unknown provider kinds are a configuration problem, not a fault
            if provider is None:
                logger.error(f"Unknown provider {source.provider} for source '{source.id}'")
                continue
            try:
                logger.debug(f"polling {source.id}")
                values = await provider.poll()
            except AdapterPollError as e:
                logger.error(f"Poll failed for source '{source.id}': {e}")
                cycle.mark_failed(source.id)
                continue
            except Exception as e:
                logger.error(f"Error polling source '{source.id}': {e}", exc_info=True)
                cycle.mark_failed(source.id)
                continue

            if source.offsets:
                values = apply_offsets(values, source.offsets)
            self.store.merge(source.id, values)

        cycle.finished_at = time.time()
        logger.debug(f"Readings after cycle {cycle.index}: {self.store.snapshot()}")
        return cycle
