"""
Application context wiring the update pipeline together.

Usage:
    config = load_config()
    context = AppContext.create(config)
    context.add_listener(on_cycle)
    await context.start()

    # Presentation layer read path
    values = context.get_current_values()

    # On shutdown
    await context.shutdown()
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .aggregator import Aggregator
from .config import Config
from .history import HistoryJournal, HistorySampler, HistoryStore, RollingHistory
from .models import CycleState, DerivedValues
from .orchestrator import UpdateOrchestrator
from .providers.registry import ProviderFactory, ProviderRegistry
from .scheduler import UpdateScheduler
from .store import ReadingStore

logger = logging.getLogger(__name__)

CycleListener = Callable[[CycleState], Any]


@dataclass
class AppContext:
    """
    Application context containing the whole polling pipeline.

    This class owns the lifecycle of:
    - Providers (one per configured source)
    - The reading store and orchestrator
    - The aggregator and history sampler
    - The update scheduler

    Attributes:
        config: Application configuration loaded from YAML
        registry: Providers in configured order
        store: Latest reading per source
        orchestrator: Sequential init/poll driver
        aggregator: Derives published values and the composite index
        sampler: Decimates cycles into history entries
        history: Rolling history store fed by the sampler
        scheduler: Fires the pipeline periodically
    """

    config: Config
    registry: ProviderRegistry
    store: ReadingStore
    orchestrator: UpdateOrchestrator
    aggregator: Aggregator
    sampler: HistorySampler
    history: HistoryStore
    scheduler: UpdateScheduler = field(init=False)
    listeners: list[CycleListener] = field(default_factory=list)
    _current: Optional[CycleState] = field(default=None, repr=False)
    _started: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        self.scheduler = UpdateScheduler(self.run_pipeline, self.config.update.interval)

    @classmethod
    def create(
        cls,
        config: Config,
        history: Optional[HistoryStore] = None,
        factories: Optional[dict[str, ProviderFactory]] = None,
    ) -> "AppContext":
        """
        Build the pipeline for a configuration.

        Args:
            config: Application configuration
            history: Rolling history store; defaults to an in-memory
                RollingHistory sized from ``config.history.size``
            factories: Provider factories by kind; defaults to the built-in
                providers

        Returns:
            AppContext ready to start
        """
        registry = ProviderRegistry.from_sources(config.sources, factories)
        store = ReadingStore(registry.source_ids())
        orchestrator = UpdateOrchestrator(registry, store)
        aggregator = Aggregator(config.services)

        if history is None:
            history = RollingHistory(config.history.size)
        journal_file = config.history.journal_file
        journal = HistoryJournal(journal_file) if journal_file else None
        sampler = HistorySampler(config.update.history_frequency, history, journal)

        logger.debug(
            f"Created AppContext: {len(registry)} source(s), "
            f"interval={config.update.interval}s, "
            f"history every {sampler.frequency} cycle(s)"
        )
        return cls(
            config=config,
            registry=registry,
            store=store,
            orchestrator=orchestrator,
            aggregator=aggregator,
            sampler=sampler,
            history=history,
        )

    def add_listener(self, listener: CycleListener) -> "AppContext":
        """
        Register a callback receiving every completed CycleState.

        Plain functions and coroutine functions are both accepted.
        """
        self.listeners.append(listener)
        return self

    async def run_pipeline(self) -> CycleState:
        """One full cycle: poll, derive, sample, notify"""
        cycle = await self.orchestrator.run_cycle()
        logger.debug("updating services...")
        cycle.derived = self.aggregator.derive(self.store, cycle.error)
        self.sampler.maybe_sample(cycle.derived.values)
        self._current = cycle

        for listener in self.listeners:
            try:
                result = listener(cycle)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Cycle listener failed: {e}")

        return cycle

    async def start(self) -> None:
        """
        Initialize all sources, run the first update and start the timer.

        A second call is logged and ignored.
        """
        if self._started:
            logger.warning("AppContext already started, ignoring start() call")
            return

        logger.info(f"Starting AppContext with {len(self.registry)} source(s)...")
        await self.scheduler.start(self.orchestrator.initialize_all)
        self._started = True

    async def run_once(self) -> CycleState:
        """Initialize all sources and run a single cycle without the timer"""
        await self.orchestrator.initialize_all()
        return await self.run_pipeline()

    async def shutdown(self) -> None:
        """
        Stop the scheduler and shut down all providers.

        Safe to call multiple times or before start().
        """
        await self.scheduler.stop()
        await self.registry.shutdown_all()
        self._started = False
        logger.info("AppContext shutdown complete")

    def get_current_values(self) -> DerivedValues:
        """Derived values of the latest completed cycle (empty before the first)"""
        if self._current is None:
            return DerivedValues()
        return self._current.derived

    @property
    def current_cycle(self) -> Optional[CycleState]:
        return self._current

    @property
    def is_started(self) -> bool:
        return self._started

    def __repr__(self) -> str:
        return (
            f"AppContext(started={self._started}, "
            f"sources={self.registry.source_ids()}, "
            f"interval={self.config.update.interval})"
        )
