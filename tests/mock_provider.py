"""Mock provider for testing"""

import asyncio
from typing import Optional

from unified_airquality.config import SourceConfig
from unified_airquality.errors import AdapterInitError, AdapterPollError
from unified_airquality.providers.base import Provider


class MockProvider(Provider):
    """
    Mock provider for testing.

    Returns a configurable set of values and can simulate failures and
    slow polls.
    """

    kind = "mock"

    def __init__(
        self,
        source: SourceConfig,
        values: Optional[dict[str, float]] = None,
        fail_on_initialize: bool = False,
        fail_on_poll: bool = False,
        poll_delay: float = 0.0,
        calls: Optional[list[str]] = None,
    ):
        super().__init__(source)
        self._values = dict(values or {})
        self._fail_on_initialize = fail_on_initialize
        self._fail_on_poll = fail_on_poll
        self._poll_delay = poll_delay
        self._calls = calls if calls is not None else []
        self.initialized = False
        self.shutdown_called = False
        self.poll_count = 0

    async def initialize(self) -> None:
        self._calls.append(f"init:{self.source.id}")
        if self._fail_on_initialize:
            raise AdapterInitError("Mock initialization failure")
        self.initialized = True

    async def poll(self) -> dict[str, float]:
        self._calls.append(f"poll:{self.source.id}")
        if self._poll_delay:
            await asyncio.sleep(self._poll_delay)
        if self._fail_on_poll:
            raise AdapterPollError("Mock poll failure")
        self.poll_count += 1
        return dict(self._values)

    async def shutdown(self) -> None:
        self.shutdown_called = True

    # Test helper methods

    def set_values(self, values: dict[str, float]) -> None:
        self._values = dict(values)

    def set_fail_on_poll(self, fail: bool) -> None:
        self._fail_on_poll = fail


def make_source(source_id: str, keys=(), offsets=None, provider: str = "mock") -> SourceConfig:
    return SourceConfig(
        id=source_id,
        provider=provider,
        keys=tuple(keys),
        offsets=dict(offsets or {}),
    )
