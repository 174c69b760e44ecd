"""Exception types raised by providers and configuration loading.

None of these escape an update cycle: the orchestrator, aggregator and
history sampler catch them at their seams and log them.
"""


class AirQualityError(Exception):
    """Base class for all unified-airquality errors."""


class ConfigurationError(AirQualityError):
    """Invalid configuration (unknown source, provider, aggregate or index)."""


class AdapterInitError(AirQualityError):
    """A provider failed to set up its connection or handle."""


class AdapterPollError(AirQualityError):
    """A provider failed to return readings for this cycle."""


class JournalWriteError(AirQualityError):
    """Appending to the flat-file history journal failed."""
