"""In-memory store of the latest reading per source"""

import logging
from collections.abc import Iterable, Mapping
from typing import Optional

logger = logging.getLogger(__name__)


def apply_offsets(values: Mapping[str, float], offsets: Mapping[str, float]) -> dict[str, float]:
    """
    Add calibration offsets to the keys present in ``values``.

    Keys with an offset but no value stay absent.
    """
    return {key: value + offsets.get(key, 0.0) for key, value in values.items()}


class ReadingStore:
    """
    Latest known value of every measurement kind, per source.

    Holds exactly one entry per configured source id, created empty before
    the first poll. Merging only overwrites the keys a poll returned, so a
    key missing from one cycle keeps its previous value.
    """

    def __init__(self, source_ids: Iterable[str] = ()):
        self._readings: dict[str, dict[str, float]] = {}
        for source_id in source_ids:
            self.ensure(source_id)

    def ensure(self, source_id: str) -> None:
        """Create an empty entry for a source if it does not exist yet"""
        self._readings.setdefault(source_id, {})

    def merge(self, source_id: str, values: Mapping[str, float]) -> None:
        self.ensure(source_id)
        self._readings[source_id].update(values)

    def get(self, source_id: str, key: str) -> Optional[float]:
        """Current value of one key for one source, None when unset"""
        reading = self._readings.get(source_id)
        if reading is None:
            return None
        return reading.get(key)

    def reading(self, source_id: str) -> dict[str, float]:
        return dict(self._readings.get(source_id, {}))

    def snapshot(self) -> dict[str, dict[str, float]]:
        return {source_id: dict(reading) for source_id, reading in self._readings.items()}

    def __contains__(self, source_id: str) -> bool:
        return source_id in self._readings

    def __len__(self) -> int:
        return len(self._readings)
