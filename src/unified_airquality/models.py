"""Data models passed between the pipeline stages."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional

from .airquality import AirQuality


@dataclass
class DerivedValues:
    """Published values of one cycle, as computed by the aggregator."""

    values: dict[str, Optional[float]] = field(default_factory=dict)
    air_quality: AirQuality = AirQuality.UNKNOWN
    faults: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "values": dict(self.values),
            "air_quality": self.air_quality.name.lower(),
            "air_quality_level": int(self.air_quality),
            "faults": dict(self.faults),
        }


@dataclass
class CycleState:
    """State of a single update cycle; replaced every tick."""

    index: int
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    failed_sources: list[str] = field(default_factory=list)
    derived: DerivedValues = field(default_factory=DerivedValues)

    @property
    def error(self) -> bool:
        """True if any source failed to initialize or poll this cycle"""
        return bool(self.failed_sources)

    def mark_failed(self, source_id: str) -> None:
        if source_id not in self.failed_sources:
            self.failed_sources.append(source_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycle": self.index,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "error": self.error,
            "failed_sources": list(self.failed_sources),
            **self.derived.to_dict(),
        }


@dataclass(frozen=True)
class HistoryEntry:
    """One decimated history sample."""

    timestamp: int
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.timestamp,
            "temp": self.temperature,
            "humidity": self.humidity,
            "pressure": self.pressure,
        }
