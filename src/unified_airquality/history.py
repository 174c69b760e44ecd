"""
Decimated history: a bounded rolling store plus an optional flat-file journal.

Only the values of the cycle on which decimation triggers are sampled;
nothing is buffered between samples. The journal is append-only and its
header is written exactly once, when the file does not exist yet.
"""

import logging
from collections import deque
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from .errors import JournalWriteError
from .models import HistoryEntry

logger = logging.getLogger(__name__)

JOURNAL_COLUMNS = (
    "date",
    "time",
    "temperature",
    "humidity",
    "pressure",
    "co",
    "co2",
    "no2",
    "o3",
    "pm25",
    "pm10",
    "so2",
    "voc",
)

# Journal column -> derived value key
JOURNAL_FIELDS = {column: column for column in JOURNAL_COLUMNS[2:]}
JOURNAL_FIELDS["pm25"] = "pm2.5"

JOURNAL_SEPARATOR = ";"
JOURNAL_NEWLINE = "\r\n"


class HistoryStore(Protocol):
    """Anything that accepts history entries (capacity owned by the store)."""

    def add_entry(self, entry: HistoryEntry) -> None: ...


class RollingHistory:
    """In-memory history store keeping the most recent ``size`` entries"""

    def __init__(self, size: int = 525600):
        self._entries: deque[HistoryEntry] = deque(maxlen=size)

    def add_entry(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def entries(self, limit: Optional[int] = None) -> list[HistoryEntry]:
        entries = list(self._entries)
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    @property
    def capacity(self) -> Optional[int]:
        return self._entries.maxlen

    def __len__(self) -> int:
        return len(self._entries)


def _format_value(value: Any) -> str:
    """Journal cell text: empty when absent, integral readings without ".0"."""
    if value is None:
        return ""
    number = float(value)
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    return repr(number)


class HistoryJournal:
    """Semicolon separated, CRLF terminated journal file"""

    def __init__(self, path: Path):
        self.path = Path(path)

    @staticmethod
    def header() -> str:
        return JOURNAL_SEPARATOR.join(JOURNAL_COLUMNS) + JOURNAL_NEWLINE

    @staticmethod
    def format_row(when: datetime, values: Mapping[str, Optional[float]]) -> str:
        cells = [when.strftime("%Y/%m/%d"), when.strftime("%H:%M:%S")]
        cells.extend(_format_value(values.get(key)) for key in JOURNAL_FIELDS.values())
        return JOURNAL_SEPARATOR.join(cells) + JOURNAL_NEWLINE

    def append(self, when: datetime, values: Mapping[str, Optional[float]]) -> None:
        """
        Append one row, writing the header first if the file is new.

        Raises:
            JournalWriteError: If the file cannot be written
        """
        try:
            write_header = not self.path.exists()
            if write_header:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8", newline="") as f:
                if write_header:
                    f.write(self.header())
                f.write(self.format_row(when, values))
        except OSError as e:
            raise JournalWriteError(f"Cannot append to {self.path}: {e}") from e


class HistorySampler:
    """
    Emits one history entry every ``frequency`` cycles.

    Args:
        frequency: Decimation factor (cycles per sample), at least 1
        store: Rolling history store receiving every entry
        journal: Optional flat-file journal
        clock: Returns the current local time; replaceable in tests
    """

    def __init__(
        self,
        frequency: int,
        store: Optional[HistoryStore] = None,
        journal: Optional[HistoryJournal] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.frequency = max(1, frequency)
        self.store = store
        self.journal = journal
        self._clock = clock
        self._counter = 0

    @property
    def counter(self) -> int:
        return self._counter

    def maybe_sample(self, values: Mapping[str, Optional[float]]) -> Optional[HistoryEntry]:
        """Count one cycle; on every ``frequency``-th call record and return an entry"""
        self._counter += 1
        if self._counter < self.frequency:
            return None
        self._counter = 0

        now = self._clock()
        entry = HistoryEntry(
            timestamp=int(now.timestamp()),
            temperature=values.get("temperature"),
            humidity=values.get("humidity"),
            pressure=values.get("pressure"),
        )

        if self.store is not None:
            logger.debug(f"Adding new history entry {entry.to_dict()}")
            self.store.add_entry(entry)

        if self.journal is not None:
            logger.debug(f"Adding entry to history file {self.journal.path}")
            try:
                self.journal.append(now, values)
            except JournalWriteError as e:
                logger.error(str(e))

        return entry
