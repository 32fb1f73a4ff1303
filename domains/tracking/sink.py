"""
Collector output sinks.

``DedupSink`` sits in front of the log and writes each distinct payload once
per process, no matter whether it arrived through a channel notification or a
periodic resync. ``CollectorLogSink`` is the file destination: a dedicated
loguru handler that writes ``[label]<json>`` lines.
"""

import sys
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Optional

from loguru import logger

from collector.models.schemas import CanonicalEvent, SinkStats
from collector.utils.helpers import canonical_json, hash_payload
from domains.tracking.host import LogSink

LABEL_EXTRA = "collector_label"


def is_collector_record(record) -> bool:
    """loguru filter selecting records emitted through ``CollectorLogSink``."""
    return LABEL_EXTRA in record["extra"]


def keep_records_off_default_console():
    """
    Swap loguru's default stderr handler for one that skips collector records.

    A no-op once the default handler is gone, e.g. after the application
    configured its own console output.
    """
    try:
        logger.remove(0)
    except ValueError:
        return
    logger.add(sys.stderr, filter=lambda record: not is_collector_record(record))


class CollectorLogSink:
    """Appends collector records to a file through a dedicated loguru handler."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        keep_records_off_default_console()
        self._handler_id: Optional[int] = logger.add(
            str(self.path),
            format="[{extra[" + LABEL_EXTRA + "]}]{message}",
            filter=is_collector_record,
            level="INFO",
            encoding="utf-8",
        )
        logger.info(f"Collector log: {self.path}")

    def append(self, label: str, record: str) -> None:
        logger.bind(**{LABEL_EXTRA: label}).info(record)

    def close(self):
        """Detach the file handler."""
        if self._handler_id is not None:
            logger.remove(self._handler_id)
            self._handler_id = None


class DedupSink:
    """Content-addressed write-once front for a ``LogSink``."""

    def __init__(self, log_sink: LogSink, max_entries: Optional[int] = None):
        """
        Initialize dedup sink.

        Args:
            log_sink: Destination for records that pass deduplication
            max_entries: Optional bound on remembered digests; oldest evicted first
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")

        self.log_sink = log_sink
        self.max_entries = max_entries
        # digest -> order of first appearance
        self._seen: "OrderedDict[str, int]" = OrderedDict()
        self._order = 0
        self._written = 0
        self._suppressed = 0
        self._lock = threading.Lock()

    def has_seen(self, digest: str) -> bool:
        with self._lock:
            return digest in self._seen

    def emit(self, label: str, event: CanonicalEvent) -> bool:
        """
        Write ``event`` under ``label`` unless its payload was already written.

        Returns:
            True if a record was appended, False if suppressed

        Raises:
            SerializationError: if the payload or envelope cannot be serialized
        """
        digest = hash_payload(event.payload)

        with self._lock:
            if digest in self._seen:
                self._suppressed += 1
                logger.debug(f"Suppressed duplicate [{label}] {digest}")
                return False

            record = canonical_json(event.envelope())
            self.log_sink.append(label, record)

            self._seen[digest] = self._order
            self._order += 1
            self._written += 1

            if self.max_entries is not None:
                while len(self._seen) > self.max_entries:
                    self._seen.popitem(last=False)

        return True

    def stats(self) -> SinkStats:
        with self._lock:
            return SinkStats(
                written=self._written,
                suppressed=self._suppressed,
                seen=len(self._seen),
            )
