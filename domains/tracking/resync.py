"""
Periodic full-state resync.

Channel notifications can be missed (the collector may attach after changes
happened), so the full collection and inventory are re-read on a fixed
interval. Records that match what the event stream already produced are
dropped by the dedup sink.
"""

import threading
from typing import Callable, Iterable, Mapping, Optional, Tuple

from loguru import logger

from collector.models.schemas import CanonicalEvent, CardInventoryData
from domains.tracking.sink import DedupSink

Snapshot = Iterable[Tuple[str, CanonicalEvent]]


def collection_entries(counts: Mapping[int, int]) -> list[CardInventoryData]:
    """Collection entries in ascending card-identifier order."""
    return [
        CardInventoryData(grp_id=grp_id, count=count)
        for grp_id, count in sorted(counts.items(), key=lambda item: int(item[0]))
    ]


class ResyncScheduler:
    """Fixed-interval resync loop, cancellable through a stop event."""

    def __init__(self, stop_event: Optional[threading.Event] = None):
        self.stop_event = stop_event or threading.Event()
        self.ticks = 0

    def run_once(
        self,
        producer: Callable[[], Snapshot],
        sink: DedupSink,
        available: Callable[[], bool] = lambda: True,
    ) -> int:
        """
        Run a single resync tick.

        Returns:
            Number of records written (0 when the host state is unavailable)
        """
        self.ticks += 1

        try:
            if not available():
                logger.debug("Resync skipped, inventory not available")
                return 0
        except Exception as e:
            logger.warning(f"Resync availability check failed: {e}")
            return 0

        written = 0
        try:
            for label, event in producer():
                if sink.emit(label, event):
                    written += 1
        except Exception as e:
            logger.error(f"Resync failed: {e}")
            return written

        logger.info(f"Resync complete, {written} new records")
        return written

    def run_forever(
        self,
        interval: float,
        producer: Callable[[], Snapshot],
        sink: DedupSink,
        available: Callable[[], bool] = lambda: True,
    ):
        """Tick every ``interval`` seconds until the stop event is set."""
        logger.info(f"Resync loop started (every {interval}s)")

        while not self.stop_event.is_set():
            self.run_once(producer, sink, available)

            if self.stop_event.wait(interval):
                break

        logger.info("Resync loop stopped")
