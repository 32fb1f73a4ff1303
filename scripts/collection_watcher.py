#!/usr/bin/env python3
"""Follow the collector log and keep a flat JSON export of the latest state.

This module exposes a CLI entrypoint that watches the collector log written by
the in-game collector and rewrites the export file whenever new account,
collection or inventory records arrive.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from collector.utils.config import get_settings
from domains.log_reader.export import CollectionTracker
from domains.log_reader.parser import parse_lines
from domains.log_reader.tail import LogTail
from domains.tracking.sink import is_collector_record


class CollectorLogHandler(FileSystemEventHandler):
    """Watchdog handler that keeps the export file in sync with the log."""

    def __init__(
        self,
        log_path: Path,
        output_file: Path,
        lock: threading.Lock,
        log_events: bool = False,
    ) -> None:
        super().__init__()
        self.log_path = log_path.expanduser().absolute()
        self.output_file = output_file
        self.lock = lock
        self.log_events = log_events
        self.tail = LogTail(self.log_path)
        self.tracker = CollectionTracker()

    def on_created(self, event: FileSystemEvent) -> None:  # noqa: D401
        """Pick up a log file that appears after the watcher started."""

        self._handle_change(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:  # noqa: D401
        """Read records appended to the log."""

        if event.is_directory:
            return
        self._handle_change(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:  # noqa: D401
        """Handle log rotation onto our path."""

        dest = getattr(event, "dest_path", None)
        if dest:
            self._handle_change(dest)

    # Helper routines -----------------------------------------------------------------

    def _handle_change(self, raw_path: str) -> None:
        if Path(raw_path).expanduser().absolute() != self.log_path:
            return
        self.sync()

    def sync(self) -> bool:
        """Read new log content and rewrite the export if anything changed."""

        with self.lock:
            text = self.tail.read_new()
            if not text:
                return False

            results = parse_lines(text)
            if not self.tracker.apply_all(results):
                return False

            if self.log_events:
                logger.info(f"Export update: {len(results)} new records")

            self.tracker.dump_export(self.output_file)
            return True


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Follow the collector log and maintain a collection export JSON file.",
    )
    parser.add_argument(
        "--log",
        type=Path,
        default=settings.collector_log_path,
        help="Path to the collector log (default: from settings).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=settings.export_path,
        help="Where to write the export file.",
    )
    parser.add_argument(
        "--poll",
        type=float,
        default=settings.watch_poll,
        help="How often the main loop checks for shutdown (seconds).",
    )
    parser.add_argument(
        "--log-events",
        action="store_true",
        help="Emit info logs whenever the export changes.",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)

    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} [{level}] {message}",
        level=get_settings().log_level,
        filter=lambda record: not is_collector_record(record),
    )

    log_path = args.log.expanduser().absolute()
    if not log_path.parent.exists():
        logger.error(f"Log directory does not exist: {log_path.parent}")
        return 1

    handler = CollectorLogHandler(
        log_path=log_path,
        output_file=args.output.expanduser().absolute(),
        lock=threading.Lock(),
        log_events=args.log_events,
    )
    # Catch up on whatever is already in the log
    handler.sync()

    observer = Observer()
    observer.schedule(handler, str(log_path.parent), recursive=False)
    observer.daemon = True
    observer.start()
    logger.info(f"Watching {log_path}")

    stop_event = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        while not stop_event.is_set():
            stop_event.wait(args.poll)
    finally:
        observer.stop()
        observer.join()

    logger.info("Collection watcher stopped.")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
