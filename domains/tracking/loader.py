"""
Entry points the host calls to load and unload the collector.

Only one collector exists per process; loading twice returns the running
instance.
"""

import threading
from typing import Optional

from loguru import logger

from collector.utils.config import Settings, get_settings
from domains.tracking.controller import CollectorController
from domains.tracking.host import IdentityProvider, InventorySource, LogSink
from domains.tracking.sink import CollectorLogSink

_collector: Optional[CollectorController] = None
_log_sink: Optional[CollectorLogSink] = None
_lock = threading.Lock()


def load(
    identity: IdentityProvider,
    inventory: InventorySource,
    log_sink: Optional[LogSink] = None,
    settings: Optional[Settings] = None,
) -> CollectorController:
    """Create and start the collector unless one is already loaded."""
    global _collector, _log_sink

    with _lock:
        if _collector is not None:
            logger.debug("Collector already loaded")
            return _collector

        settings = settings or get_settings()
        if log_sink is None:
            _log_sink = CollectorLogSink(settings.collector_log_path)
            log_sink = _log_sink

        _collector = CollectorController(identity, inventory, log_sink, settings)
        _collector.on_start()
        return _collector


def unload(timeout: Optional[float] = 5.0):
    """Stop the loaded collector and release its log file."""
    global _collector, _log_sink

    with _lock:
        if _collector is None:
            return

        _collector.on_destroy()
        _collector.stop(timeout)
        _collector = None

        if _log_sink is not None:
            _log_sink.close()
            _log_sink = None


def get_collector() -> Optional[CollectorController]:
    """Get the loaded collector, if any."""
    return _collector
