"""
Collector controller.

Orchestrates the collector lifecycle inside the host:

1. Wait for the account client and inventory manager to load
2. Record account info and attach the login-state listener
3. Subscribe to every inventory channel and start the resync loop
4. On a login-state change, clear readiness and go back to step 1

Readiness and resync run on background threads so host callbacks are never
blocked by the sleeps between passes.
"""

import threading
from enum import Enum
from typing import Any, Iterator, Optional, Tuple

from loguru import logger

from collector.models.schemas import (
    CATEGORY_LABELS,
    CanonicalEvent,
    CollectorStatus,
    EventCategory,
)
from collector.utils.config import Settings, get_settings
from domains.tracking.errors import CollaboratorError
from domains.tracking.host import IdentityProvider, InventorySource, LogSink
from domains.tracking.normalizer import EventNormalizer
from domains.tracking.readiness import ReadinessCondition, ReadinessGate
from domains.tracking.resync import ResyncScheduler, collection_entries
from domains.tracking.sink import DedupSink
from domains.tracking.subscriptions import SubscriptionRegistry


class CollectorState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_READINESS = "awaiting-readiness"
    ACTIVE = "active"
    REINITIALIZING = "reinitializing"
    STOPPED = "stopped"


ACCOUNT_CONDITION = "account-info"
INVENTORY_CONDITION = "inventory"


class CollectorController:
    """Root of the collector: readiness, subscriptions, resync."""

    def __init__(
        self,
        identity: IdentityProvider,
        inventory: InventorySource,
        log_sink: LogSink,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize controller.

        Args:
            identity: Host account client
            inventory: Host inventory manager
            log_sink: Destination for collector records
            settings: Overrides the cached application settings
        """
        self.settings = settings or get_settings()
        self.identity = identity
        self.inventory = inventory

        self.stop_event = threading.Event()
        self.gate = ReadinessGate(self.settings.readiness_interval, self.stop_event)
        self.normalizer = EventNormalizer()
        self.registry = SubscriptionRegistry(inventory)
        self.sink = DedupSink(log_sink, self.settings.dedup_max_entries)
        self.scheduler = ResyncScheduler(self.stop_event)

        self.state = CollectorState.UNINITIALIZED
        # Reentrant: a host may invoke the login listener while it is being attached
        self._lock = threading.RLock()
        self._initializing = False
        self._listening = False
        self._init_thread: Optional[threading.Thread] = None
        self._resync_thread: Optional[threading.Thread] = None

    # Host lifecycle hooks ---------------------------------------------------

    def on_start(self):
        """Begin the readiness sequence on a background thread."""
        logger.info("Collector initialization started")
        self._start_initialization()

    def on_disable(self):
        logger.warning("Collector disabled by host")

    def on_destroy(self):
        logger.info("Collector shutting down. Bye!")

    def on_application_quit(self):
        logger.info("Host application quit")

    # Readiness --------------------------------------------------------------

    def conditions(self) -> list[ReadinessCondition]:
        return [
            ReadinessCondition(ACCOUNT_CONDITION, self.identity.is_ready, self._collect_account_info),
            ReadinessCondition(INVENTORY_CONDITION, self.inventory.is_ready, self._subscribe_to_inventory),
        ]

    def initialize(self) -> bool:
        """
        Run readiness passes until every condition holds.

        Returns:
            True once active, False if stopped first
        """
        conditions = self.conditions()

        while True:
            with self._lock:
                if self.state == CollectorState.STOPPED:
                    self._initializing = False
                    return False
                self._initializing = True
                self.state = CollectorState.AWAITING_READINESS

            ready = self.gate.await_all(conditions)

            with self._lock:
                if not ready or self.state == CollectorState.STOPPED:
                    self._initializing = False
                    return False

                # A login change may have cleared the flags while we waited
                if len(self.gate.satisfied) == len(conditions):
                    self.state = CollectorState.ACTIVE
                    self._initializing = False
                    break

        logger.success("Collector initialization done. Ready to go!")
        return True

    def _start_initialization(self):
        with self._lock:
            if self._initializing or self.state == CollectorState.STOPPED:
                return
            self._initializing = True
            self._init_thread = threading.Thread(
                target=self.initialize, name="collector-init", daemon=True
            )
            self._init_thread.start()

    def join_initialization(self, timeout: Optional[float] = None):
        """Wait for the current readiness thread, if any, to finish."""
        thread = self._init_thread
        if thread is not None:
            thread.join(timeout)

    def _collect_account_info(self):
        try:
            account = self.identity.current()
        except Exception as e:
            raise CollaboratorError("account-info read", e) from e

        event = self.normalizer.snapshot(EventCategory.ACCOUNT_INFO, account)
        self.sink.emit(CATEGORY_LABELS[EventCategory.ACCOUNT_INFO], event)

        # Flag goes up before attaching; a listener fired from inside on_changed clears it
        with self._lock:
            if not self._listening:
                self._listening = True
                try:
                    self.identity.on_changed(self._on_login_state_changed)
                except Exception as e:
                    self._listening = False
                    raise CollaboratorError("login listener attach", e) from e

    def _subscribe_to_inventory(self):
        channels = self.settings.get_inventory_channels()
        if not channels:
            try:
                channels = list(self.inventory.channel_names())
            except Exception as e:
                raise CollaboratorError("inventory channel listing", e) from e

        subscribed = self.registry.resubscribe_all(channels, self._handle_inventory_update)
        if channels and subscribed == 0:
            raise CollaboratorError(
                "inventory subscribe", RuntimeError("no channel accepted the subscription")
            )

        self._ensure_resync_running()

    # Event path -------------------------------------------------------------

    def _handle_inventory_update(self, channel: str, payload: Any):
        try:
            event = self.normalizer.normalize(channel, payload)
            self.sink.emit(CATEGORY_LABELS[EventCategory.INVENTORY_UPDATE], event)
        except Exception as e:
            logger.error(f"Failed to record inventory update from {channel}: {e}")

    def _on_login_state_changed(self, login_state: Any):
        logger.info(f"Login state changed: {login_state}")

        with self._lock:
            if self.state == CollectorState.STOPPED:
                return
            self.state = CollectorState.REINITIALIZING
            self.gate.reset()

            self._listening = False
            try:
                self.identity.remove_on_changed(self._on_login_state_changed)
            except Exception as e:
                logger.debug(f"Detaching login listener failed: {e}")

        self._start_initialization()

    # Resync path ------------------------------------------------------------

    def _snapshot(self) -> Iterator[Tuple[str, CanonicalEvent]]:
        counts = self.inventory.current_counts()
        yield (
            CATEGORY_LABELS[EventCategory.COLLECTION_SNAPSHOT],
            self.normalizer.snapshot(EventCategory.COLLECTION_SNAPSHOT, collection_entries(counts)),
        )

        wallet = self.inventory.current_wallet()
        yield (
            CATEGORY_LABELS[EventCategory.INVENTORY_SNAPSHOT],
            self.normalizer.snapshot(EventCategory.INVENTORY_SNAPSHOT, wallet),
        )

    def _ensure_resync_running(self):
        with self._lock:
            if self._resync_thread is not None and self._resync_thread.is_alive():
                return
            self._resync_thread = threading.Thread(
                target=self.scheduler.run_forever,
                args=(self.settings.resync_interval, self._snapshot, self.sink, self.inventory.is_ready),
                name="collector-resync",
                daemon=True,
            )
            self._resync_thread.start()

    def resync_now(self) -> int:
        """Run one resync tick on the calling thread."""
        return self.scheduler.run_once(self._snapshot, self.sink, self.inventory.is_ready)

    # Control ----------------------------------------------------------------

    def stop(self, timeout: Optional[float] = None):
        """Cancel readiness and resync loops at their next sleep boundary."""
        with self._lock:
            self.state = CollectorState.STOPPED
        self.stop_event.set()

        for thread in (self._init_thread, self._resync_thread):
            if thread is not None and thread is not threading.current_thread():
                thread.join(timeout)

        logger.info("Collector stopped")

    def status(self) -> CollectorStatus:
        resync_thread = self._resync_thread
        return CollectorStatus(
            state=self.state.value,
            satisfied_conditions=self.gate.satisfied,
            subscribed_channels=self.registry.active_channels(),
            resync_running=resync_thread is not None and resync_thread.is_alive(),
            sink=self.sink.stats(),
        )
