import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from collector.models.schemas import AccountData
from collector.utils.config import Settings


class MemoryLogSink:
    """LogSink that keeps (label, record) pairs in memory."""

    def __init__(self):
        self.records: List[Tuple[str, str]] = []
        self.lock = threading.Lock()

    def append(self, label: str, record: str) -> None:
        with self.lock:
            self.records.append((label, record))

    def labels(self) -> List[str]:
        return [label for label, _ in self.records]


class FakeIdentity:
    """IdentityProvider with a switchable account and login listeners."""

    def __init__(self, account: Optional[AccountData] = None):
        self.account = account
        self.listeners: List[Callable[[Any], None]] = []
        self.reads = 0

    def is_ready(self) -> bool:
        return self.account is not None

    def current(self) -> AccountData:
        self.reads += 1
        if self.account is None:
            raise RuntimeError("account client not loaded")
        return self.account

    def on_changed(self, callback) -> None:
        self.listeners.append(callback)

    def remove_on_changed(self, callback) -> None:
        if callback in self.listeners:
            self.listeners.remove(callback)

    def fire_changed(self, state: str = "LoggedOut") -> None:
        for callback in list(self.listeners):
            callback(state)


class EagerIdentity(FakeIdentity):
    """Host that invokes a login listener synchronously on its first attach."""

    def __init__(self, account: Optional[AccountData] = None):
        super().__init__(account)
        self.fired = False

    def on_changed(self, callback) -> None:
        super().on_changed(callback)
        if not self.fired:
            self.fired = True
            callback("LoggedIn")


class FakeInventory:
    """InventorySource whose channels deliver to every subscribed handler."""

    def __init__(self, counts: Optional[Dict[int, int]] = None, wallet: Any = None,
                 channels: Tuple[str, ...] = ("CardsGranted", "WildcardsRedeemed", "BoosterOpened")):
        self.counts = counts
        self.wallet = wallet if wallet is not None else {"gold": 100, "gems": 20}
        self.channels = list(channels)
        self.handlers: Dict[str, List[Callable[[str, Any], None]]] = {c: [] for c in channels}
        self.failing_channels: set[str] = set()
        self.subscribe_calls = 0

    def is_ready(self) -> bool:
        return bool(self.counts)

    def current_counts(self) -> Dict[int, int]:
        return dict(self.counts or {})

    def current_wallet(self) -> Any:
        return self.wallet

    def channel_names(self) -> List[str]:
        return list(self.channels)

    def subscribe(self, channel: str, handler) -> None:
        self.subscribe_calls += 1
        if channel in self.failing_channels:
            raise RuntimeError(f"channel {channel} unavailable")
        self.handlers.setdefault(channel, []).append(handler)

    def unsubscribe(self, channel: str, handler) -> None:
        handlers = self.handlers.get(channel, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, channel: str, payload: Any) -> None:
        for handler in list(self.handlers.get(channel, [])):
            handler(channel, payload)


@pytest.fixture
def memory_sink() -> MemoryLogSink:
    return MemoryLogSink()


@pytest.fixture
def account() -> AccountData:
    return AccountData(user_id="ACC-1", screen_name="Planeswalker#12345")


@pytest.fixture
def identity(account) -> FakeIdentity:
    return FakeIdentity(account)


@pytest.fixture
def eager_identity(account) -> EagerIdentity:
    return EagerIdentity(account)


@pytest.fixture
def inventory() -> FakeInventory:
    return FakeInventory(counts={5: 3, 2: 1, 9: 0})


@pytest.fixture
def fast_settings(tmp_path) -> Settings:
    return Settings(
        collector_log_path=tmp_path / "collector.log",
        export_path=tmp_path / "export.json",
        readiness_interval=0.01,
        resync_interval=3600,
    )
