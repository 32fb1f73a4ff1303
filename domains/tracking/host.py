"""
Host collaborator interfaces.

The collector never reaches into the game client directly; the loader hands
it objects satisfying these protocols.
"""

from typing import Any, Callable, Iterable, Mapping, Protocol

from collector.models.schemas import AccountData

# (channel name, payload)
ChannelHandler = Callable[[str, Any], None]
LoginStateCallback = Callable[[Any], None]


class IdentityProvider(Protocol):
    """Account/session identity exposed by the host."""

    def is_ready(self) -> bool: ...

    def current(self) -> AccountData: ...

    def on_changed(self, callback: LoginStateCallback) -> None: ...

    def remove_on_changed(self, callback: LoginStateCallback) -> None: ...


class InventorySource(Protocol):
    """Card inventory and its change channels."""

    def is_ready(self) -> bool: ...

    def current_counts(self) -> Mapping[int, int]: ...

    def current_wallet(self) -> Any: ...

    def channel_names(self) -> Iterable[str]: ...

    def subscribe(self, channel: str, handler: ChannelHandler) -> None: ...

    def unsubscribe(self, channel: str, handler: ChannelHandler) -> None: ...


class LogSink(Protocol):
    """Append-only record destination."""

    def append(self, label: str, record: str) -> None: ...
