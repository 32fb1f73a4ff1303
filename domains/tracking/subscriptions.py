"""
Subscription registry for host inventory channels.

Re-running initialization after a login change must not leave the same
handler attached twice, so every (re)subscription first detaches the handler
from each channel and then attaches it again.
"""

import threading
from typing import Dict, Iterable, NamedTuple

from loguru import logger

from domains.tracking.host import ChannelHandler, InventorySource


class SubscriptionHandle(NamedTuple):
    """An active (channel, callback) registration."""

    channel: str
    callback: ChannelHandler


class SubscriptionRegistry:
    """Tracks at most one live handle per channel."""

    def __init__(self, source: InventorySource):
        self.source = source
        self._handles: Dict[str, SubscriptionHandle] = {}
        self._lock = threading.Lock()

    def active_channels(self) -> list[str]:
        """Channels with a live handle."""
        with self._lock:
            return sorted(self._handles)

    def handle_for(self, channel: str) -> SubscriptionHandle | None:
        with self._lock:
            return self._handles.get(channel)

    def unsubscribe(self, channel: str, handler: ChannelHandler):
        """Detach ``handler`` from ``channel``; a no-op when not attached."""
        with self._lock:
            try:
                self.source.unsubscribe(channel, handler)
            except Exception as e:
                logger.debug(f"Unsubscribe from {channel} ignored: {e}")

            handle = self._handles.get(channel)
            if handle is not None and handle.callback == handler:
                del self._handles[channel]

    def subscribe(self, channel: str, handler: ChannelHandler) -> bool:
        """
        Attach ``handler`` to ``channel``.

        Returns:
            True if the host accepted the subscription
        """
        with self._lock:
            try:
                self.source.subscribe(channel, handler)
            except Exception as e:
                logger.error(f"Failed to subscribe to {channel}: {e}")
                return False

            self._handles[channel] = SubscriptionHandle(channel, handler)
            return True

    def resubscribe_all(self, channel_names: Iterable[str], handler: ChannelHandler) -> int:
        """
        Unsubscribe ``handler`` everywhere, then subscribe it everywhere.

        Args:
            channel_names: Channels to attach to
            handler: Callback receiving (channel, payload)

        Returns:
            Number of channels successfully subscribed
        """
        channels = list(channel_names)

        for channel in channels:
            self.unsubscribe(channel, handler)

        subscribed = 0
        for channel in channels:
            if self.subscribe(channel, handler):
                subscribed += 1

        logger.info(f"Subscribed to {subscribed}/{len(channels)} inventory channels")
        return subscribed
