"""Maps channel notifications and snapshots into canonical events."""

from typing import Any

from collector.models.schemas import CanonicalEvent, EventCategory
from collector.utils.helpers import now_iso


class EventNormalizer:
    """Stamps and categorizes raw payloads. Payloads are never inspected."""

    def normalize(self, source_tag: str, raw_payload: Any) -> CanonicalEvent:
        """Wrap an inventory change notification from ``source_tag``."""
        return CanonicalEvent(
            timestamp=now_iso(),
            category=EventCategory.INVENTORY_UPDATE,
            source_tag=source_tag,
            payload=raw_payload,
        )

    def snapshot(self, category: EventCategory, payload: Any) -> CanonicalEvent:
        """Wrap an account read or resync snapshot; these carry no source tag."""
        return CanonicalEvent(
            timestamp=now_iso(),
            category=category,
            payload=payload,
        )
