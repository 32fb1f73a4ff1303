"""
Pydantic models for the Arena data collector.

Shared data models across the application.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


# =====================================================
# Host Data Models
# =====================================================

class AccountData(BaseModel):
    """Account identity as read from the host."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId")
    screen_name: Optional[str] = Field(default=None, alias="screenName")


class CardInventoryData(BaseModel):
    """One collection entry: card identifier and owned count."""
    model_config = ConfigDict(populate_by_name=True)

    grp_id: int = Field(alias="grpId")
    count: int


# =====================================================
# Event Models
# =====================================================

class EventCategory(str, Enum):
    """Kinds of records the collector emits."""
    ACCOUNT_INFO = "account-info"
    COLLECTION_SNAPSHOT = "collection-snapshot"
    INVENTORY_SNAPSHOT = "inventory-snapshot"
    INVENTORY_UPDATE = "inventory-update"


# Log label each category is written under
CATEGORY_LABELS: Dict[EventCategory, str] = {
    EventCategory.ACCOUNT_INFO: "account-info",
    EventCategory.COLLECTION_SNAPSHOT: "collection",
    EventCategory.INVENTORY_SNAPSHOT: "inventory",
    EventCategory.INVENTORY_UPDATE: "inventory-update",
}


class CanonicalEvent(BaseModel):
    """Normalized record written to the collector log."""
    timestamp: str
    category: EventCategory
    source_tag: str = ""
    payload: Any = None

    @property
    def label(self) -> str:
        """Log label for this event's category."""
        return CATEGORY_LABELS[self.category]

    def envelope(self) -> Dict[str, Any]:
        """
        Return the serialized envelope shape.

        ``Source`` is only present for channel-tagged events.
        """
        envelope: Dict[str, Any] = {"Timestamp": self.timestamp}
        if self.source_tag:
            envelope["Source"] = self.source_tag
        envelope["Attachment"] = self.payload
        return envelope


# =====================================================
# Response Models
# =====================================================

class SinkStats(BaseModel):
    """Dedup sink counters."""
    written: int = 0
    suppressed: int = 0
    seen: int = 0


class CollectorStatus(BaseModel):
    """Snapshot of the controller's state."""
    state: str
    satisfied_conditions: List[str] = []
    subscribed_channels: List[str] = []
    resync_running: bool = False
    sink: SinkStats = SinkStats()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    collector_state: Optional[str] = None
    version: str


class OperationStatus(BaseModel):
    """Generic operation status."""
    status: str
    message: str
    details: Optional[Dict[str, Any]] = None
