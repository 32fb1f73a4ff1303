"""
Collector tracking domain.

Observes the host game client's account, card inventory and inventory-change
channels, and writes deduplicated records to the collector log:
- Readiness gate for host subsystems
- Channel subscriptions and event normalization
- Periodic resync of the full collection
"""

__all__ = ["controller", "loader", "readiness", "resync", "sink", "subscriptions"]
