"""
Log Reader Domain

Follows the collector log written by the tracking domain:
- Line parser producing typed account/collection/inventory records
- Incremental tail that survives truncation
- Latest-state tracker with a flat JSON export
"""

__all__ = ["export", "parser", "tail"]
