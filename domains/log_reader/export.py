"""Latest-state tracker built from parsed collector records."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from collector.utils.helpers import write_json_atomic
from domains.log_reader.parser import (
    AccountInfoResult,
    CollectionResult,
    InventoryResult,
    InventoryUpdateResult,
    ParseResult,
    UnknownResult,
)


@dataclass
class CollectionTracker:
    """Keeps the most recent account, collection and inventory seen in the log."""

    account: Optional[AccountInfoResult] = None
    collection: Optional[CollectionResult] = None
    inventory: Optional[InventoryResult] = None
    updates: List[InventoryUpdateResult] = field(default_factory=list)
    unknown: int = 0

    def apply(self, result: ParseResult) -> bool:
        """
        Fold one record into the tracked state.

        Returns:
            True if the exported state changed
        """
        if isinstance(result, AccountInfoResult):
            self.account = result
        elif isinstance(result, CollectionResult):
            self.collection = result
        elif isinstance(result, InventoryResult):
            self.inventory = result
        elif isinstance(result, InventoryUpdateResult):
            self.updates.append(result)
        elif isinstance(result, UnknownResult):
            self.unknown += 1
            return False
        return True

    def apply_all(self, results: Iterable[ParseResult]) -> bool:
        changed = False
        for result in results:
            changed = self.apply(result) or changed
        return changed

    def as_json_ready(self) -> Dict[str, Any]:
        """Return a JSON serialisable payload for the export file."""

        def dump(result) -> Optional[Dict[str, Any]]:
            return result.model_dump(mode="json", by_alias=True) if result else None

        return {
            "account": dump(self.account),
            "collection": dump(self.collection),
            "inventory": dump(self.inventory),
            "updates": [dump(u) for u in self.updates],
        }

    def dump_export(self, path: Path):
        """Persist the tracked state as prettified JSON."""
        write_json_atomic(path, self.as_json_ready())
        logger.debug(f"Export written: {path}")
