"""
Parser for collector log lines.

Every record is a single ``[label]<json envelope>`` line. The label decides
which result type the envelope is read into; anything that does not fit
becomes an ``UnknownResult`` rather than an error.
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from collector.models.schemas import AccountData, CardInventoryData
from collector.utils.helpers import parse_iso_timestamp

LINE_PATTERN = re.compile(r"^\[(.*?)\](.*)")

ACCOUNT_INFO_PREFIX = "account-info"
INVENTORY_UPDATE_PREFIX = "inventory-update"
INVENTORY_PREFIX = "inventory"
COLLECTION_PREFIX = "collection"


class LogResult(BaseModel):
    """Common envelope fields."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str = Field(alias="Timestamp")
    label: str = Field(default="", exclude=True)

    @property
    def date(self) -> Optional[datetime]:
        try:
            return parse_iso_timestamp(self.timestamp)
        except ValueError:
            return None


class AccountInfoResult(LogResult):
    attachment: AccountData = Field(alias="Attachment")

    @property
    def user_id(self) -> str:
        return self.attachment.user_id

    @property
    def screen_name(self) -> Optional[str]:
        return self.attachment.screen_name


class CollectionResult(LogResult):
    attachment: List[CardInventoryData] = Field(alias="Attachment")

    def counts(self) -> Dict[int, int]:
        return {card.grp_id: card.count for card in self.attachment}


class InventoryResult(LogResult):
    attachment: Any = Field(alias="Attachment")


class InventoryUpdateResult(LogResult):
    source: str = Field(default="", alias="Source")
    attachment: Any = Field(alias="Attachment")


class UnknownResult(BaseModel):
    """A line that is not a recognizable collector record."""
    label: Optional[str] = None
    content: str


ParseResult = Union[
    AccountInfoResult, CollectionResult, InventoryResult, InventoryUpdateResult, UnknownResult
]

# Checked in order; "inventory-update" must win over "inventory"
_RESULT_TYPES = [
    (ACCOUNT_INFO_PREFIX, AccountInfoResult),
    (INVENTORY_UPDATE_PREFIX, InventoryUpdateResult),
    (INVENTORY_PREFIX, InventoryResult),
    (COLLECTION_PREFIX, CollectionResult),
]


def parse_line(line: str) -> Optional[ParseResult]:
    """
    Parse a single collector log line.

    Args:
        line: Raw line, with or without trailing newline

    Returns:
        Typed result, UnknownResult for unrecognized content, None for blank lines
    """
    line = line.strip()
    if not line:
        return None

    match = LINE_PATTERN.match(line)
    if not match:
        return UnknownResult(content=line)

    label, body = match.group(1), match.group(2).strip()

    for prefix, result_type in _RESULT_TYPES:
        if not label.startswith(prefix):
            continue

        try:
            result = result_type.model_validate(json.loads(body))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.debug(f"Malformed [{label}] record: {e}")
            return UnknownResult(label=label, content=line)

        result.label = label
        return result

    return UnknownResult(label=label, content=line)


def parse_lines(text: str) -> List[ParseResult]:
    """Parse every non-blank line of ``text``."""
    results = []
    for line in text.splitlines():
        result = parse_line(line)
        if result is not None:
            results.append(result)
    return results
