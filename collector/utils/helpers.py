"""
Helper utilities for the Arena data collector.

Common functions used across domains.
"""

import dataclasses
import hashlib
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel

from domains.tracking.errors import SerializationError


def now_iso() -> str:
    """Get current timestamp as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def parse_iso_timestamp(ts_str: str) -> datetime:
    """Parse ISO timestamp string to datetime."""
    return datetime.fromisoformat(ts_str.replace('Z', '+00:00'))


def to_json_ready(value: Any) -> Any:
    """
    Convert a payload into plain JSON types.

    Pydantic models are dumped by alias, dataclasses via ``asdict``,
    mappings and sequences recursively. Anything else is returned as-is and
    left for ``json`` to accept or reject.
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_json_ready(dataclasses.asdict(value))
    if isinstance(value, Mapping):
        return {str(k): to_json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_ready(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_json_ready(v) for v in value)
    return value


def canonical_json(value: Any) -> str:
    """
    Serialize ``value`` with sorted keys and compact separators.

    Raises:
        SerializationError: if the value holds something JSON cannot encode
    """
    try:
        return json.dumps(
            to_json_ready(value),
            sort_keys=True,
            separators=(',', ':'),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Payload is not serializable: {e}") from e


def hash_payload(value: Any) -> str:
    """Generate MD5 hex digest of the canonical serialization of ``value``."""
    return hashlib.md5(canonical_json(value).encode('utf-8')).hexdigest()


def write_json_atomic(path: Path, data: Any) -> None:
    """Persist ``data`` as prettified JSON via a temp file and rename."""
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
    tmp_path.replace(path)
