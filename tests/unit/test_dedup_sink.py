import json
import subprocess
import sys
import threading
from pathlib import Path

import pytest
from loguru import logger
from pydantic import ValidationError

from collector.models.schemas import CanonicalEvent, CardInventoryData, EventCategory
from collector.utils.config import Settings
from collector.utils.helpers import canonical_json, hash_payload
from domains.tracking.errors import SerializationError
from domains.tracking.normalizer import EventNormalizer
from domains.tracking.sink import CollectorLogSink, DedupSink

REPO_ROOT = Path(__file__).resolve().parents[2]


def make_event(category: EventCategory, payload, timestamp="2024-01-01T00:00:00+00:00", source=""):
    return CanonicalEvent(timestamp=timestamp, category=category, source_tag=source, payload=payload)


def test_identical_payload_across_categories_is_written_once(memory_sink):
    sink = DedupSink(memory_sink)
    a = make_event(EventCategory.INVENTORY_UPDATE, {"cardId": 1, "count": 2}, source="CardsGranted")
    b = make_event(EventCategory.COLLECTION_SNAPSHOT, {"cardId": 1, "count": 2},
                   timestamp="2024-01-01T00:30:00+00:00")

    assert sink.emit("inventory-update", a) is True
    assert sink.emit("collection", b) is False

    assert len(memory_sink.records) == 1
    label, record = memory_sink.records[0]
    assert label == "inventory-update"
    assert json.loads(record) == {
        "Timestamp": "2024-01-01T00:00:00+00:00",
        "Source": "CardsGranted",
        "Attachment": {"cardId": 1, "count": 2},
    }


def test_one_record_per_distinct_payload(memory_sink):
    sink = DedupSink(memory_sink)
    payloads = [{"a": 1}, {"a": 1}, {"b": 2}, {"a": 1}, {"b": 2}, {"c": [1, 2]}]

    for i, payload in enumerate(payloads):
        sink.emit("inventory", make_event(EventCategory.INVENTORY_SNAPSHOT, payload, timestamp=str(i)))

    assert len(memory_sink.records) == 3
    stats = sink.stats()
    assert stats.written == 3
    assert stats.suppressed == 3
    assert stats.seen == 3


def test_digest_ignores_key_order():
    assert hash_payload({"b": 1, "a": 2}) == hash_payload({"a": 2, "b": 1})
    digest = hash_payload({"a": 1})
    assert len(digest) == 32
    assert digest == digest.lower()


def test_pydantic_payloads_hash_by_alias():
    cards = [CardInventoryData(grp_id=2, count=1)]
    assert canonical_json(cards) == '[{"count":1,"grpId":2}]'
    assert hash_payload(cards) == hash_payload([{"grpId": 2, "count": 1}])


def test_snapshot_events_carry_no_source(memory_sink):
    sink = DedupSink(memory_sink)
    event = EventNormalizer().snapshot(EventCategory.INVENTORY_SNAPSHOT, {"gold": 10})

    sink.emit("inventory", event)

    record = json.loads(memory_sink.records[0][1])
    assert "Source" not in record
    assert record["Attachment"] == {"gold": 10}


def test_unserializable_payload_raises(memory_sink):
    sink = DedupSink(memory_sink)
    event = make_event(EventCategory.INVENTORY_UPDATE, {"handle": object()})

    with pytest.raises(SerializationError):
        sink.emit("inventory-update", event)
    assert memory_sink.records == []


def test_max_entries_evicts_oldest(memory_sink):
    sink = DedupSink(memory_sink, max_entries=2)
    for payload in ({"n": 1}, {"n": 2}, {"n": 3}):
        sink.emit("inventory", make_event(EventCategory.INVENTORY_SNAPSHOT, payload))

    assert not sink.has_seen(hash_payload({"n": 1}))
    assert sink.emit("inventory", make_event(EventCategory.INVENTORY_SNAPSHOT, {"n": 1})) is True
    assert sink.emit("inventory", make_event(EventCategory.INVENTORY_SNAPSHOT, {"n": 3})) is False


def test_max_entries_must_be_positive(memory_sink):
    with pytest.raises(ValueError):
        DedupSink(memory_sink, max_entries=0)
    with pytest.raises(ValidationError):
        Settings(dedup_max_entries=-1)


CONSOLE_SCRIPT = """
import sys
from loguru import logger
from domains.tracking.sink import CollectorLogSink

log_sink = CollectorLogSink(sys.argv[1])
log_sink.append("account-info", '{"Attachment":{"userId":"ACC-1"}}')
logger.info("diagnostic line")
log_sink.close()
"""


def test_collector_records_stay_off_default_console(tmp_path):
    # Fresh interpreter: loguru's default stderr handler is still installed there
    path = tmp_path / "collector.log"
    result = subprocess.run(
        [sys.executable, "-c", CONSOLE_SCRIPT, str(path)],
        cwd=REPO_ROOT,
        capture_output=True,
        text=True,
        timeout=60,
    )

    assert result.returncode == 0, result.stderr
    assert "diagnostic line" in result.stderr
    assert "ACC-1" not in result.stderr
    assert "ACC-1" in path.read_text(encoding="utf-8")


def test_concurrent_duplicates_written_once(memory_sink):
    sink = DedupSink(memory_sink)
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        for _ in range(50):
            sink.emit("collection", make_event(EventCategory.COLLECTION_SNAPSHOT, [{"grpId": 7, "count": 4}]))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(memory_sink.records) == 1
    assert sink.stats().suppressed == 8 * 50 - 1


def test_collector_log_sink_writes_labelled_lines(tmp_path):
    path = tmp_path / "logs" / "collector.log"
    log_sink = CollectorLogSink(path)
    try:
        sink = DedupSink(log_sink)
        sink.emit("account-info", make_event(EventCategory.ACCOUNT_INFO, {"userId": "ACC-1"}))
        # Ordinary diagnostics stay out of the collector log
        logger.info("not a collector record")
    finally:
        log_sink.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines == [
        '[account-info]{"Attachment":{"userId":"ACC-1"},"Timestamp":"2024-01-01T00:00:00+00:00"}'
    ]


if __name__ == "__main__":  # pragma: no cover
    pytest.main([__file__])
