"""Tests for submission persistence."""

import json
import re
from datetime import datetime, timezone, timedelta
import pytest

from src.shared.contact.errors import StorageFailure
from src.shared.contact.schemas import Submission
from src.shared.contact.storage import format_timestamp, store_submission, submission_key

KEY_PATTERN = re.compile(
    r"contact_(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z)_"
    r"([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})"
)


@pytest.fixture
def submission(fixed_now):
    return Submission(name="Ada", email="ada@example.com", message="Hi", submitted_at=format_timestamp(fixed_now))


def test_format_timestamp(fixed_now):
    assert format_timestamp(fixed_now) == "2025-03-14T15:09:26.535Z"


def test_format_timestamp_converts_to_utc():
    moment = datetime(2025, 1, 1, 1, 0, 0, 7000, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(moment) == "2024-12-31T23:00:00.007Z"


def test_same_millisecond_keys_do_not_collide(fixed_now):
    stamp = format_timestamp(fixed_now)
    assert submission_key(stamp) != submission_key(stamp)


def test_store_writes_one_record(store, submission):
    key = store_submission(store, submission)

    assert store.puts == [(key, store.get(key), None)]
    match = KEY_PATTERN.fullmatch(key)
    assert match is not None
    record = json.loads(store.get(key))
    assert record == {
        "name": "Ada",
        "email": "ada@example.com",
        "message": "Hi",
        "submittedAt": match.group(1),
    }


def test_submission_never_expires(store, submission, session_factory):
    from src.shared.kv.database import KVEntry

    key = store_submission(store, submission)

    db = session_factory()
    try:
        assert db.query(KVEntry).filter(KVEntry.key == key).one().expires_at is None
    finally:
        db.close()


def test_store_outage_is_reported(unavailable_store, submission):
    # Unlike rate limiting, losing an accepted message must surface to the caller
    with pytest.raises(StorageFailure) as exc_info:
        store_submission(unavailable_store, submission)

    assert exc_info.value.status_code == 500
    assert len(unavailable_store.puts) == 1


def test_without_store_submission_is_logged(submission, caplog):
    key = store_submission(None, submission)

    assert key.startswith("contact_2025-03-14T15:09:26.535Z_")
    assert "[DEV]" in caplog.text
