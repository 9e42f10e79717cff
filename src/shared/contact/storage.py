"""Persistence of accepted contact submissions."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from src.shared.contact.errors import StorageFailure
from src.shared.contact.schemas import Submission
from src.shared.kv.store import SqlKeyValueStore, StoreUnavailable


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix, e.g. 2025-01-01T12:00:00.000Z"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def submission_key(submitted_at: str, unique_id: Optional[str] = None) -> str:
    """Sortable key; the random suffix keeps same-millisecond submissions apart."""
    return f"contact_{submitted_at}_{unique_id or uuid.uuid4()}"


def store_submission(store: Optional[SqlKeyValueStore], submission: Submission) -> str:
    """
    Append a submission to the store. Returns the key it was written under.

    Unlike rate limiting, a store failure here is reported to the caller:
    silently dropping an accepted message is worse than asking for a retry.

    Raises:
        StorageFailure if the store is unavailable
    """
    key = submission_key(submission.submitted_at)
    value = submission.model_dump_json(by_alias=True)

    if store is None:
        logging.warning(f"[DEV] Contact submission (no store configured): {key} {value}")
        return key

    try:
        store.put(key, value)
    except StoreUnavailable as e:
        logging.error(f"Failed to store contact submission {key}: {str(e)}", exc_info=True)
        raise StorageFailure() from e

    logging.info(f"Contact submission stored: {key}")
    return key
