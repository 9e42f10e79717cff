"""Key-value store with per-entry expiry, backed by SQLAlchemy."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from src.shared.kv.database import KVEntry, init_db


class StoreUnavailable(Exception):
    """Raised when the backing database cannot be reached or written."""


def _utcnow() -> datetime:
    # Naive UTC, matching how DateTime columns are stored
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SqlKeyValueStore:
    """
    Minimal get/put store.

    Values are opaque strings. Entries written with an expiration TTL
    stop being visible once it elapses; physical removal happens in
    purge_expired().

    Until table creation has succeeded, every call retries it first, so a
    database that was unreachable at startup is picked up once it returns.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], datetime] = _utcnow,
        schema_ready: bool = False,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._schema_ready = schema_ready

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        if not init_db(self._session_factory):
            raise StoreUnavailable("Key-value tables could not be created")
        self._schema_ready = True

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if missing or expired."""
        self._ensure_schema()
        db = self._session_factory()
        try:
            entry = db.query(KVEntry).filter(KVEntry.key == key).first()
            if entry is None:
                return None
            if entry.expires_at is not None and entry.expires_at <= self._clock():
                return None
            return entry.value
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Failed to read key {key!r}: {str(e)}") from e
        finally:
            db.close()

    def put(self, key: str, value: str, expiration_ttl: Optional[int] = None) -> None:
        """
        Write value under key, replacing any previous value.

        Args:
            key: Entry key
            value: Opaque string value
            expiration_ttl: Seconds until the entry expires (None for never)
        """
        self._ensure_schema()
        now = self._clock()
        expires_at = now + timedelta(seconds=expiration_ttl) if expiration_ttl else None
        db = self._session_factory()
        try:
            db.merge(KVEntry(key=key, value=value, created_at=now, expires_at=expires_at))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailable(f"Failed to write key {key!r}: {str(e)}") from e
        finally:
            db.close()

    def purge_expired(self) -> int:
        """Delete expired entries. Returns the number of rows removed."""
        self._ensure_schema()
        db = self._session_factory()
        try:
            removed = db.query(KVEntry).filter(
                KVEntry.expires_at.isnot(None),
                KVEntry.expires_at <= self._clock()
            ).delete(synchronize_session=False)
            db.commit()
            return removed
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailable(f"Failed to purge expired entries: {str(e)}") from e
        finally:
            db.close()
