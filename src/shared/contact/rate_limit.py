"""Per-IP rate limiting for contact submissions using fixed UTC time buckets."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.shared.kv.store import SqlKeyValueStore, StoreUnavailable

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RateLimitResult:
    """Outcome of a rate limit check."""
    def __init__(self, allowed: bool, remaining: int):
        self.allowed = allowed
        self.remaining = remaining


def bucket_timestamp(now: datetime, window_seconds: int) -> int:
    """
    Start of the window containing `now`, in epoch milliseconds.
    Windows are aligned to the UTC epoch, so 3600s windows start on UTC hours.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    epoch_ms = (now - EPOCH) // timedelta(milliseconds=1)
    window_ms = window_seconds * 1000
    return (epoch_ms // window_ms) * window_ms


def rate_limit_key(ip_address: str, hour_timestamp: int) -> str:
    return f"ratelimit_{ip_address}_{hour_timestamp}"


def check_rate_limit(
    store: Optional[SqlKeyValueStore],
    ip_address: str,
    now: datetime,
    max_requests: int,
    window_seconds: int,
) -> RateLimitResult:
    """
    Check and count a submission against the client's current bucket.
    Keys expire after one window via the store TTL; expired rows are
    purged on each check.

    The read-then-write increment is not atomic: concurrent requests from
    one IP in one bucket can both read the same count. Reaching this stage
    requires passing CAPTCHA, so the undercount is accepted.

    Args:
        store: Key-value store, or None when running without one
        ip_address: Client IP address
        now: Current time (aware or naive UTC)
        max_requests: Submissions allowed per bucket
        window_seconds: Bucket width, also used as the key TTL

    Returns:
        RateLimitResult; not allowed means the bucket is full and was left untouched
    """
    if store is None:
        return RateLimitResult(allowed=True, remaining=max_requests)

    # Clean up expired buckets so the table does not grow with uptime
    try:
        store.purge_expired()
    except StoreUnavailable as e:
        logging.warning(f"Failed to cleanup expired rate limit entries: {str(e)}")

    key = rate_limit_key(ip_address, bucket_timestamp(now, window_seconds))

    # Fail open on store outages: keeping the contact channel available matters
    # more than strict enforcement. Submission storage deliberately fails closed.
    try:
        raw_count = store.get(key)
    except StoreUnavailable as e:
        logging.warning(f"Rate limit store unavailable, allowing request: {str(e)}")
        return RateLimitResult(allowed=True, remaining=max_requests)

    try:
        current_count = int(raw_count or "0")
    except ValueError:
        logging.warning(f"Ignoring unparseable rate limit count for {key}: {raw_count!r}")
        current_count = 0

    if current_count >= max_requests:
        return RateLimitResult(allowed=False, remaining=0)

    try:
        store.put(key, str(current_count + 1), expiration_ttl=window_seconds)
    except StoreUnavailable as e:
        logging.warning(f"Failed to record rate limit, allowing request: {str(e)}")

    return RateLimitResult(allowed=True, remaining=max_requests - current_count - 1)
