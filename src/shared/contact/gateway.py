"""
Contact form gateway.

Stages run in a fixed order, each either raising a ContactError or
handing over to the next:

1. Parse body - reject malformed requests before any side effects
2. Verify Turnstile CAPTCHA - fail closed if the secret key is missing
3. Validate fields - required, types, lengths, email format
4. Rate limit - only validated, human-verified requests consume budget
5. Store the submission

Reaching step 5 implies every earlier check passed. All mutable state
lives in the key-value store, so requests never contend in-process.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional
from starlette.concurrency import run_in_threadpool

from src.shared.contact.captcha import TurnstileVerifier
from src.shared.contact.config import ContactSettings
from src.shared.contact.errors import (
    ContactError,
    MalformedRequest,
    RateLimitExceeded,
    RequestCancelled,
    StorageFailure,
)
from src.shared.contact.input_validation import validate_contact_fields
from src.shared.contact.origin_policy import get_cors_headers, get_preflight_headers
from src.shared.contact.rate_limit import RateLimitResult, check_rate_limit
from src.shared.contact.schemas import Submission
from src.shared.contact.storage import format_timestamp, store_submission
from src.shared.kv.store import SqlKeyValueStore

CAPTCHA_FIELD = "cf-turnstile-response"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_body(raw_body: bytes) -> Dict[str, Any]:
    """Decode the JSON request body; anything but a JSON object is malformed."""
    try:
        body = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        logging.info(f"Rejecting malformed contact request body: {str(e)}")
        raise MalformedRequest() from e
    if not isinstance(body, dict):
        raise MalformedRequest()
    return body


class ContactGateway:
    """Runs one contact submission through the verification pipeline."""

    def __init__(
        self,
        settings: ContactSettings,
        store: Optional[SqlKeyValueStore] = None,
        verifier: Optional[TurnstileVerifier] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings
        self.store = store
        self.verifier = verifier or TurnstileVerifier(settings)
        self.clock = clock

    def cors_headers(self, origin: Optional[str]) -> Dict[str, str]:
        return get_cors_headers(origin, self.settings)

    def preflight_headers(self, origin: Optional[str]) -> Dict[str, str]:
        return get_preflight_headers(origin, self.settings)

    async def submit(
        self,
        raw_body: bytes,
        client_ip: str,
        remote_ip: Optional[str] = None,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> RateLimitResult:
        """
        Process one submission.

        Args:
            raw_body: Raw request body bytes
            client_ip: Resolved client IP ("unknown" if none could be determined)
            remote_ip: Trusted client IP to forward to Turnstile, if any
            is_disconnected: Optional check for a dropped client, consulted before storing

        Returns:
            RateLimitResult of the accepted request

        Raises:
            ContactError subclass describing why the request was rejected
        """
        try:
            return await self._run_pipeline(raw_body, client_ip, remote_ip, is_disconnected)
        except ContactError:
            raise
        except Exception as e:
            logging.error(f"Contact form error: {str(e)}", exc_info=True)
            raise StorageFailure() from e

    async def _run_pipeline(self, raw_body, client_ip, remote_ip, is_disconnected) -> RateLimitResult:
        body = parse_body(raw_body)

        await self.verifier.verify(body.get(CAPTCHA_FIELD), remote_ip)

        name, email, message = validate_contact_fields(body, self.settings.max_lengths)

        now = self.clock()
        rate_limit = await run_in_threadpool(
            check_rate_limit,
            self.store,
            client_ip,
            now,
            self.settings.rate_limit_max_requests,
            self.settings.rate_limit_window_seconds,
        )
        if not rate_limit.allowed:
            raise RateLimitExceeded(
                retry_after=self.settings.rate_limit_window_seconds,
                limit=self.settings.rate_limit_max_requests,
            )

        if is_disconnected is not None and await is_disconnected():
            logging.info(f"Client {client_ip} disconnected before storage, dropping submission")
            raise RequestCancelled()

        submission = Submission(
            name=name,
            email=email,
            message=message,
            submitted_at=format_timestamp(now),
        )
        await run_in_threadpool(store_submission, self.store, submission)
        return rate_limit
