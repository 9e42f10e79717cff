"""Contact routes: the public contact form endpoint and its CORS preflight."""

import logging
from functools import lru_cache
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response

from src.shared.contact.config import ContactSettings
from src.shared.contact.errors import ContactError, RateLimitExceeded
from src.shared.contact.gateway import ContactGateway
from src.shared.contact.schemas import ContactResponse, ContactErrorResponse
from src.shared.kv.database import init_db, session_factory_from_env
from src.shared.kv.store import SqlKeyValueStore

router = APIRouter(prefix="/api", tags=["contact"])


@lru_cache
def get_contact_settings() -> ContactSettings:
    """Settings read once from the environment."""
    return ContactSettings.from_env()


@lru_cache
def get_contact_gateway() -> ContactGateway:
    """
    Dependency providing the process-wide gateway.
    Runs without a store (development mode) when DATABASE_URL is not set.
    If the database is down now, the store creates its tables once it is back.
    """
    store = None
    session_factory = session_factory_from_env()
    if session_factory is not None:
        store = SqlKeyValueStore(session_factory, schema_ready=init_db(session_factory))
    else:
        logging.warning("DATABASE_URL not set - contact submissions will only be logged")
    return ContactGateway(get_contact_settings(), store=store)


def get_client_ip(request: Request) -> str:
    """Get client IP address for rate limiting."""
    connecting_ip = request.headers.get("CF-Connecting-IP")
    if connecting_ip:
        return connecting_ip
    # Check for forwarded IP (from proxy/load balancer)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return "unknown"


def get_verified_ip(request: Request) -> Optional[str]:
    """IP set by Cloudflare, the only one trusted enough to forward to Turnstile."""
    return request.headers.get("CF-Connecting-IP") or None


def build_error_response(exc: ContactError, cors_headers: dict) -> JSONResponse:
    """Convert a pipeline error into the public failure body."""
    content = ContactErrorResponse(
        error=exc.detail,
        retry_after=exc.retry_after if isinstance(exc, RateLimitExceeded) else None,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=content.model_dump(by_alias=True, exclude_none=True),
        headers={**cors_headers, **(exc.headers or {})},
    )


@router.options("/contact", status_code=status.HTTP_204_NO_CONTENT)
async def contact_preflight(
    request: Request,
    gateway: ContactGateway = Depends(get_contact_gateway)
):
    """CORS preflight handler for the contact form endpoint."""
    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers=gateway.preflight_headers(request.headers.get("origin")),
    )


@router.post("/contact", response_model=ContactResponse)
async def submit_contact_form(
    request: Request,
    gateway: ContactGateway = Depends(get_contact_gateway)
):
    """
    Accept a contact form submission.

    Error responses:
    - 400: malformed body, missing/failed CAPTCHA or validation error
    - 429: rate limit exceeded
    - 503: CAPTCHA service unavailable or server misconfigured
    - 500: submission could not be stored
    """
    cors_headers = gateway.cors_headers(request.headers.get("origin"))

    try:
        rate_limit = await gateway.submit(
            await request.body(),
            get_client_ip(request),
            remote_ip=get_verified_ip(request),
            is_disconnected=request.is_disconnected,
        )
    except ContactError as e:
        return build_error_response(e, cors_headers)

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=ContactResponse().model_dump(),
        headers={
            **cors_headers,
            "X-RateLimit-Limit": str(gateway.settings.rate_limit_max_requests),
            "X-RateLimit-Remaining": str(rate_limit.remaining),
        },
    )
