"""Origin allow-list and CORS headers for the contact endpoint."""

from typing import Dict, Optional
from urllib.parse import urlsplit

from src.shared.contact.config import ContactSettings


def is_allowed_origin(origin: Optional[str], production_domain: str) -> bool:
    """
    Check whether an Origin header value may call the contact endpoint.

    Permits:
        - http://localhost (any port)
        - https://<production_domain> and any of its subdomains
        - https://*.pages.dev (preview deployments)

    Missing or malformed origins are never allowed.
    """
    if not origin:
        return False
    try:
        parts = urlsplit(origin)
        hostname = parts.hostname
        parts.port  # Raises ValueError on a malformed port
    except ValueError:
        return False
    if not hostname:
        return False

    if parts.scheme == "http" and hostname == "localhost":
        return True
    if parts.scheme != "https":
        return False
    if hostname == production_domain or hostname.endswith("." + production_domain):
        return True
    return hostname.endswith(".pages.dev")


def resolve_origin(origin: Optional[str], settings: ContactSettings) -> str:
    """Echo an allowed origin back verbatim, otherwise the production origin (never '*')."""
    if is_allowed_origin(origin, settings.production_domain):
        return origin
    return settings.default_origin


def get_cors_headers(origin: Optional[str], settings: ContactSettings) -> Dict[str, str]:
    """
    Headers attached to every JSON response from the endpoint.

    Vary: Origin keeps CDN caches from mixing up responses for
    different origins.
    """
    return {
        "Access-Control-Allow-Origin": resolve_origin(origin, settings),
        "Content-Type": "application/json",
        "Vary": "Origin",
    }


def get_preflight_headers(origin: Optional[str], settings: ContactSettings) -> Dict[str, str]:
    """Headers for the OPTIONS preflight response."""
    return {
        "Access-Control-Allow-Origin": resolve_origin(origin, settings),
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Max-Age": "86400",
        "Vary": "Origin",
    }
