"""Configuration for the contact form gateway."""

import os
from typing import Dict, Optional
from dotenv import load_dotenv

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
DEFAULT_PRODUCTION_DOMAIN = "twistan.com"

# Maximum lengths for submitted fields
DEFAULT_MAX_LENGTHS = {
    "name": 100,
    "email": 254,
    "message": 5000,
}


class ContactSettings:
    """
    Settings handed to the gateway when it is constructed.

    Nothing here is mutated after construction, so several configurations
    can be used side by side (e.g. in tests).
    """

    def __init__(
        self,
        turnstile_secret_key: Optional[str] = None,
        skip_captcha: bool = False,
        turnstile_verify_url: str = TURNSTILE_VERIFY_URL,
        turnstile_timeout_seconds: float = 10.0,
        rate_limit_max_requests: int = 5,
        rate_limit_window_seconds: int = 3600,
        production_domain: str = DEFAULT_PRODUCTION_DOMAIN,
        default_origin: Optional[str] = None,
        max_lengths: Optional[Dict[str, int]] = None,
    ):
        if rate_limit_window_seconds <= 0:
            raise ValueError(f"rate_limit_window_seconds must be positive, got {rate_limit_window_seconds}")
        if rate_limit_max_requests < 1:
            raise ValueError(f"rate_limit_max_requests must be at least 1, got {rate_limit_max_requests}")
        if turnstile_timeout_seconds <= 0:
            raise ValueError(f"turnstile_timeout_seconds must be positive, got {turnstile_timeout_seconds}")

        self.turnstile_secret_key = turnstile_secret_key or None
        self.skip_captcha = skip_captcha
        self.turnstile_verify_url = turnstile_verify_url
        self.turnstile_timeout_seconds = turnstile_timeout_seconds
        self.rate_limit_max_requests = rate_limit_max_requests
        self.rate_limit_window_seconds = rate_limit_window_seconds
        self.production_domain = production_domain.lower()
        self.default_origin = default_origin or f"https://{self.production_domain}"
        self.max_lengths = dict(max_lengths or DEFAULT_MAX_LENGTHS)

    @classmethod
    def from_env(cls) -> "ContactSettings":
        """Build settings from environment variables (and a local .env file)."""
        load_dotenv()
        production_domain = os.environ.get("CONTACT_PRODUCTION_DOMAIN", DEFAULT_PRODUCTION_DOMAIN)
        return cls(
            turnstile_secret_key=os.environ.get("TURNSTILE_SECRET_KEY"),
            # Only the exact string "true" enables the bypass
            skip_captcha=os.environ.get("SKIP_CAPTCHA") == "true",
            turnstile_verify_url=os.environ.get("TURNSTILE_VERIFY_URL", TURNSTILE_VERIFY_URL),
            turnstile_timeout_seconds=float(os.environ.get("TURNSTILE_TIMEOUT_SECONDS", "10")),
            rate_limit_max_requests=int(os.environ.get("CONTACT_RATE_LIMIT_MAX_REQUESTS", "5")),
            rate_limit_window_seconds=int(os.environ.get("CONTACT_RATE_LIMIT_WINDOW_SECONDS", "3600")),
            production_domain=production_domain,
            default_origin=os.environ.get("CONTACT_DEFAULT_ORIGIN"),
        )
