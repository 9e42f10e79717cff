"""Cloudflare Turnstile verification for contact form submissions."""

import logging
from typing import Optional
import httpx

from src.shared.contact.config import ContactSettings
from src.shared.contact.errors import (
    MissingCaptchaToken,
    CaptchaVerificationFailed,
    CaptchaServiceUnavailable,
    ServerMisconfigured,
)


class TurnstileVerifier:
    """
    Redeems a client-supplied Turnstile token against the siteverify API.

    Fails closed: without a secret key every request is rejected unless
    the SKIP_CAPTCHA development override is set.
    """

    def __init__(self, settings: ContactSettings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http_client = http_client

    async def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> None:
        """
        Verify a Turnstile token.

        Args:
            token: Value of the 'cf-turnstile-response' body field
            remote_ip: Caller's IP, forwarded to Cloudflare when known

        Raises:
            MissingCaptchaToken: no token was submitted (no network call is made)
            ServerMisconfigured: no secret key and no development override
            CaptchaVerificationFailed: Cloudflare rejected the token
            CaptchaServiceUnavailable: Cloudflare could not be reached
        """
        if not token:
            raise MissingCaptchaToken()

        if not self.settings.turnstile_secret_key:
            if self.settings.skip_captcha:
                logging.warning("[DEV] Turnstile verification skipped - SKIP_CAPTCHA=true")
                return
            logging.error("TURNSTILE_SECRET_KEY not configured - rejecting request")
            raise ServerMisconfigured()

        payload = {
            "secret": self.settings.turnstile_secret_key,
            "response": token,
        }
        if remote_ip:
            payload["remoteip"] = remote_ip

        result = await self._post(payload)

        if not isinstance(result, dict) or result.get("success") is not True:
            error_codes = result.get("error-codes") if isinstance(result, dict) else None
            logging.error(f"Turnstile verification failed: {error_codes}")
            raise CaptchaVerificationFailed()

    async def _post(self, payload: dict):
        """POST to siteverify and return the decoded JSON body."""
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self.settings.turnstile_verify_url,
                    json=payload,
                    timeout=self.settings.turnstile_timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(timeout=self.settings.turnstile_timeout_seconds) as client:
                    response = await client.post(self.settings.turnstile_verify_url, json=payload)

            if response.status_code >= 500:
                raise httpx.HTTPStatusError(
                    f"siteverify returned {response.status_code}",
                    request=response.request,
                    response=response,
                )
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            # Timeouts, connection errors, 5xx and undecodable bodies all mean "try again"
            logging.error(f"Turnstile verification error: {str(e)}")
            raise CaptchaServiceUnavailable() from e
