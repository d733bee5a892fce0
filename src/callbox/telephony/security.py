"""
Authentication of inbound Twilio webhook requests.

Twilio signs every webhook with the account auth token (X-Twilio-Signature,
HMAC-SHA1 over the URL and the sorted POST parameters).
"""

from typing import Any

from twilio.request_validator import RequestValidator

from callbox.shared.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Twilio-Signature"


class WebhookAuthError(Exception):
    """The request was not sent by our Twilio account."""


class TwilioRequestVerifier:
    """Checks that a webhook request comes from the configured Twilio account."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        validate_signature: bool = True,
        public_base_url: str = "",
    ) -> None:
        self._account_sid = account_sid
        self._validator = RequestValidator(auth_token)
        self._validate_signature = validate_signature
        self._public_base_url = public_base_url.rstrip("/")

    def public_url(self, request_url: str, path: str, query: str = "") -> str:
        """URL Twilio used to reach us.

        Behind a proxy or tunnel the request URL seen here differs from the
        one Twilio signed, so PUBLIC_BASE_URL wins when it is configured.
        """
        if not self._public_base_url:
            return request_url
        url = f"{self._public_base_url}{path}"
        return f"{url}?{query}" if query else url

    def verify(self, url: str, params: dict[str, Any], signature: str | None) -> None:
        """Raise WebhookAuthError unless the request is authentic.

        Args:
            url: Full public URL of the request.
            params: Form parameters of the POST body.
            signature: X-Twilio-Signature header value.
        """
        account_sid = params.get("AccountSid")
        if account_sid != self._account_sid:
            logger.warning(
                "Webhook from unexpected Twilio account",
                extra={"account_sid": account_sid},
            )
            raise WebhookAuthError("AccountSid does not match this deployment")

        if not self._validate_signature:
            return

        if not signature:
            logger.warning("Webhook without Twilio signature", extra={"url": url})
            raise WebhookAuthError("Missing X-Twilio-Signature header")

        if not self._validator.validate(url, params, signature):
            logger.warning("Invalid Twilio signature", extra={"url": url})
            raise WebhookAuthError("Invalid X-Twilio-Signature")
