"""
HTTP client for the Keyway access-control service.

Uses httpx for HTTP requests. Calls are blocking; the webhook runs the call
router in a worker thread.
"""

from __future__ import annotations

import threading
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from callbox.config import CallboxConfig
from callbox.keyway.errors import (
    KeywayRequestError,
    KeywayUnavailableError,
    MalformedResponseError,
)
from callbox.keyway.models import AuthResult, TriggerResult, auth_result_adapter
from callbox.shared.logging import get_logger

logger = get_logger(__name__)

ACCESS_HEADER = "x-ad-access"
TRIGGER_PATH = "/callbox_trigger"
AUTH_PATH = "/callbox_auth"


class KeywayGateway(Protocol):
    """What the call router needs from the Keyway service."""

    def trigger(self, payload: dict[str, Any]) -> TriggerResult:
        ...

    def authorize(self, code: str) -> AuthResult:
        ...


class KeywayClient:
    """Client for the callbox endpoints of the Keyway service."""

    def __init__(
        self,
        config: CallboxConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._http_client = http_client
        self._owns_client = http_client is None
        # Requests run in worker threads; one client per instance.
        self._client_lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        with self._client_lock:
            if self._http_client is None:
                self._http_client = httpx.Client(
                    timeout=httpx.Timeout(self._config.request_timeout_seconds),
                )
            return self._http_client

    def close(self) -> None:
        with self._client_lock:
            if self._owns_client and self._http_client is not None:
                self._http_client.close()
                self._http_client = None

    def _post(self, path: str, body: dict[str, Any]) -> Any:
        """POST ``body`` as JSON and return the decoded JSON response.

        Raises:
            KeywayUnavailableError: Transport failure.
            KeywayRequestError: Non-success status code.
            MalformedResponseError: Body is not JSON.
        """
        url = self._config.get_service_url(path)
        try:
            response = self._get_client().post(
                url,
                json=body,
                headers={ACCESS_HEADER: self._config.api_key},
            )
        except httpx.RequestError as e:
            logger.error(
                "Keyway service unreachable",
                extra={"path": path, "error": str(e)},
            )
            raise KeywayUnavailableError(f"Keyway request failed: {e!s}") from e

        if not response.is_success:
            logger.error(
                "Keyway service returned an error",
                extra={
                    "path": path,
                    "status_code": response.status_code,
                    "reason": response.reason_phrase,
                },
            )
            raise KeywayRequestError(
                f"Keyway {path} failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Keyway {path} returned invalid JSON",
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    def trigger(self, payload: dict[str, Any]) -> TriggerResult:
        """Announce an incoming call and fetch the callbox configuration."""
        data = self._post(TRIGGER_PATH, payload)
        try:
            return TriggerResult.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Keyway {TRIGGER_PATH} returned an unexpected payload",
                response_body=data,
            ) from e

    def authorize(self, code: str) -> AuthResult:
        """Check an entered access code."""
        data = self._post(AUTH_PATH, {"code": code})
        try:
            return auth_result_adapter.validate_python(data)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Keyway {AUTH_PATH} returned an unexpected payload",
                response_body=data,
            ) from e

