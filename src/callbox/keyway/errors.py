"""Errors raised while talking to the Keyway access-control service."""

from typing import Any


class KeywayServiceError(Exception):
    """Base exception for Keyway service errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class KeywayRequestError(KeywayServiceError):
    """The service answered with a non-success HTTP status."""


class KeywayUnavailableError(KeywayServiceError):
    """The service could not be reached (connection error, timeout)."""


class MalformedResponseError(KeywayServiceError):
    """The service answered with a body that is not the expected JSON shape."""


class UnknownCalledNumberError(KeywayServiceError):
    """The trigger response has no forwarding target for the called number."""

    def __init__(self, called: str) -> None:
        super().__init__(f"No forwarding target configured for {called}")
        self.called = called
