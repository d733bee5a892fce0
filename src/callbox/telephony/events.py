"""
Inbound call events.

Twilio posts the same webhook for a new call and for the follow-up request
after ``<Gather>`` collected digits. Which of the two a request is depends
only on whether ``Digits`` is present, so the event exposes it as a phase.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, Field

from callbox.shared.logging import get_logger

logger = get_logger(__name__)


class WebhookParseError(Exception):
    """Error parsing an inbound Twilio webhook payload."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.payload = payload or {}


class CallEvent(BaseModel):
    """A call-state transition reported by Twilio."""

    caller: str = Field(..., description="Number the visitor called from")
    called: str = Field(..., description="Callbox number that was called")
    digits: str | None = Field(
        default=None,
        description="Access code entered during <Gather>, if any",
    )
    call_sid: str | None = Field(default=None, description="Twilio CallSid")
    account_sid: str | None = Field(default=None, description="Twilio AccountSid")
    raw_payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Form parameters exactly as Twilio sent them",
    )

    model_config = {"frozen": True}

    @property
    def phase(self) -> CallPhase:
        if self.digits:
            return CodeEntered(event=self, digits=self.digits)
        return AwaitingCode(event=self)


@dataclass(frozen=True)
class AwaitingCode:
    """A new call: no access code has been entered yet."""

    event: CallEvent


@dataclass(frozen=True)
class CodeEntered:
    """The visitor entered an access code."""

    event: CallEvent
    digits: str

    @property
    def spoken_digits(self) -> str:
        """Digits separated by dashes so they are read one by one."""
        return "-".join(self.digits)


CallPhase = Union[AwaitingCode, CodeEntered]


def parse_call_event(payload: dict[str, Any]) -> CallEvent:
    """Build a CallEvent from Twilio's form parameters.

    Raises:
        WebhookParseError: ``Caller`` or ``Called`` is missing.
    """
    for required in ("Caller", "Called"):
        if not payload.get(required):
            raise WebhookParseError(
                message=f"Missing {required} in webhook payload",
                error_code=f"MISSING_{required.upper()}",
                payload=payload,
            )

    digits = (payload.get("Digits") or "").strip() or None

    event = CallEvent(
        caller=payload["Caller"],
        called=payload["Called"],
        digits=digits,
        call_sid=payload.get("CallSid"),
        account_sid=payload.get("AccountSid"),
        raw_payload=dict(payload),
    )
    logger.debug(
        "Parsed call event",
        extra={"called": event.called, "has_digits": digits is not None},
    )
    return event
