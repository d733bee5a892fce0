"""
Call routing for the callbox.

Two request-scoped states, nothing persisted between requests:

    INITIAL --(digits entered)--> AUTHENTICATING --(granted)--> UNLOCKED
                                                 --(denied)---> INITIAL (redirect)
    INITIAL --(Keyway failure)--> FALLBACK (dial fallback number)

Each request makes at most one call to the Keyway service and never retries.
Any Keyway failure is reported and degrades to dialing the fallback number.
"""

from __future__ import annotations

from typing import Any

from twilio.twiml.voice_response import VoiceResponse

from callbox.config import CallboxConfig
from callbox.keyway.client import KeywayGateway
from callbox.keyway.errors import KeywayServiceError
from callbox.keyway.models import AuthDenied, AuthGranted
from callbox.reporting import ErrorReporter, ReportLevel
from callbox.shared.logging import get_logger
from callbox.telephony.events import AwaitingCode, CallEvent, CodeEntered
from callbox.telephony.twiml import dial_fallback, say, unlock

logger = get_logger(__name__)

ENTER_CODE_PROMPT = "Enter an access code, or wait to be connected."
AUTH_UNAVAILABLE_MESSAGE = "Sorry, that code could not be checked."
GENERIC_WELCOME = "Welcome in"

# Seconds to wait for digits; longer while single-use (guest) codes exist.
SINGLE_USE_GATHER_TIMEOUT = 20
DEFAULT_GATHER_TIMEOUT = 10


class CallRouter:
    """Produces the next TwiML document for an inbound callbox call."""

    def __init__(
        self,
        config: CallboxConfig,
        keyway: KeywayGateway,
        reporter: ErrorReporter,
    ) -> None:
        self._config = config
        self._keyway = keyway
        self._reporter = reporter

    def route(self, event: CallEvent) -> VoiceResponse:
        """Dispatch on the call phase."""
        match event.phase:
            case AwaitingCode() as phase:
                return self.trigger_initial_call(phase)
            case CodeEntered() as phase:
                return self.verify_authorization(phase)
            case other:
                raise TypeError(f"Unhandled call phase: {other!r}")

    def trigger_initial_call(self, phase: AwaitingCode) -> VoiceResponse:
        """Handle a new call: prompt for a code, then forward to the owner."""
        event = phase.event
        response = VoiceResponse()

        try:
            result = self._keyway.trigger(event.raw_payload)
            target = result.forwarding_target_for(event.called)
        except KeywayServiceError as e:
            self._report(e, level="fatal", event=event)
            dial_fallback(response, self._config)
            return response

        timeout = (
            SINGLE_USE_GATHER_TIMEOUT
            if result.has_single_use_codes
            else DEFAULT_GATHER_TIMEOUT
        )
        gather = response.gather(
            num_digits=result.num_digits,
            timeout=timeout,
            input="dtmf",
        )
        say(gather, ENTER_CODE_PROMPT)

        # Reached only when no digits are entered before the timeout.
        response.dial(target.number)

        logger.info(
            "Prompting for access code",
            extra={
                "called": event.called,
                "num_digits": result.num_digits,
                "gather_timeout": timeout,
                "forward_to": target.name,
                "num_registered_codes": result.num_registered_codes,
            },
        )
        return response

    def verify_authorization(self, phase: CodeEntered) -> VoiceResponse:
        """Handle an entered access code: unlock or re-prompt."""
        event = phase.event
        response = VoiceResponse()

        try:
            result = self._keyway.authorize(phase.digits)
        except KeywayServiceError as e:
            self._report(e, level="error", event=event)
            say(response, AUTH_UNAVAILABLE_MESSAGE)
            dial_fallback(response, self._config)
            return response

        match result:
            case AuthDenied():
                logger.info("Access code denied", extra={"called": event.called})
                say(response, f"Sorry, {phase.spoken_digits} is invalid.")
                response.redirect(self._config.entry_path)

            case AuthGranted(is_single_use=True):
                logger.info("Single-use access code granted", extra={"called": event.called})
                say(
                    response,
                    f"Valid access code. Apartment {self._config.spoken_unit} "
                    f"is on floor {self._config.floor}.",
                )
                unlock(response, self._config)

            case AuthGranted():
                logger.info(
                    "Access code granted",
                    extra={
                        "called": event.called,
                        "visit_number": result.visit_number,
                        "last_visit": result.last_visit,
                    },
                )
                greeting = GENERIC_WELCOME if result.name is None else f"Welcome {result.name}"
                say(response, greeting)
                if result.is_first_visit:
                    say(
                        response,
                        f"Find apartment {self._config.spoken_unit} "
                        f"on floor {self._config.floor}.",
                    )
                unlock(response, self._config)

        return response

    def _report(self, error: KeywayServiceError, *, level: ReportLevel, event: CallEvent) -> None:
        # Entered access codes stay out of error reports.
        payload = {k: v for k, v in event.raw_payload.items() if k != "Digits"}
        extra: dict[str, Any] = {
            "error": str(error),
            "status_code": error.status_code,
            **payload,
        }
        self._reporter.report(error, level=level, extra=extra)
