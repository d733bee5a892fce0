"""
FastAPI router for the Twilio voice webhook.

Twilio posts every call-state transition of the callbox number to
``/index``: the initial ring, and again with ``Digits`` once <Gather>
collected a code (a denied code redirects back here).
"""

from __future__ import annotations

from typing import Annotated, Any

import anyio
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from callbox.call_router import CallRouter
from callbox.shared.logging import correlation_id_var, get_logger
from callbox.telephony.events import WebhookParseError, parse_call_event
from callbox.telephony.security import SIGNATURE_HEADER, TwilioRequestVerifier, WebhookAuthError
from callbox.telephony.twiml import TWIML_MEDIA_TYPE

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


def get_call_router(request: Request) -> CallRouter:
    return request.app.state.call_router


def get_request_verifier(request: Request) -> TwilioRequestVerifier:
    return request.app.state.request_verifier


async def _form_params(request: Request) -> dict[str, Any]:
    form = await request.form()
    return {key: str(value) for key, value in form.items()}


@router.post("/index", status_code=status.HTTP_200_OK)
async def index(
    request: Request,
    call_router: Annotated[CallRouter, Depends(get_call_router)],
    verifier: Annotated[TwilioRequestVerifier, Depends(get_request_verifier)],
) -> Response:
    """Answer a callbox call with the next TwiML document."""
    params = await _form_params(request)

    url = verifier.public_url(str(request.url), request.url.path, request.url.query)
    try:
        verifier.verify(url, params, request.headers.get(SIGNATURE_HEADER))
    except WebhookAuthError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e)) from e

    try:
        event = parse_call_event(params)
    except WebhookParseError as e:
        logger.warning(
            "Rejected malformed webhook",
            extra={"error_code": e.error_code, "payload_keys": sorted(params)},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": e.error_code, "message": str(e)},
        ) from e

    token = correlation_id_var.set(event.call_sid)
    try:
        logger.info(
            "Callbox call event",
            extra={"called": event.called, "phase": type(event.phase).__name__},
        )
        # Blocking: one Keyway request, plus a bounded Sentry flush on failure.
        twiml = await anyio.to_thread.run_sync(call_router.route, event)
    finally:
        correlation_id_var.reset(token)

    return Response(content=str(twiml), media_type=TWIML_MEDIA_TYPE)
