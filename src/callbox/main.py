"""
FastAPI application entry point.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from callbox import __version__
from callbox.call_router import CallRouter
from callbox.config import Settings, config_from_settings, get_settings
from callbox.keyway.client import KeywayClient
from callbox.reporting import SentryReporter, init_sentry
from callbox.shared.logging import get_logger, setup_logging
from callbox.telephony.security import TwilioRequestVerifier
from callbox.webhooks.router import router as webhooks_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    init_sentry(settings)

    logger.info(
        "Application starting",
        extra={
            "env": settings.app_env,
            "keyway_service_url": settings.keyway_service_url,
            "signature_validation": settings.twilio_validate_signature,
        },
    )

    yield

    logger.info("Shutting down application")
    app.state.keyway_client.close()
    logger.info("Application shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    config = config_from_settings(settings)

    app = FastAPI(
        title="Keyway Callbox",
        description="Twilio voice webhook for the building callbox",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    keyway_client = KeywayClient(config)
    app.state.settings = settings
    app.state.keyway_client = keyway_client
    app.state.call_router = CallRouter(
        config=config,
        keyway=keyway_client,
        reporter=SentryReporter(flush_timeout=settings.sentry_flush_timeout_seconds),
    )
    app.state.request_verifier = TwilioRequestVerifier(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        validate_signature=settings.twilio_validate_signature,
        public_base_url=settings.public_base_url,
    )

    app.include_router(webhooks_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


def main() -> None:
    import uvicorn  # pylint: disable=g-import-not-at-top

    uvicorn.run(
        "callbox.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8080,
    )


if __name__ == "__main__":
    main()
