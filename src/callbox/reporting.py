"""
Error reporting to Sentry.

Every report is flushed before returning, bounded by
SENTRY_FLUSH_TIMEOUT_SECONDS (never more than 2 seconds).
"""

from typing import Any, Literal, Protocol

import sentry_sdk

from callbox import __version__
from callbox.config import Settings
from callbox.shared.logging import get_logger

logger = get_logger(__name__)

ReportLevel = Literal["fatal", "error", "warning"]

DEFAULT_FLUSH_TIMEOUT_SECONDS = 2.0


class ErrorReporter(Protocol):
    """Observability sink used by the call router."""

    def report(
        self,
        error: BaseException,
        *,
        level: ReportLevel,
        extra: dict[str, Any],
    ) -> None:
        ...


def init_sentry(settings: Settings) -> bool:
    """Initialise the Sentry SDK. Returns False when no DSN is configured."""
    if not settings.sentry_dsn:
        logger.warning("SENTRY_DSN not set; error reporting disabled")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        release=f"{settings.app_name}@{__version__}",
        send_default_pii=False,
    )
    logger.info("Sentry initialised", extra={"environment": settings.app_env})
    return True


class SentryReporter:
    """Captures exceptions in Sentry and waits (bounded) for delivery."""

    def __init__(self, flush_timeout: float = DEFAULT_FLUSH_TIMEOUT_SECONDS) -> None:
        self._flush_timeout = min(flush_timeout, DEFAULT_FLUSH_TIMEOUT_SECONDS)

    @property
    def flush_timeout(self) -> float:
        return self._flush_timeout

    def report(
        self,
        error: BaseException,
        *,
        level: ReportLevel,
        extra: dict[str, Any],
    ) -> None:
        log = logger.critical if level == "fatal" else logger.error
        log(
            "Reporting callbox failure",
            exc_info=error,
            extra={"report_level": level, "error_type": type(error).__name__},
        )

        sentry_sdk.capture_exception(error, level=level, extras=extra)
        sentry_sdk.flush(timeout=self._flush_timeout)
