"""
Foundation API Backend — Sentry Initialization
================================================

What:  Starts the Sentry SDK when SENTRY_DSN is configured.
When:  Once, from the application lifespan.

Only the global exception filter reports events explicitly (5xx only);
the SDK's own FastAPI integration is left on for tracing context. Request
bodies and headers are never sent by the SDK (send_default_pii=False); the
filter attaches redacted copies instead.
"""

import logging

import sentry_sdk

from app import __version__
from app.config import settings

logger = logging.getLogger(__name__)


def init_sentry() -> bool:
    """Returns True when the SDK was initialized."""
    if not settings.sentry_enabled:
        logger.info("Sentry disabled (SENTRY_DSN not set)")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        release=f"{settings.app_name}@{__version__}",
        send_default_pii=False,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
    )
    logger.info("Sentry initialized for environment %s", settings.sentry_environment)
    return True
