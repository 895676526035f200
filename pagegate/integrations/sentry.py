# =============================================================================
# Sentry Error Tracking
# =============================================================================
#
# The engine never raises on a store or session failure; it denies and
# reports the failure here. Without a DSN (or without sentry-sdk installed)
# reports go to the log instead.
#
# Setup:
#   pip install "pagegate[sentry]"
#   PAGEGATE_SENTRY_DSN=https://...@sentry.io/...
#
# The embedding application calls init_sentry() once at startup.
#
# =============================================================================

import logging

from pagegate.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Sentry SDK is optional - gracefully degrade if not installed
try:
    import sentry_sdk
    from sentry_sdk.integrations.logging import LoggingIntegration
    SENTRY_AVAILABLE = True
except ImportError:
    SENTRY_AVAILABLE = False
    sentry_sdk = None

# Never forwarded, in request headers or in extras
CREDENTIAL_KEYS = ("authorization", "cookie", "x-api-key", "token")


def init_sentry(settings: Settings | None = None) -> bool:
    """
    Initialize Sentry error tracking.

    Returns True if initialized, False if skipped.
    """
    if not SENTRY_AVAILABLE:
        logger.info("sentry-sdk not installed, failures are only logged")
        return False

    settings = settings or get_settings()
    if not settings.sentry_dsn:
        logger.info("PAGEGATE_SENTRY_DSN not set, failures are only logged")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        # Denials are logged at WARNING by the audit logger; only errors become events
        integrations=[LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
        send_default_pii=False,
        before_send=_scrub_credentials,
    )

    logger.info(f"Sentry reporting enabled ({settings.environment})")
    return True


def _scrub_credentials(event: dict, hint: dict) -> dict | None:
    headers = event.get("request", {}).get("headers", {})
    for key in list(headers):
        if key.lower() in CREDENTIAL_KEYS:
            headers[key] = "[Filtered]"

    extra = event.get("extra", {})
    for key in list(extra):
        if key.lower() in CREDENTIAL_KEYS:
            extra[key] = "[Filtered]"

    return event


def _client_active() -> bool:
    return SENTRY_AVAILABLE and sentry_sdk.get_client().is_active()


def capture_exception(error: Exception, **context) -> str | None:
    """
    Report a failure that was turned into a denial.

    ``stage`` in the context (session, role_and_teams, ...) becomes a tag;
    everything else is attached as extras. Returns the event ID if sent.
    """
    if not _client_active():
        logger.error(f"Fail-closed on {error!r} {context}", exc_info=error)
        return None

    with sentry_sdk.new_scope() as scope:
        stage = context.pop("stage", None)
        if stage:
            scope.set_tag("pagegate.stage", stage)
        for key, value in context.items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(error)


def set_user(user_id: str, email: str | None = None) -> None:
    """Attach the principal of the current context to later reports."""
    if _client_active():
        sentry_sdk.set_user({"id": user_id, "email": email})
