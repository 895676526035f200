"""
Verdict translation for the presentation layer.

The engine only produces verdicts. Showing a message or navigating is
the caller's job; these tables tell it what to show and where to go.
"""

from __future__ import annotations

from pagegate.config import get_settings
from pagegate.security.results import DeniedReason, SecurityCheckResult


ERROR_MESSAGES: dict[DeniedReason, str] = {
    DeniedReason.NOT_AUTHENTICATED: "Please sign in to continue.",
    DeniedReason.INSUFFICIENT_ROLE: "Your account type does not have access to this feature.",
    DeniedReason.INSUFFICIENT_PERMISSIONS: "You do not have permission to perform this action.",
    DeniedReason.NOT_OWNER: "You do not have permission to access this resource.",
    DeniedReason.RESOURCE_NOT_FOUND: "This resource does not exist or you do not have access to it.",
}

DEFAULT_ERROR_MESSAGE = "Access denied."


def get_error_message(result: SecurityCheckResult) -> str:
    """Human-readable explanation of a denial. Empty for allowed results."""
    if result.allowed:
        return ""
    return ERROR_MESSAGES.get(result.denied_reason, DEFAULT_ERROR_MESSAGE)


def get_redirect_path(result: SecurityCheckResult, fallback: str | None = None) -> str:
    """
    Where to send the user after a denial.

    Unauthenticated users go to the sign-in route; every other denial
    goes to ``fallback`` (the settings' default redirect if not given).
    Allowed results are not translated and get ``fallback`` back.
    """
    settings = get_settings()
    fallback = fallback or settings.default_redirect_path

    if result.allowed:
        return fallback

    if result.denied_reason == DeniedReason.NOT_AUTHENTICATED:
        return settings.sign_in_path

    return fallback
