"""FastAPI integration."""

from pagegate.api.dependencies import (
    get_security_context,
    require_security,
)

__all__ = [
    "get_security_context",
    "require_security",
]
