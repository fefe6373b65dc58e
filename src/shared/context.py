"""
Request context management using contextvars.

Provides async-safe storage for request-scoped scanner data
(client address, user agent, correlation id) so the audit log can
record where a scan came from without threading it through every call.

Usage:
    # In middleware:
    set_scanner_context(ip_address="10.0.0.7", user_agent="Scanner/1.0")

    # Anywhere downstream:
    context = get_scanner_context()

    # Context is automatically reset per request due to contextvars
"""

from contextvars import ContextVar
from dataclasses import dataclass

_current_ip_address: ContextVar[str | None] = ContextVar("current_ip_address", default=None)
_current_user_agent: ContextVar[str | None] = ContextVar("current_user_agent", default=None)
_current_correlation_id: ContextVar[str | None] = ContextVar(
    "current_correlation_id", default=None
)

@dataclass(frozen=True)
class ScannerContext:
    """Immutable snapshot of the current scanner context."""

    ip_address: str | None = None
    user_agent: str | None = None
    correlation_id: str | None = None

def set_scanner_context(
    ip_address: str | None = None,
    user_agent: str | None = None,
    correlation_id: str | None = None,
) -> None:
    """Set the scanner context for this request."""
    _current_ip_address.set(ip_address)
    _current_user_agent.set(user_agent)
    _current_correlation_id.set(correlation_id)

def clear_scanner_context() -> None:
    """Clear the scanner context."""
    set_scanner_context(None, None, None)

def get_scanner_context() -> ScannerContext:
    """Get a snapshot of the current scanner context."""
    return ScannerContext(
        ip_address=_current_ip_address.get(),
        user_agent=_current_user_agent.get(),
        correlation_id=_current_correlation_id.get(),
    )
