"""Utility functions and decorators for distributed tracing"""
import asyncio
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

# Keyword arguments never copied onto spans
REDACTED_ARGS = frozenset({"envelope", "scanned_text", "token", "secret", "signature"})


def _set_argument_attributes(span: trace.Span, kwargs: dict[str, Any]) -> None:
    for key, value in kwargs.items():
        if key.startswith("_") or key in REDACTED_ARGS:
            continue
        if value is None or isinstance(value, (str, int, float, bool)):
            span.set_attribute(f"arg.{key}", "" if value is None else value)


def traced(operation_name: str | None = None, attributes: dict[str, Any] | None = None):
    """
    Decorator to create a span for a function

    Usage:
        @traced("credential.verify")
        async def verify(self, envelope: str, scanner_location: str): ...

    Credential material passed as keyword arguments is never recorded.
    """

    def decorator(func: Callable) -> Callable:
        span_name = operation_name or f"{func.__module__}.{func.__name__}"

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            tracer = trace.get_tracer(__name__)
            with tracer.start_as_current_span(span_name) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                _set_argument_attributes(span, kwargs)
                try:
                    result = await func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, type(e).__name__))
                    span.record_exception(e)
                    raise

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            tracer = trace.get_tracer(__name__)
            with tracer.start_as_current_span(span_name) as span:
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, value)
                _set_argument_attributes(span, kwargs)
                try:
                    result = func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, type(e).__name__))
                    span.record_exception(e)
                    raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def add_span_attributes(**attributes):
    """
    Add attributes to the current span

    Usage:
        add_span_attributes(granted=True, denial_reason="expired")
    """
    span = trace.get_current_span()
    if span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)
