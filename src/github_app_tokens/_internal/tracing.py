"""OpenTelemetry tracing helpers.

Tracing is opt-in via the ``tracer`` argument of ``GitHubAppContext``.
Without a tracer every helper is a no-op and ``opentelemetry`` is never
imported.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer


# Span name constants
SPAN_GET_TOKEN = "github_app_tokens.get_token"
SPAN_RESOLVE_INSTALLATION = "github_app_tokens.resolve_installation"
SPAN_MINT_TOKEN = "github_app_tokens.mint_token"
SPAN_LIST_INSTALLATIONS = "github_app_tokens.list_installations"


class TracingContext:
    """Creates spans when a tracer is configured and does nothing otherwise."""

    def __init__(self, tracer: "Tracer | None") -> None:
        self._tracer = tracer

    @contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator["Span | None"]:
        """Create a span if tracing is enabled.

        Args:
            name: Span name (e.g., "github_app_tokens.mint_token")
            attributes: Optional span attributes

        Yields:
            Span object if tracing is enabled, None otherwise
        """
        if self._tracer is None:
            yield None
            return

        span = self._tracer.start_span(name, attributes=attributes)
        try:
            yield span
        except Exception as e:
            record_exception(span, e)
            raise
        finally:
            span.end()


def set_span_attributes(span: "Span | None", attributes: dict[str, Any]) -> None:
    """Set attributes on a span if it exists, skipping None values."""
    if span is None:
        return
    for key, value in attributes.items():
        if value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            span.set_attribute(key, value)
        else:
            span.set_attribute(key, str(value))


def record_exception(span: "Span | None", exception: Exception) -> None:
    """Record an exception on a span and mark it as failed."""
    if span is None:
        return
    span.record_exception(exception)
    try:
        from opentelemetry.trace import Status, StatusCode
        span.set_status(Status(StatusCode.ERROR, str(exception)))
    except ImportError:
        pass
