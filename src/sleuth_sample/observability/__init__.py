"""
sleuth_sample.observability

Observability package.

Responsibilities:
- Structured logging configuration with trace/span correlation.
- Request boundary middleware that installs the trace context per request.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Span exporters could hang off `observability.middleware` without touching routers.
