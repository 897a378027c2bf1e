"""
sleuth_sample.api

API package for the Sleuth sample service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: tracing lives in middleware, not in handlers.
