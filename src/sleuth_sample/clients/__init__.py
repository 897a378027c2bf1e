"""
sleuth_sample.clients

Outbound client package.

Responsibilities:
- Provide clients for calling other services with trace headers attached.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers should depend on this boundary, not on httpx directly.
