"""
ocop_client.devserver

Development backend that mimics the OCOP auth endpoints.

Responsibilities:
- Serve login / "who am I" endpoints with real JWTs for local client development.
- Back the HTTP gateway integration tests (via `httpx.ASGITransport`).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Catalog, order and upload routes of the production backend are not mirrored here.
