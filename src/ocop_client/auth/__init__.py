"""
ocop_client.auth

Client-side authentication package.

Responsibilities:
- Session state machine (`SessionManager`) shared by every client surface.
- Auth gateway boundary (HTTP adapter + tagged results).
- Credential persistence backends.
- JWT helpers for the dev backend.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# UI layers depend on `manager` and `state`; only the runtime wires gateway and store.
