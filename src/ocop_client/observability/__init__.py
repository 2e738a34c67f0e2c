"""
ocop_client.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for the dev backend.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Client surfaces call `configure_logging` once from their composition root.
