"""
ocop_client.devserver.routes

Routers mounted by the development backend.
"""

# Package marker.
