"""
ocop_client.devserver.__main__

Entrypoint for `python -m ocop_client.devserver`.
"""

from __future__ import annotations

import uvicorn

from ocop_client.devserver.app import create_app
from ocop_client.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
