"""
ocop_client.runtime

Composition root for a client process.

Responsibilities:
- Build one `SessionManager` and one `ReferenceResolver` from settings.
- Own the shared `httpx.AsyncClient` and close it on teardown.
- Reconcile a persisted credential at process start.
"""

from __future__ import annotations

import httpx

from ocop_client.auth.gateway import SURFACE_ENDPOINTS, HttpAuthGateway
from ocop_client.auth.manager import SessionManager
from ocop_client.auth.store import CredentialStore, FileCredentialStore, InMemoryCredentialStore
from ocop_client.observability.logging import configure_logging, get_logger
from ocop_client.resources.resolver import ReferenceResolver
from ocop_client.settings import Settings

log = get_logger(__name__)


def build_store(settings: Settings) -> CredentialStore:
    # Without a path, persistence is best-effort (process lifetime only).
    if settings.credential_store_path is None:
        return InMemoryCredentialStore()
    return FileCredentialStore(settings.credential_store_path, key=settings.credential_store_key)


def build_transport(settings: Settings) -> httpx.AsyncBaseTransport:
    # Retries cover connection establishment only; requests that reached the server are not replayed.
    return httpx.AsyncHTTPTransport(retries=settings.http_retries)


class ClientRuntime:
    """
    Usage:

        async with create_runtime(settings=get_settings()) as rt:
            if rt.session.is_authenticated: ...
            url = rt.resolver.resolve(product["images"][0]["url"])
    """

    def __init__(
        self,
        *,
        settings: Settings,
        http: httpx.AsyncClient,
        session: SessionManager,
        resolver: ReferenceResolver,
    ) -> None:
        self.settings = settings
        self.http = http
        self.session = session
        self.resolver = resolver

    async def start(self) -> None:
        log.info("client_start", surface=str(self.settings.surface), env=self.settings.env)
        await self.session.check_auth()

    async def aclose(self) -> None:
        await self.http.aclose()
        log.info("client_stop")

    async def __aenter__(self) -> ClientRuntime:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def create_runtime(
    *,
    settings: Settings,
    store: CredentialStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ClientRuntime:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        surface=str(settings.surface),
    )

    http = httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.http_timeout_seconds,
        transport=transport or build_transport(settings),
    )
    gateway = HttpAuthGateway(http=http, endpoints=SURFACE_ENDPOINTS[settings.surface])
    session = SessionManager(gateway=gateway, store=store or build_store(settings))
    return ClientRuntime(
        settings=settings,
        http=http,
        session=session,
        resolver=ReferenceResolver.from_settings(settings),
    )


# --- Module Notes -----------------------------------------------------------
# `transport` exists for tests and embedding (e.g. `httpx.ASGITransport` over the dev
# backend); production surfaces leave it unset.
