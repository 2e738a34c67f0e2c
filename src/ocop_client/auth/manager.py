"""
ocop_client.auth.manager

Client session state machine.

Responsibilities:
- Single source of truth for "who is the current user, and is that still valid".
- Acquire (`login`), reconcile (`check_auth`), and drop (`logout`) the credential.
- Keep the credential store and in-memory state consistent under overlapping async calls.

States: Anonymous, Authenticating, Authenticated(principal, credential), Errored(reason).
Only the four public operations below mutate state; UI code observes via properties or
`subscribe`.
"""

from __future__ import annotations

from collections.abc import Callable

from ocop_client.auth.errors import (
    DEFAULT_LOGIN_FAILURE,
    AuthError,
    ErrorKind,
    SessionSuperseded,
    error_for,
)
from ocop_client.auth.gateway import AuthGateway, GatewayFailure
from ocop_client.auth.models import Credential, LoginCredentials, Principal
from ocop_client.auth.state import (
    ANONYMOUS,
    AUTHENTICATING,
    Authenticated,
    Authenticating,
    Errored,
    SessionState,
)
from ocop_client.auth.store import CredentialStore
from ocop_client.observability.logging import get_logger

log = get_logger(__name__)

# Failure modes of a `CredentialStore` backend: I/O errors and undecodable content.
STORE_ERRORS: tuple[type[Exception], ...] = (OSError, ValueError)

Listener = Callable[[SessionState], None]


class SessionManager:
    """
    One instance per client process, constructed by the composition root with its
    gateway and store injected.

    Overlapping calls: every `login`, `check_auth` and `logout` starts a new generation.
    A gateway response is applied only while its generation is still the latest, so a
    late success cannot resurrect a session after `logout` and a late failure cannot
    clear a credential installed by a newer login.
    """

    def __init__(self, *, gateway: AuthGateway, store: CredentialStore) -> None:
        self._gateway = gateway
        self._store = store
        self._state: SessionState = ANONYMOUS
        self._generation = 0
        self._settled = False
        self._listeners: list[Listener] = []

    # -- observation -------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def principal(self) -> Principal | None:
        if isinstance(self._state, Authenticated):
            return self._state.principal
        return None

    @property
    def credential(self) -> Credential | None:
        if isinstance(self._state, Authenticated):
            return self._state.credential
        return None

    @property
    def error(self) -> str | None:
        if isinstance(self._state, Errored):
            return self._state.reason
        return None

    @property
    def is_authenticated(self) -> bool:
        return isinstance(self._state, Authenticated)

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, Authenticating)

    @property
    def is_reconciling(self) -> bool:
        """
        True while a stored credential exists that has not been validated yet.

        Protected views should render a loading state rather than a login prompt.
        """

        if self._settled:
            return False
        return self._read_store() is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def authorization_headers(self) -> dict[str, str]:
        if isinstance(self._state, Authenticated):
            return {"Authorization": f"Bearer {self._state.credential}"}
        return {}

    # -- operations --------------------------------------------------------

    async def check_auth(self) -> SessionState:
        generation = self._next_generation()
        stored = self._read_store()
        if stored is None:
            self._settled = True
            self._transition(ANONYMOUS)
            return self._state

        result = await self._gateway.who_am_i(stored)
        if generation != self._generation:
            log.info("session_check_discarded", reason="superseded")
            return self._state

        self._settled = True
        if isinstance(result, GatewayFailure):
            # A stale or rejected credential is routine: downgrade without surfacing.
            log.info("session_check_downgraded", kind=str(result.kind))
            self._clear_store()
            self._transition(ANONYMOUS)
            return self._state

        self._transition(Authenticated(principal=result.principal, credential=stored))
        log.info("session_restored", principal_id=result.principal.id, role=result.principal.role)
        return self._state

    async def login(self, credentials: LoginCredentials) -> Principal:
        generation = self._next_generation()
        self._transition(AUTHENTICATING)
        log.info("login_attempt", email=credentials.email)

        result = await self._gateway.login(credentials.email, credentials.password)
        if generation != self._generation:
            log.info("login_discarded", email=credentials.email, reason="superseded")
            raise SessionSuperseded("login response arrived after a newer session change")

        self._settled = True
        if isinstance(result, GatewayFailure):
            err: AuthError = error_for(result.kind, result.message or DEFAULT_LOGIN_FAILURE)
            self._transition(Errored(reason=err.reason, kind=err.kind))
            log.warning("login_failed", email=credentials.email, kind=str(err.kind))
            raise err

        # Store before state: state never claims a session the store does not hold.
        try:
            self._store.set(result.credential)
        except STORE_ERRORS as e:
            err = error_for(ErrorKind.server_error, "Could not save credentials")
            self._transition(Errored(reason=err.reason, kind=err.kind))
            log.error("credential_store_write_failed", error=str(e))
            raise err from e
        self._transition(Authenticated(principal=result.principal, credential=result.credential))
        log.info("login_succeeded", principal_id=result.principal.id, role=result.principal.role)
        return result.principal

    def logout(self) -> None:
        self._next_generation()
        self._settled = True
        self._clear_store()
        self._transition(ANONYMOUS)
        log.info("logout")

    def clear_error(self) -> None:
        if isinstance(self._state, Errored):
            self._transition(ANONYMOUS)

    # -- internals ---------------------------------------------------------

    def _read_store(self) -> Credential | None:
        # An unreadable store reads as empty: the session falls back to Anonymous.
        try:
            return self._store.get()
        except STORE_ERRORS as e:
            log.error("credential_store_read_failed", error=str(e))
            return None

    def _clear_store(self) -> None:
        try:
            self._store.clear()
        except STORE_ERRORS as e:
            log.error("credential_store_clear_failed", error=str(e))

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _transition(self, new_state: SessionState) -> None:
        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                log.exception("session_listener_failed")


# --- Module Notes -----------------------------------------------------------
# `check_auth` is typically awaited once at process start; `is_reconciling` covers the
# window before it completes.
