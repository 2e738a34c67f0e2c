"""
tests.test_session_manager

State machine tests for `SessionManager` with a fake gateway and in-memory store.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from conftest import ADMIN, CUSTOMER

from ocop_client.auth.errors import (
    ErrorKind,
    InvalidCredentials,
    NetworkFailure,
    ServerError,
    SessionError,
    SessionSuperseded,
)
from ocop_client.auth.gateway import GatewayFailure, HttpAuthGateway, LoginOk, WhoAmIOk
from ocop_client.auth.manager import SessionManager
from ocop_client.auth.models import LoginCredentials
from ocop_client.auth.state import Anonymous, Authenticated, Authenticating, Errored
from ocop_client.auth.store import FileCredentialStore, InMemoryCredentialStore


def _manager(gateway, store) -> SessionManager:
    return SessionManager(gateway=gateway, store=store)


# -- reconciliation -------------------------------------------------------------


@pytest.mark.asyncio
async def test_initial_state_is_anonymous_and_not_reconciling(gateway, store) -> None:
    session = _manager(gateway, store)
    assert isinstance(session.state, Anonymous)
    assert session.is_reconciling is False
    assert session.principal is None
    assert session.credential is None


@pytest.mark.asyncio
async def test_stored_credential_is_indeterminate_until_checked(gateway) -> None:
    store = InMemoryCredentialStore("T1")
    session = _manager(gateway, store)
    assert session.is_reconciling is True

    gateway.who_am_i_results.append(WhoAmIOk(principal=ADMIN))
    await session.check_auth()
    assert session.is_reconciling is False


@pytest.mark.asyncio
async def test_check_auth_without_credential_makes_no_network_call(gateway, store) -> None:
    session = _manager(gateway, store)
    state = await session.check_auth()
    assert isinstance(state, Anonymous)
    assert gateway.who_am_i_calls == []


@pytest.mark.asyncio
async def test_check_auth_restores_session(gateway) -> None:
    store = InMemoryCredentialStore("T1")
    gateway.who_am_i_results.append(WhoAmIOk(principal=ADMIN))
    session = _manager(gateway, store)

    state = await session.check_auth()

    assert state == Authenticated(principal=ADMIN, credential="T1")
    assert gateway.who_am_i_calls == ["T1"]
    assert session.is_authenticated
    assert store.get() == "T1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure",
    [
        GatewayFailure(ErrorKind.invalid_credentials, "Not authorized, token failed"),
        GatewayFailure(ErrorKind.network_failure, "Network error"),
        GatewayFailure(ErrorKind.server_error, "HTTP 500"),
    ],
)
async def test_rejected_credential_downgrades_silently(gateway, failure) -> None:
    store = InMemoryCredentialStore("STALE")
    gateway.who_am_i_results.append(failure)
    session = _manager(gateway, store)

    state = await session.check_auth()

    assert isinstance(state, Anonymous)
    assert store.get() is None
    assert session.error is None

    # Store is now empty: the second check never reaches the gateway.
    state = await session.check_auth()
    assert isinstance(state, Anonymous)
    assert gateway.who_am_i_calls == ["STALE"]


# -- login ------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_login_against_backend_envelope(store) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/admin/login"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {
                    "user": {"_id": "u1", "email": "admin@ocop.vn", "role": "admin"},
                    "token": "T1",
                },
            },
        )

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://localhost:5000/api"
    ) as http:
        session = _manager(HttpAuthGateway(http=http), store)
        principal = await session.login(LoginCredentials("admin@ocop.vn", "admin123"))

    assert principal.email == "admin@ocop.vn"
    assert isinstance(session.state, Authenticated)
    assert session.state.principal.email == "admin@ocop.vn"
    assert session.state.credential == "T1"
    assert store.get() == "T1"


@pytest.mark.asyncio
async def test_login_rejection_keeps_store_and_raises(gateway) -> None:
    store = InMemoryCredentialStore("PREVIOUS")
    gateway.login_results.append(GatewayFailure(ErrorKind.invalid_credentials, "Invalid password"))
    session = _manager(gateway, store)

    with pytest.raises(InvalidCredentials) as exc_info:
        await session.login(LoginCredentials("admin@ocop.vn", "wrong"))

    assert exc_info.value.reason == "Invalid password"
    assert session.state == Errored(reason="Invalid password", kind=ErrorKind.invalid_credentials)
    assert session.error == "Invalid password"
    assert store.get() == "PREVIOUS"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("failure", "exc_type", "reason"),
    [
        (GatewayFailure(ErrorKind.invalid_credentials), InvalidCredentials, "Login failed"),
        (GatewayFailure(ErrorKind.network_failure, "Network error"), NetworkFailure, "Network error"),
        (GatewayFailure(ErrorKind.server_error, ""), ServerError, "Login failed"),
    ],
)
async def test_login_failure_taxonomy(gateway, store, failure, exc_type, reason) -> None:
    gateway.login_results.append(failure)
    session = _manager(gateway, store)

    with pytest.raises(exc_type) as exc_info:
        await session.login(LoginCredentials("admin@ocop.vn", "x"))

    assert exc_info.value.kind is failure.kind
    assert session.state == Errored(reason=reason, kind=failure.kind)
    assert store.get() is None


@pytest.mark.asyncio
async def test_login_is_observably_authenticating_while_in_flight(gateway, store) -> None:
    pending: asyncio.Future = asyncio.get_running_loop().create_future()
    gateway.login_results.append(pending)
    session = _manager(gateway, store)

    task = asyncio.create_task(session.login(LoginCredentials("admin@ocop.vn", "admin123")))
    await asyncio.sleep(0)
    assert isinstance(session.state, Authenticating)
    assert session.is_loading

    pending.set_result(LoginOk(principal=ADMIN, credential="T1"))
    assert await task == ADMIN
    assert not session.is_loading


@pytest.mark.asyncio
async def test_store_write_failure_is_a_server_error(gateway) -> None:
    class ReadOnlyStore(InMemoryCredentialStore):
        def set(self, credential: str) -> None:
            raise PermissionError("read-only")

    store = ReadOnlyStore()
    gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))
    session = _manager(gateway, store)

    with pytest.raises(ServerError):
        await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    assert isinstance(session.state, Errored)
    assert store.get() is None


class UnreadableStore(InMemoryCredentialStore):
    def get(self) -> str | None:
        raise PermissionError("credential file is not readable")

    def set(self, credential: str) -> None:
        raise PermissionError("credential file is not writable")

    def clear(self) -> None:
        raise PermissionError("credential file is not writable")


@pytest.mark.asyncio
async def test_undecodable_credential_file_does_not_break_session(gateway, tmp_path) -> None:
    path = tmp_path / "credentials.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    session = _manager(gateway, FileCredentialStore(path))

    assert session.is_reconciling is False
    assert isinstance(await session.check_auth(), Anonymous)
    assert gateway.who_am_i_calls == []
    session.logout()

    gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))
    await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    assert session.state == Authenticated(principal=ADMIN, credential="T1")
    assert FileCredentialStore(path).get() == "T1"


@pytest.mark.asyncio
async def test_unreadable_store_never_leaves_session_stuck(gateway) -> None:
    session = _manager(gateway, UnreadableStore())

    assert session.is_reconciling is False
    assert isinstance(await session.check_auth(), Anonymous)

    gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))
    with pytest.raises(ServerError):
        await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    assert session.state == Errored(reason="Could not save credentials", kind=ErrorKind.server_error)

    session.logout()
    assert isinstance(session.state, Anonymous)


# -- logout / clear_error ---------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("start", ["anonymous", "authenticated", "errored"])
async def test_logout_always_ends_anonymous(gateway, store, start) -> None:
    session = _manager(gateway, store)
    if start == "authenticated":
        gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))
        await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    elif start == "errored":
        gateway.login_results.append(GatewayFailure(ErrorKind.invalid_credentials, "nope"))
        with pytest.raises(InvalidCredentials):
            await session.login(LoginCredentials("admin@ocop.vn", "x"))

    session.logout()

    assert isinstance(session.state, Anonymous)
    assert store.get() is None
    assert session.authorization_headers() == {}


@pytest.mark.asyncio
async def test_clear_error_only_leaves_errored(gateway, store) -> None:
    session = _manager(gateway, store)
    gateway.login_results.append(GatewayFailure(ErrorKind.invalid_credentials, "Invalid password"))
    with pytest.raises(InvalidCredentials):
        await session.login(LoginCredentials("admin@ocop.vn", "x"))

    session.clear_error()
    assert isinstance(session.state, Anonymous)

    gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))
    await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    session.clear_error()
    assert isinstance(session.state, Authenticated)
    assert store.get() == "T1"


# -- overlapping calls ------------------------------------------------------------


@pytest.mark.asyncio
async def test_late_login_success_does_not_resurrect_after_logout(gateway, store) -> None:
    pending: asyncio.Future = asyncio.get_running_loop().create_future()
    gateway.login_results.append(pending)
    session = _manager(gateway, store)

    task = asyncio.create_task(session.login(LoginCredentials("admin@ocop.vn", "admin123")))
    await asyncio.sleep(0)
    session.logout()
    pending.set_result(LoginOk(principal=ADMIN, credential="T1"))

    with pytest.raises(SessionSuperseded):
        await task
    assert isinstance(session.state, Anonymous)
    assert store.get() is None


@pytest.mark.asyncio
async def test_latest_login_attempt_wins(gateway, store) -> None:
    first: asyncio.Future = asyncio.get_running_loop().create_future()
    gateway.login_results.extend([first, LoginOk(principal=CUSTOMER, credential="T2")])
    session = _manager(gateway, store)

    slow = asyncio.create_task(session.login(LoginCredentials("admin@ocop.vn", "admin123")))
    await asyncio.sleep(0)
    await session.login(LoginCredentials("user@ocop.vn", "user123"))
    first.set_result(LoginOk(principal=ADMIN, credential="T1"))

    with pytest.raises(SessionSuperseded):
        await slow
    assert session.state == Authenticated(principal=CUSTOMER, credential="T2")
    assert store.get() == "T2"


@pytest.mark.asyncio
async def test_one_handler_covers_rejection_and_supersession(gateway, store) -> None:
    pending: asyncio.Future = asyncio.get_running_loop().create_future()
    gateway.login_results.extend([pending, GatewayFailure(ErrorKind.invalid_credentials, "nope")])
    session = _manager(gateway, store)
    caught: list[SessionError] = []

    async def attempt(email: str) -> None:
        try:
            await session.login(LoginCredentials(email, "x"))
        except SessionError as e:
            caught.append(e)

    first = asyncio.create_task(attempt("admin@ocop.vn"))
    await asyncio.sleep(0)
    await attempt("user@ocop.vn")
    pending.set_result(LoginOk(principal=ADMIN, credential="T1"))
    await first

    assert [type(e) for e in caught] == [InvalidCredentials, SessionSuperseded]
    assert isinstance(session.state, Errored)

@pytest.mark.asyncio
async def test_late_reconciliation_failure_keeps_newer_login(gateway) -> None:
    store = InMemoryCredentialStore("STALE")
    check: asyncio.Future = asyncio.get_running_loop().create_future()
    gateway.who_am_i_results.append(check)
    gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))
    session = _manager(gateway, store)

    reconcile = asyncio.create_task(session.check_auth())
    await asyncio.sleep(0)
    await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    check.set_result(GatewayFailure(ErrorKind.invalid_credentials, "expired"))
    await reconcile

    assert session.state == Authenticated(principal=ADMIN, credential="T1")
    assert store.get() == "T1"


# -- observation ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_subscribers_see_every_transition(gateway, store) -> None:
    seen = []
    session = _manager(gateway, store)
    unsubscribe = session.subscribe(seen.append)

    gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))
    await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    session.logout()
    unsubscribe()
    session.logout()

    assert [type(s) for s in seen] == [Authenticating, Authenticated, Anonymous]
    for s in seen:
        # Identity is carried only by Authenticated, and always with its credential.
        if isinstance(s, Authenticated):
            assert s.principal is not None and s.credential


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_transition(gateway, store) -> None:
    def boom(_state) -> None:
        raise RuntimeError("listener bug")

    session = _manager(gateway, store)
    session.subscribe(boom)
    gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))

    await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    assert session.is_authenticated


@pytest.mark.asyncio
async def test_authorization_headers_follow_session(gateway, store) -> None:
    session = _manager(gateway, store)
    assert session.authorization_headers() == {}

    gateway.login_results.append(LoginOk(principal=ADMIN, credential="T1"))
    await session.login(LoginCredentials("admin@ocop.vn", "admin123"))
    assert session.authorization_headers() == {"Authorization": "Bearer T1"}
