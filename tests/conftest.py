"""
tests.conftest

Shared fakes for session manager tests.

Responsibilities:
- Scriptable `AuthGateway` that records calls and can hold responses on a future.
- Principals in the shape the backend returns for the seeded accounts.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from ocop_client.auth.gateway import GatewayFailure, LoginOk, WhoAmIOk
from ocop_client.auth.models import Principal
from ocop_client.auth.store import InMemoryCredentialStore

ADMIN = Principal(id="64f000000000000000000001", email="admin@ocop.vn", role="admin", name="Super Admin")
CUSTOMER = Principal(id="64f000000000000000000003", email="user@ocop.vn", role="user", name="Customer")


class FakeGateway:
    """
    Results are consumed in order. A queued `asyncio.Future` is awaited before its result
    is returned, which lets a test interleave other session calls with an in-flight one.
    """

    def __init__(self) -> None:
        self.login_results: list[Any] = []
        self.who_am_i_results: list[Any] = []
        self.login_calls: list[tuple[str, str]] = []
        self.who_am_i_calls: list[str] = []

    async def login(self, identifier: str, secret: str) -> LoginOk | GatewayFailure:
        self.login_calls.append((identifier, secret))
        return await self._next(self.login_results)

    async def who_am_i(self, credential: str) -> WhoAmIOk | GatewayFailure:
        self.who_am_i_calls.append(credential)
        return await self._next(self.who_am_i_results)

    @staticmethod
    async def _next(queue: list[Any]) -> Any:
        item = queue.pop(0)
        if isinstance(item, asyncio.Future):
            return await item
        return item


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()
