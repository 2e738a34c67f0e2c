"""
ocop_client.devserver.users

In-memory user directory for the development backend.

Responsibilities:
- Seed the accounts the OCOP backend ships with for local development.
- Look up users by email (login) and by id (token subject).
- Render users in the backend's wire shape (`_id`, `isActive`, ...).
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class DevUser:
    id: str
    name: str
    email: str
    phone: str
    password: str = field(repr=False)
    role: str = "user"
    is_active: bool = True
    shop: str | None = None

    def check_password(self, candidate: str) -> bool:
        return hmac.compare_digest(self.password.encode(), candidate.encode())

    def to_wire(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "_id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "isActive": self.is_active,
        }
        if self.shop is not None:
            doc["shop"] = self.shop
        return doc


SEED_USERS: tuple[DevUser, ...] = (
    DevUser(
        id="64f000000000000000000001",
        name="Super Admin",
        email="admin@ocop.vn",
        phone="0123456789",
        password="admin123",
        role="admin",
    ),
    DevUser(
        id="64f000000000000000000002",
        name="Shop Owner",
        email="shop@ocop.vn",
        phone="0123456780",
        password="shop123",
        role="shop_admin",
        shop="64f0000000000000000000a1",
    ),
    DevUser(
        id="64f000000000000000000003",
        name="Customer",
        email="user@ocop.vn",
        phone="0123456781",
        password="user123",
        role="user",
    ),
)


class UserDirectory:
    def __init__(self, users: tuple[DevUser, ...] | list[DevUser] = SEED_USERS) -> None:
        self._by_id = {u.id: u for u in users}
        self._by_email = {u.email.lower(): u for u in users}

    def by_email(self, email: str) -> DevUser | None:
        return self._by_email.get(email.strip().lower())

    def by_id(self, user_id: str) -> DevUser | None:
        return self._by_id.get(user_id)


# --- Module Notes -----------------------------------------------------------
# Passwords are plaintext: this directory backs local development and tests only.
