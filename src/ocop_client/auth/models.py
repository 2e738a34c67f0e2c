"""
ocop_client.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`).
- Define the login input pair (`LoginCredentials`).
"""

from __future__ import annotations

from dataclasses import dataclass, field

# An opaque bearer token; the client never inspects its contents.
Credential = str


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated identity snapshot. Replaced wholesale, never mutated.
    """

    id: str
    email: str
    role: str
    name: str = ""
    phone: str = ""
    avatar: str | None = None
    is_active: bool = True
    shop: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True, slots=True)
class LoginCredentials:
    email: str
    password: str = field(default="", repr=False)


# --- Module Notes -----------------------------------------------------------
# Roles observed on the backend: "user", "admin", "shop_admin". Unknown roles are kept
# as-is so a newer backend does not break older clients.
