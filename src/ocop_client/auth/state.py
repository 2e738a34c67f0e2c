"""
ocop_client.auth.state

Session state variants.

Exactly one variant is current at any time. `Authenticated` is the only variant that
carries identity, and it always carries both the principal and the credential that
obtained or validated it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ocop_client.auth.errors import ErrorKind
from ocop_client.auth.models import Credential, Principal


@dataclass(frozen=True, slots=True)
class Anonymous:
    pass


@dataclass(frozen=True, slots=True)
class Authenticating:
    pass


@dataclass(frozen=True, slots=True)
class Authenticated:
    principal: Principal
    credential: Credential = field(repr=False)


@dataclass(frozen=True, slots=True)
class Errored:
    reason: str
    kind: ErrorKind = ErrorKind.server_error


SessionState = Anonymous | Authenticating | Authenticated | Errored

ANONYMOUS = Anonymous()
AUTHENTICATING = Authenticating()
