"""
ocop_client.auth.store

Credential persistence backends.

Responsibilities:
- Define the `CredentialStore` interface the session manager writes through.
- Provide a durable file-backed store (web admin) and an in-memory store
  (mobile best-effort, tests).
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from ocop_client.auth.models import Credential
from ocop_client.observability.logging import get_logger

log = get_logger(__name__)


class CredentialStore(Protocol):
    def get(self) -> Credential | None: ...

    def set(self, credential: Credential) -> None: ...

    def clear(self) -> None: ...


class InMemoryCredentialStore:
    def __init__(self, credential: Credential | None = None) -> None:
        self._credential = credential or None

    def get(self) -> Credential | None:
        return self._credential

    def set(self, credential: Credential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


class FileCredentialStore:
    """
    Key/value JSON document on disk, one entry per storage key.

    Several keys may share one file (e.g. admin and storefront tokens); `clear` only
    removes this store's key. Writes go through a temp file + rename so a crash never
    leaves a truncated document behind.
    """

    def __init__(self, path: Path, *, key: str = "admin_token") -> None:
        self._path = Path(path)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        try:
            doc = json.loads(raw.decode("utf-8"))
        except ValueError:
            # Unreadable content is treated as an empty store; the next write replaces it.
            log.warning("credential_store_corrupt", path=str(self._path))
            return {}
        if not isinstance(doc, dict):
            return {}
        return {str(k): v for k, v in doc.items() if isinstance(v, str)}

    def _dump(self, doc: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".credentials-", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self) -> Credential | None:
        return self._load().get(self._key) or None

    def set(self, credential: Credential) -> None:
        doc = self._load()
        doc[self._key] = credential
        self._dump(doc)

    def clear(self) -> None:
        doc = self._load()
        if self._key not in doc:
            return
        del doc[self._key]
        if doc:
            self._dump(doc)
        else:
            self._path.unlink(missing_ok=True)


# --- Module Notes -----------------------------------------------------------
# All methods are synchronous: `SessionManager.logout` must clear storage before it
# returns, without awaiting.
