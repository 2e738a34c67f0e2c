"""
ocop_client.resources.resolver

Image reference normalization.

Catalog data stores image locations in several encodings: inline `data:` URIs uploaded
from the web admin, absolute CDN URLs, server paths like `/uploads/a.png`, and bare file
names. `resolve` turns any of them into one absolute URL a surface can render.

Classification order matters and is fixed:
    empty -> inline data -> absolute -> root-relative -> bare relative
(an inline `data:` string would otherwise be read as a bare relative path).

Everything here is pure and total: any input, including non-strings, yields a URL.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ocop_client.settings import Settings

PLACEHOLDER_URL = "https://via.placeholder.com/400x300?text=No+Image"
DEFAULT_ORIGIN = "http://localhost:5000"
DEFAULT_API_SUFFIX = "/api"

_INLINE_PREFIX = "data:"
_ABSOLUTE_PREFIXES = ("http://", "https://")


class ReferenceKind(enum.StrEnum):
    empty = "empty"
    inline_data = "inline_data"
    absolute = "absolute"
    root_relative = "root_relative"
    bare_relative = "bare_relative"


def classify(reference: Any) -> ReferenceKind:
    if not isinstance(reference, str):
        return ReferenceKind.empty
    ref = reference.strip()
    if not ref:
        return ReferenceKind.empty
    # Scheme names are case-insensitive.
    lowered = ref.lower()
    if lowered.startswith(_INLINE_PREFIX):
        return ReferenceKind.inline_data
    if lowered.startswith(_ABSOLUTE_PREFIXES):
        return ReferenceKind.absolute
    if ref.startswith("/"):
        return ReferenceKind.root_relative
    return ReferenceKind.bare_relative


def strip_api_suffix(base_url: str | None, api_suffix: str = DEFAULT_API_SUFFIX) -> str:
    """
    `http://localhost:5000/api` -> `http://localhost:5000`.

    Only a trailing suffix is removed; an empty base falls back to the local dev origin.
    """

    base = (base_url or "").strip().rstrip("/")
    if api_suffix and base.endswith(api_suffix):
        base = base[: -len(api_suffix)].rstrip("/")
    return base or DEFAULT_ORIGIN


def _unchanged(ref: str, _: str) -> str:
    return ref


def _root_relative(ref: str, origin: str) -> str:
    return f"{origin}{ref.strip()}"


def _bare_relative(ref: str, origin: str) -> str:
    return f"{origin}/{ref.strip()}"


_DISPATCH: dict[ReferenceKind, Callable[[str, str], str]] = {
    ReferenceKind.inline_data: _unchanged,
    ReferenceKind.absolute: _unchanged,
    ReferenceKind.root_relative: _root_relative,
    ReferenceKind.bare_relative: _bare_relative,
}


def resolve(
    reference: Any,
    base_url: str | None,
    *,
    placeholder: str = PLACEHOLDER_URL,
    api_suffix: str = DEFAULT_API_SUFFIX,
) -> str:
    kind = classify(reference)
    if kind is ReferenceKind.empty:
        return placeholder
    # Inline and absolute references pass through byte-for-byte; only paths are trimmed.
    return _DISPATCH[kind](reference, strip_api_suffix(base_url, api_suffix))


@dataclass(frozen=True, slots=True)
class ImageRef:
    url: str | None
    is_primary: bool = False


def _coerce(entry: Any) -> ImageRef:
    if isinstance(entry, ImageRef):
        return entry
    if isinstance(entry, str):
        return ImageRef(url=entry)
    if isinstance(entry, Mapping):
        # Catalog documents use `isPrimary`; Python callers may pass `is_primary`.
        primary = entry.get("isPrimary", entry.get("is_primary", False))
        return ImageRef(url=entry.get("url"), is_primary=bool(primary))
    primary = getattr(entry, "is_primary", getattr(entry, "isPrimary", False))
    return ImageRef(url=getattr(entry, "url", None), is_primary=bool(primary))


def select_primary(references: Any) -> ImageRef | None:
    """
    First entry flagged primary, else the first entry, else None.

    A single string counts as a one-element collection; anything non-iterable as empty.
    """

    if references is None:
        return None
    if isinstance(references, (str, ImageRef, Mapping)):
        references = [references]
    if not isinstance(references, Iterable):
        return None
    entries = [_coerce(e) for e in references]
    if not entries:
        return None
    return next((e for e in entries if e.is_primary), entries[0])


def resolve_primary(
    references: Any,
    base_url: str | None,
    *,
    placeholder: str = PLACEHOLDER_URL,
    api_suffix: str = DEFAULT_API_SUFFIX,
) -> str:
    chosen = select_primary(references)
    if chosen is None:
        return placeholder
    return resolve(chosen.url, base_url, placeholder=placeholder, api_suffix=api_suffix)


class ReferenceResolver:
    """
    `resolve` / `resolve_primary` bound to one configured base URL, so call sites in UI
    code pass only the reference.
    """

    def __init__(
        self,
        base_url: str | None,
        *,
        placeholder: str = PLACEHOLDER_URL,
        api_suffix: str = DEFAULT_API_SUFFIX,
    ) -> None:
        self.base_url = base_url
        self.placeholder = placeholder
        self.api_suffix = api_suffix

    @classmethod
    def from_settings(cls, settings: Settings) -> ReferenceResolver:
        return cls(
            settings.api_base_url,
            placeholder=settings.placeholder_image_url,
            api_suffix=settings.api_suffix,
        )

    @property
    def origin(self) -> str:
        return strip_api_suffix(self.base_url, self.api_suffix)

    def resolve(self, reference: Any) -> str:
        return resolve(
            reference, self.base_url, placeholder=self.placeholder, api_suffix=self.api_suffix
        )

    def resolve_primary(self, references: Any) -> str:
        return resolve_primary(
            references, self.base_url, placeholder=self.placeholder, api_suffix=self.api_suffix
        )


# --- Module Notes -----------------------------------------------------------
# Resolved URLs are never written back into catalog data; resolve on every read.
