"""
ocop_client.resources

Resource (image) reference handling shared by every client surface.
"""

from ocop_client.resources.resolver import (
    PLACEHOLDER_URL,
    ImageRef,
    ReferenceKind,
    ReferenceResolver,
    classify,
    resolve,
    resolve_primary,
)

__all__ = [
    "PLACEHOLDER_URL",
    "ImageRef",
    "ReferenceKind",
    "ReferenceResolver",
    "classify",
    "resolve",
    "resolve_primary",
]
