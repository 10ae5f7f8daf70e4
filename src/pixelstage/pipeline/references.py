"""Conversions between staged identities and the paths clients see."""

from __future__ import annotations

import re

PUBLIC_PREFIX = "/uploads/"

_SEPARATORS = re.compile(r"[\\/]")


def public_path(identity: str) -> str:
    """Return the client-facing path for a staged identity."""
    return f"{PUBLIC_PREFIX}{identity}"


def strip_public_prefix(reference: str) -> str:
    """Remove one leading ``/uploads/`` prefix; the rest is left for the store to vet."""
    if reference.startswith(PUBLIC_PREFIX):
        return reference[len(PUBLIC_PREFIX) :]
    return reference


def final_component(reference: str) -> str:
    """Keep only the last path component, discarding any client-supplied directories."""
    return _SEPARATORS.split(reference)[-1]
