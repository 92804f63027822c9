"""Content fingerprints for the template registry."""

from __future__ import annotations

from hashlib import sha256


def fingerprint(source: str) -> str:
    """Deterministic hex digest of a template's raw source.

    Identical content always maps to the same registry entry, whether it
    came from a file or an inline string.
    """
    return sha256(source.encode("utf-8")).hexdigest()
