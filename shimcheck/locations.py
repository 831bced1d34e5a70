"""Rendering of declaration locations for reports."""

from __future__ import annotations

from .models import SourceLocation

TYPESHED_STDLIB_URL = "https://github.com/python/typeshed/tree/main/stdlib"


def resolve_location(
    location: SourceLocation,
    base_path_prefix: str | None = None,
    base_url: str | None = None,
) -> str:
    """Render ``location`` as a published URL for base-layer files, else as a span."""
    if base_path_prefix and base_url and location.file.startswith(base_path_prefix):
        relative = location.file[len(base_path_prefix) :]
        return f"{base_url}{relative}#L{location.start_line}"
    return str(location)


__all__ = ["TYPESHED_STDLIB_URL", "resolve_location"]
