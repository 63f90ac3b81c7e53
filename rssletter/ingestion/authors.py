"""Author normalization for heterogeneous feed author shapes."""

from collections.abc import Mapping
from typing import Any, Optional

_MISSING = object()


def _name_field(raw: Any) -> Any:
    """Return the ``name`` of a mapping or object, or _MISSING."""
    if isinstance(raw, Mapping):
        return raw.get("name", _MISSING)
    return getattr(raw, "name", _MISSING)


def normalize_author(raw: Any) -> Optional[str]:
    """
    Convert an upstream author value into one canonical string.

    Feeds deliver authors as a plain string, as ``{"name": "..."}``, or as
    ``{"name": ["a", "b"]}``. Anything else, including empty values,
    normalizes to None.

    Args:
        raw: Author value as delivered by the feed parser

    Returns:
        Author string, or None if no author can be derived
    """
    if raw is None or raw == "":
        return None

    if isinstance(raw, str):
        return raw

    # bytes and numbers have no author semantics
    if isinstance(raw, (bytes, int, float)):
        return None

    name = _name_field(raw)
    if name is _MISSING or not name:
        return None

    if isinstance(name, str):
        return name

    if isinstance(name, (list, tuple)):
        return ", ".join(str(part) for part in name)

    return None
