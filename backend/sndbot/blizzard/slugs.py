"""Normalization of realm, guild and character names for API path segments."""

from __future__ import annotations

import re

from .errors import ValidationError

_WHITESPACE = re.compile(r"\s+")
# Characters that would end or escape a URL path segment.
_UNSAFE = re.compile(r"[/\\?#%]")


def slugify(raw: str, *, field: str = "name") -> str:
    """Return the lower-case, hyphen-separated slug for a realm or guild name."""
    value = (raw or "").strip().lower()
    if not value:
        raise ValidationError(field)
    return _checked(_WHITESPACE.sub("-", value), field)


def normalize_character_name(raw: str) -> str:
    value = (raw or "").strip().lower()
    if not value:
        raise ValidationError("character name")
    return _checked(value, "character name")


def _checked(value: str, field: str) -> str:
    if _UNSAFE.search(value) or not value.strip("."):
        raise ValidationError(field, "contains characters that are not allowed")
    return value
