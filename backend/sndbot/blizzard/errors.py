"""Error kinds raised by the Blizzard resolution pipeline.

Not-found is never an exception here: absent characters and guilds are returned as
``None`` or ``False`` by the client.
"""

from __future__ import annotations


class BlizzardError(RuntimeError):
    """Base class for Blizzard API failures."""


class ValidationError(BlizzardError):
    """Raised when an identifier is empty or unusable as a path segment."""

    def __init__(self, field: str, problem: str = "must not be empty") -> None:
        super().__init__(f"{field} {problem}")
        self.field = field


class AuthError(BlizzardError):
    """Raised when the client-credential exchange fails."""


class APIError(BlizzardError):
    """Raised for non-2xx responses and transport failures."""

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(detail if status_code is None else f"{detail} (HTTP {status_code})")
        self.detail = detail
        self.status_code = status_code


class GuildNotFoundError(APIError):
    """Raised when the guild roster endpoint answers 404."""


class ParseError(BlizzardError):
    """Raised when a response body does not match the expected shape."""
