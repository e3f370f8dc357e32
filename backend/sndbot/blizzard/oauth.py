"""OAuth client-credential token management for the Blizzard API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

import httpx
from pydantic import ValidationError as PydanticValidationError

from .errors import AuthError
from .metrics import BLIZZARD_REQUEST_LATENCY_SECONDS, BLIZZARD_TOKEN_REFRESH_TOTAL
from .models import BearerToken, TokenResponse

LOGGER = logging.getLogger(__name__)

EXPIRY_MARGIN_SECONDS = 60.0


class TokenManager:
    """Owns the single cached bearer token shared by every resolution call.

    Reads of a still-valid token are synchronous. A stale or missing token starts one
    refresh task; every caller arriving while it runs awaits that same task and gets
    its token or its :class:`AuthError`. The task is dropped once it settles, so the
    next expiry episode refreshes again.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        token_url: str,
        client_id: str,
        client_secret: str,
        clock: Callable[[], float] = time.monotonic,
        margin_seconds: float = EXPIRY_MARGIN_SECONDS,
    ) -> None:
        self._http_client = http_client
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._clock = clock
        self._margin_seconds = margin_seconds
        self._token: BearerToken | None = None
        self._refresh: asyncio.Task[BearerToken] | None = None

    @property
    def cached_token(self) -> BearerToken | None:
        return self._token

    @property
    def refreshing(self) -> bool:
        return self._refresh is not None

    def invalidate(self) -> None:
        self._token = None

    async def get_valid_token(self) -> BearerToken:
        token = self._token
        if token is not None and token.is_valid(self._clock()):
            return token

        refresh = self._refresh
        if refresh is None:
            refresh = asyncio.create_task(self._refresh_token())
            refresh.add_done_callback(_consume_failure)
            self._refresh = refresh
        # A cancelled caller must not cancel the refresh the others are waiting on.
        return await asyncio.shield(refresh)

    async def _refresh_token(self) -> BearerToken:
        try:
            token = await self._exchange()
            self._token = token
            return token
        finally:
            self._refresh = None

    async def _exchange(self) -> BearerToken:
        issued_at = self._clock()
        started = time.perf_counter()
        try:
            response = await self._http_client.post(
                self._token_url,
                data={"grant_type": "client_credentials"},
                auth=(self._client_id, self._client_secret),
            )
        except httpx.HTTPError as exc:
            BLIZZARD_TOKEN_REFRESH_TOTAL.labels("transport_error").inc()
            LOGGER.error("Blizzard token exchange failed: %s", exc.__class__.__name__)
            raise AuthError("Unable to reach the Blizzard token endpoint") from exc
        finally:
            BLIZZARD_REQUEST_LATENCY_SECONDS.labels("oauth_token").observe(
                time.perf_counter() - started
            )

        if not response.is_success:
            BLIZZARD_TOKEN_REFRESH_TOTAL.labels("rejected").inc()
            LOGGER.error(
                "Blizzard token endpoint rejected credentials",
                extra={"status_code": response.status_code},
            )
            raise AuthError(f"Token endpoint returned HTTP {response.status_code}")

        try:
            payload = TokenResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as exc:
            BLIZZARD_TOKEN_REFRESH_TOTAL.labels("malformed").inc()
            LOGGER.error("Blizzard token endpoint returned a malformed body")
            raise AuthError("Malformed token response") from exc

        lifetime = _usable_lifetime(payload.expires_in, self._margin_seconds)
        BLIZZARD_TOKEN_REFRESH_TOTAL.labels("success").inc()
        LOGGER.info("Refreshed Blizzard access token", extra={"lifetime_seconds": lifetime})
        return BearerToken(value=payload.access_token, expires_at=issued_at + lifetime)


def _usable_lifetime(expires_in: float, margin_seconds: float) -> float:
    """Seconds the token is served from cache.

    Tokens that live no longer than the margin are kept for half their lifetime
    instead, so they are not stale the moment they are published.
    """
    if expires_in > margin_seconds:
        return expires_in - margin_seconds
    return max(expires_in, 0.0) / 2


def _consume_failure(task: asyncio.Task[BearerToken]) -> None:
    # Every waiter may have been cancelled; mark the exception as retrieved.
    if not task.cancelled():
        task.exception()
