"""Single-flight access token refresh.

Requests that fail with an expired access token call
:meth:`RefreshCoordinator.on_auth_failure`. The first caller performs the
refresh; callers arriving while it is in flight wait on a future that is
settled with the outcome of that one refresh.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from callapi.constants import ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY
from callapi.errors import RefreshFailure, RefreshUnavailable

from .refresh import RefreshResponse
from .token_store import CredentialStore

logger = logging.getLogger("tokenauth")

RefreshFn = Callable[[str], Awaitable[RefreshResponse]]
TokenListener = Callable[[str], None]


class RefreshCoordinator:
    def __init__(
        self,
        store: CredentialStore,
        refresh_fn: RefreshFn,
        *,
        on_token: TokenListener | None = None,
    ) -> None:
        self._store = store
        self._refresh_fn = refresh_fn
        self._on_token = on_token
        self._refreshing = False
        self._waiters: list[asyncio.Future[str]] = []

    @property
    def refreshing(self) -> bool:
        return self._refreshing

    @property
    def pending(self) -> int:
        return len(self._waiters)

    async def on_auth_failure(self) -> str:
        """Return a fresh access token, refreshing at most once at a time.

        Raises ``RefreshUnavailable`` when no refresh token is stored and
        ``RefreshFailure`` when the refresh call fails.
        """
        if self._refreshing:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            logger.debug("Queued request behind refresh (pending=%s)", len(self._waiters))
            return await waiter

        # Set before the first await; later callers see the flag and queue.
        self._refreshing = True
        try:
            refresh_token = await self._store.get(REFRESH_TOKEN_KEY)
            if not refresh_token:
                logger.warning("Access token rejected and no refresh token is stored.")
                raise RefreshUnavailable()

            logger.info("Refreshing access token")
            try:
                refreshed = await self._refresh_fn(refresh_token)
            except RefreshFailure:
                raise
            except Exception as error:
                raise RefreshFailure(f"Refresh request failed: {error!r}") from error

            await self._store.set(ACCESS_TOKEN_KEY, refreshed.access_token)
            if refreshed.refresh_token:
                await self._store.set(REFRESH_TOKEN_KEY, refreshed.refresh_token)
            if self._on_token is not None:
                self._on_token(refreshed.access_token)
        except asyncio.CancelledError:
            self._finish(error=RefreshFailure("Access token refresh was cancelled."))
            raise
        except Exception as error:
            if isinstance(error, RefreshFailure):
                logger.warning("Access token refresh failed: %s", error)
            self._finish(error=error)
            raise

        logger.info("Access token refreshed")
        self._finish(token=refreshed.access_token)
        return refreshed.access_token

    def _finish(self, *, token: str | None = None, error: Exception | None = None) -> None:
        waiters = self._waiters
        self._waiters = []
        self._refreshing = False

        if waiters:
            logger.info(
                "Releasing %s queued request(s) after refresh %s",
                len(waiters),
                "success" if error is None else "failure",
            )

        for waiter in waiters:
            if waiter.done():
                continue
            if error is None:
                waiter.set_result(token)
            else:
                waiter.set_exception(error)
