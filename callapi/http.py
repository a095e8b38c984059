from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

import httpx

from .constants import ACCESS_TOKEN_KEY, LOGGER
from .request import RequestDescriptor

if TYPE_CHECKING:
    from tokenauth.token_store import CredentialStore

RequestHook = Callable[[RequestDescriptor], Awaitable[None]]


def friendly_error_message(status_code: int | None) -> str:
    if status_code is None:
        return "Request failed before a response was received."
    if status_code == 401:
        return "Authentication failed. The access token may have expired."
    if status_code == 403:
        return "You don't have permission to perform this action."
    if status_code == 404:
        return "The requested resource was not found."
    if status_code == 429:
        return "Rate limit exceeded. Please try again later."
    if status_code >= 500:
        return "The API is experiencing issues. Please try again later."
    return f"API request failed with status {status_code}."


def bearer_token_hook(store: "CredentialStore") -> RequestHook:
    async def inject_access_token(descriptor: RequestDescriptor) -> None:
        # Replays already carry the token they were released with.
        if descriptor.retried:
            return
        token = await store.get(ACCESS_TOKEN_KEY)
        if token:
            descriptor.headers["Authorization"] = f"Bearer {token}"

    return inject_access_token


def response_logging_hooks(debug_enabled: bool) -> dict[str, list]:
    async def log_request(request: httpx.Request) -> None:
        if not debug_enabled:
            return
        LOGGER.info("API request %s %s", request.method, request.url)

    async def log_response(response: httpx.Response) -> None:
        if not debug_enabled:
            return
        LOGGER.info(
            "API response %s %s -> %s",
            response.request.method,
            response.request.url,
            response.status_code,
        )
        if response.status_code >= 400:
            body = await response.aread()
            text = body.decode("utf-8", errors="replace")
            if len(text) > 1000:
                text = text[:1000] + "...<truncated>"
            LOGGER.warning("API error body: %s", text)

    return {"request": [log_request], "response": [log_response]}
