from __future__ import annotations

from dataclasses import dataclass

import httpx

from callapi.constants import DEFAULT_TIMEOUT_MS
from callapi.errors import RefreshFailure


@dataclass
class RefreshResponse:
    access_token: str
    refresh_token: str | None = None

    @classmethod
    def from_payload(cls, payload: object) -> "RefreshResponse":
        if not isinstance(payload, dict):
            raise RefreshFailure("Refresh token response invalid")

        access_token = payload.get("accessToken")
        if not isinstance(access_token, str) or not access_token:
            raise RefreshFailure("Refresh token response invalid")

        refresh_token = payload.get("refreshToken")
        if not isinstance(refresh_token, str) or not refresh_token:
            refresh_token = None

        return cls(access_token=access_token, refresh_token=refresh_token)


async def request_token_refresh(
    refresh_url: str,
    refresh_token: str,
    *,
    base_url: str = "",
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    client: httpx.AsyncClient | None = None,
) -> RefreshResponse:
    """POST the stored refresh token and parse the new access token.

    Bypasses ``ApiClient.send``, so a 401 from the refresh endpoint never
    re-enters the refresh path. Every failure surfaces as ``RefreshFailure``.
    """
    own_client = client is None
    http_client = client or httpx.AsyncClient(base_url=base_url)

    try:
        response = await http_client.post(
            refresh_url,
            json={"refreshToken": refresh_token},
            timeout=timeout_ms / 1000,
        )
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPStatusError as error:
        detail = error.response.text
        raise RefreshFailure(
            f"Refresh request failed with status {error.response.status_code}: {detail}"
        ) from error
    except httpx.HTTPError as error:
        raise RefreshFailure(f"Refresh request failed: {error!r}") from error
    except ValueError as error:
        raise RefreshFailure("Refresh token response invalid") from error
    finally:
        if own_client:
            await http_client.aclose()

    return RefreshResponse.from_payload(payload)
