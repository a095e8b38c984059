import asyncio

import httpx
import pytest

from callapi.client import ApiClient
from tokenauth.token_store import MemoryCredentialStore

BASE_URL = "https://api.example.com"
REFRESH_PATH = "/auth/refresh"


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore(
        {"access_token": "old-access", "refresh_token": "stored-refresh"}
    )


@pytest.fixture
def make_client(store):
    def _make(handler, **kwargs) -> ApiClient:
        kwargs.setdefault("store", store)
        return ApiClient(
            refresh_endpoint=REFRESH_PATH,
            base_url=BASE_URL,
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    return _make


@pytest.fixture
def wait_for_pending():
    async def _wait(coordinator, count: int) -> None:
        async def _poll() -> None:
            while coordinator.pending < count:
                await asyncio.sleep(0)

        await asyncio.wait_for(_poll(), timeout=1)

    return _wait
