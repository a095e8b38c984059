from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable

import httpx
from pydantic import TypeAdapter

from tokenauth.coordinator import RefreshCoordinator, RefreshFn
from tokenauth.refresh import request_token_refresh
from tokenauth.token_store import CredentialStore, FileCredentialStore

from .config import (
    ENDPOINTS,
    ApiConfig,
    Payload,
    PathParameter,
    QueryParameter,
    load_endpoint_table,
)
from .constants import DEFAULT_TIMEOUT_MS, LOGGER
from .env import load_env, load_settings, setup_logging, validate_env
from .errors import RefreshUnavailable, TransportFailure
from .http import RequestHook, bearer_token_hook, friendly_error_message, response_logging_hooks
from .request import RequestDescriptor, build_request


def parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    """Dispatches configured API calls and replays them after a token refresh.

    Every send runs the pre-request hooks in order (by default only the
    bearer token injection), then the HTTP call. A 401 on an auth-required
    request that has not been replayed yet goes to the refresh coordinator;
    the request is replayed once with the new token.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        refresh_endpoint: str,
        base_url: str = "",
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        endpoints: dict[str, ApiConfig] | None = None,
        request_hooks: Iterable[RequestHook] | None = None,
        refresh_fn: RefreshFn | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        debug: bool = False,
    ) -> None:
        self._timeout_ms = timeout_ms
        self._endpoints = {**ENDPOINTS, **(endpoints or {})}
        if request_hooks is None:
            self._request_hooks = [bearer_token_hook(store)]
        else:
            self._request_hooks = list(request_hooks)

        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout_ms / 1000,
            transport=transport,
            event_hooks=response_logging_hooks(debug),
        )
        # Separate client: the refresh call must not carry the default
        # Authorization header written after each refresh.
        self._refresh_http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_ms / 1000,
            transport=transport,
            event_hooks=response_logging_hooks(debug),
        )

        if refresh_fn is None:

            async def refresh_fn(refresh_token: str):
                return await request_token_refresh(
                    refresh_endpoint,
                    refresh_token,
                    timeout_ms=timeout_ms,
                    client=self._refresh_http,
                )

        self.coordinator = RefreshCoordinator(
            store,
            refresh_fn,
            on_token=self._set_default_token,
        )

    @property
    def default_headers(self) -> httpx.Headers:
        return self._http.headers

    def _set_default_token(self, access_token: str) -> None:
        self._http.headers["Authorization"] = f"Bearer {access_token}"

    async def submit(
        self,
        config: ApiConfig,
        payload: Payload | None = None,
        path_params: PathParameter | None = None,
        query_params: QueryParameter | None = None,
        *,
        response_type: Any = None,
    ) -> Any:
        descriptor = build_request(
            config,
            payload,
            path_params,
            query_params,
            default_timeout=self._timeout_ms,
        )
        response = await self.send(descriptor)
        body = parse_body(response)
        if response_type is None:
            return body
        return TypeAdapter(response_type).validate_python(body)

    async def call(
        self,
        name: str,
        payload: Payload | None = None,
        path_params: PathParameter | None = None,
        query_params: QueryParameter | None = None,
        *,
        response_type: Any = None,
    ) -> Any:
        config = self._endpoints[name]
        return await self.submit(
            config,
            payload,
            path_params,
            query_params,
            response_type=response_type,
        )

    async def send(self, descriptor: RequestDescriptor) -> httpx.Response:
        for hook in self._request_hooks:
            await hook(descriptor)

        try:
            response = await self._http.request(
                descriptor.method,
                descriptor.url,
                headers=descriptor.headers,
                json=descriptor.json,
                timeout=descriptor.timeout_seconds,
            )
        except httpx.HTTPError as error:
            raise TransportFailure(
                f"{friendly_error_message(None)} ({error!r})",
                request=descriptor,
            ) from error

        if response.is_success:
            return response

        failure = TransportFailure(
            friendly_error_message(response.status_code),
            request=descriptor,
            status_code=response.status_code,
            response=response,
        )
        if failure.is_auth_rejection and descriptor.require_auth and not descriptor.retried:
            return await self._replay_after_refresh(failure)
        raise failure

    async def _replay_after_refresh(self, failure: TransportFailure) -> httpx.Response:
        try:
            access_token = await self.coordinator.on_auth_failure()
        except RefreshUnavailable:
            raise failure from None

        descriptor = failure.request
        descriptor.mark_retried(access_token)
        LOGGER.info("Replaying %s %s with refreshed token", descriptor.method, descriptor.url)
        return await self.send(descriptor)

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._refresh_http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def create_client() -> ApiClient:
    load_env()
    setup_logging()
    validate_env()
    settings = load_settings()

    endpoints_file = os.getenv("API_ENDPOINTS_FILE", "").strip()
    endpoints = load_endpoint_table(Path(endpoints_file)) if endpoints_file else {}

    return ApiClient(
        store=FileCredentialStore(settings.token_store_path),
        refresh_endpoint=settings.refresh_endpoint,
        base_url=settings.base_url,
        timeout_ms=settings.timeout_ms,
        endpoints=endpoints,
        debug=settings.debug,
    )
