from __future__ import annotations

import urllib.parse
from dataclasses import dataclass, field

from .config import ApiConfig, Payload, PathParameter, QueryParameter, Scalar
from .constants import DEFAULT_TIMEOUT_MS
from .errors import MissingPathParameter


@dataclass
class RequestDescriptor:
    """A fully resolved outbound request.

    Only ``headers`` and ``retried`` change after construction: the
    credential header is set before each send and the retried marker is
    set once, just before a post-refresh replay.
    """

    url: str
    method: str
    timeout: int = DEFAULT_TIMEOUT_MS
    headers: dict[str, str] = field(default_factory=dict)
    require_auth: bool = False
    retried: bool = False
    json: Payload | None = None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    def mark_retried(self, access_token: str) -> None:
        self.headers["Authorization"] = f"Bearer {access_token}"
        self.retried = True


def _stringify(value: Scalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _non_null_items(values: dict[str, Scalar] | None) -> list[tuple[str, str]]:
    if not values:
        return []
    return [(key, _stringify(value)) for key, value in values.items() if value is not None]


def resolve_path(template: str, path_params: PathParameter | None = None) -> str:
    path = template
    if not path_params:
        return path
    for key, value in path_params.items():
        if value is None:
            raise MissingPathParameter(key)
        path = path.replace(f":{key}", _stringify(value), 1)
    return path


def build_query(
    query_params: QueryParameter | None = None,
    extra: Payload | None = None,
) -> str:
    # Entries from extra follow the query entries; duplicate keys are kept.
    return urllib.parse.urlencode(_non_null_items(query_params) + _non_null_items(extra))


def build_request(
    config: ApiConfig,
    payload: Payload | None = None,
    path_params: PathParameter | None = None,
    query_params: QueryParameter | None = None,
    *,
    default_timeout: int = DEFAULT_TIMEOUT_MS,
) -> RequestDescriptor:
    path = resolve_path(config.endpoint, path_params)
    query = build_query(query_params, payload if config.method == "GET" else None)
    url = f"{path}?{query}" if query else path

    descriptor = RequestDescriptor(
        url=url,
        method=config.method,
        timeout=config.timeout if config.timeout is not None else default_timeout,
        headers=dict(config.headers),
        require_auth=config.require_auth,
    )

    if payload and config.method != "GET":
        descriptor.json = dict(payload)

    return descriptor
