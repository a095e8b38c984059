from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .constants import HTTP_METHODS

Scalar = Union[str, int, float, bool, None]
Payload = dict[str, Scalar]
PathParameter = dict[str, Scalar]
QueryParameter = dict[str, Scalar]

CONFIG_FIELDS = {
    "endpoint",
    "method",
    "timeout",
    "headers",
    "require_auth",
    "retry_on_auth_failure",
}


@dataclass(frozen=True)
class ApiConfig:
    endpoint: str
    method: str
    timeout: int | None = None
    headers: dict[str, str] = field(default_factory=dict)
    require_auth: bool = False
    # Not consulted by the refresh path; every auth-required request is
    # eligible for a single replay.
    retry_on_auth_failure: bool = True

    def __post_init__(self) -> None:
        method = self.method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method!r}")
        object.__setattr__(self, "method", method)
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be a positive number of milliseconds.")


ENDPOINTS: dict[str, ApiConfig] = {
    "USER": ApiConfig(endpoint="/users", method="GET"),
}


def _config_from_json(name: str, raw: object) -> ApiConfig:
    if not isinstance(raw, dict):
        raise RuntimeError(f"Endpoint {name!r} must be a JSON object.")

    unknown = set(raw) - CONFIG_FIELDS
    if unknown:
        raise RuntimeError(
            f"Endpoint {name!r} has unknown fields: {', '.join(sorted(unknown))}"
        )

    endpoint = raw.get("endpoint")
    method = raw.get("method")
    if not isinstance(endpoint, str) or not endpoint:
        raise RuntimeError(f"Endpoint {name!r}.endpoint must be a non-empty string.")
    if not isinstance(method, str):
        raise RuntimeError(f"Endpoint {name!r}.method must be a string.")

    timeout = raw.get("timeout")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, int)):
        raise RuntimeError(f"Endpoint {name!r}.timeout must be an integer.")

    headers = raw.get("headers", {})
    if not isinstance(headers, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in headers.items()
    ):
        raise RuntimeError(f"Endpoint {name!r}.headers must map strings to strings.")

    flags: dict[str, bool] = {}
    for flag in ("require_auth", "retry_on_auth_failure"):
        if flag not in raw:
            continue
        if not isinstance(raw[flag], bool):
            raise RuntimeError(f"Endpoint {name!r}.{flag} must be a boolean.")
        flags[flag] = raw[flag]

    try:
        return ApiConfig(
            endpoint=endpoint,
            method=method,
            timeout=timeout,
            headers=dict(headers),
            **flags,
        )
    except ValueError as error:
        raise RuntimeError(f"Endpoint {name!r} is invalid: {error}") from error


def load_endpoint_table(path: Path) -> dict[str, ApiConfig]:
    if not path.exists():
        return {}

    try:
        raw_table = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise RuntimeError(f"Invalid JSON in endpoint table file: {path}") from error

    if not isinstance(raw_table, dict):
        raise RuntimeError("Endpoint table must be a JSON object.")

    return {name: _config_from_json(name, raw) for name, raw in raw_table.items()}
