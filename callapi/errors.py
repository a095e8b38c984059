from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from .request import RequestDescriptor


class ApiError(RuntimeError):
    pass


class MissingPathParameter(ApiError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Missing path param: {key}")
        self.key = key


class TransportFailure(ApiError):
    """A request that failed on the wire or came back with a non-2xx status.

    ``status_code`` is ``None`` for network errors and timeouts.
    """

    def __init__(
        self,
        message: str,
        *,
        request: "RequestDescriptor",
        status_code: int | None = None,
        response: "httpx.Response | None" = None,
    ) -> None:
        super().__init__(message)
        self.request = request
        self.status_code = status_code
        self.response = response

    @property
    def is_auth_rejection(self) -> bool:
        return self.status_code == 401


class RefreshUnavailable(ApiError):
    def __init__(self, message: str = "No refresh token stored.") -> None:
        super().__init__(message)


class RefreshFailure(ApiError):
    pass
