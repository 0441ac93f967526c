"""Tagged error type for everything that goes wrong between the web client and its backend."""

from enum import Enum

import httpx


class ApiErrorKind(str, Enum):
    NETWORK = "network"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"


_STATUS_KINDS: dict[int, ApiErrorKind] = {
    400: ApiErrorKind.VALIDATION,
    404: ApiErrorKind.NOT_FOUND,
    409: ApiErrorKind.CONFLICT,
    422: ApiErrorKind.VALIDATION,
}


class ApiError(Exception):
    """
    A classified request failure.

    Attributes:
        kind (ApiErrorKind): What went wrong, used by the viewmodels to pick a recovery path.
        message (str): Human-readable text, e.g. "HTTP 409: Conflict".
        status_code (int | None): The HTTP status, None for transport failures and client-side validation.
        detail (str | None): The backend's own error message, if the response carried one.
    """

    def __init__(self, kind: ApiErrorKind, message: str, status_code: int | None = None, detail: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def __repr__(self) -> str:
        return f"ApiError(kind={self.kind.value!r}, status_code={self.status_code!r}, message={self.message!r})"

    @property
    def is_conflict(self) -> bool:
        return self.kind == ApiErrorKind.CONFLICT

    @property
    def is_not_found(self) -> bool:
        return self.kind == ApiErrorKind.NOT_FOUND

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """
        Build an error from a non-2xx response.

        The backend answers errors with {"status", "error", "message", "path", "timestamp"};
        its "message" is kept as detail when present.
        """
        kind = _STATUS_KINDS.get(response.status_code, ApiErrorKind.NETWORK)
        detail = None
        try:
            body = response.json()
            if isinstance(body, dict):
                detail = body.get("message") or body.get("error") or None
        except ValueError:
            detail = response.text[:200] or None
        return cls(
            kind=kind,
            message=f"HTTP {response.status_code}: {response.reason_phrase}",
            status_code=response.status_code,
            detail=detail,
        )

    @classmethod
    def from_transport_error(cls, error: httpx.TransportError) -> "ApiError":
        return cls(kind=ApiErrorKind.NETWORK, message=str(error) or error.__class__.__name__)

    @classmethod
    def validation(cls, message: str) -> "ApiError":
        return cls(kind=ApiErrorKind.VALIDATION, message=message)
