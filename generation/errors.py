"""
Error taxonomy for the generation gateway.

Every failure inside the gateway is raised as one of these exceptions and
converted to an ErrorBody at the orchestrator boundary. Nothing else is
allowed to leave the gateway.
"""

from generation.schemas import ErrorBody, ErrorKind


class GatewayError(Exception):
    kind: ErrorKind = ErrorKind.BACKEND_ERROR
    status_code: int = 502

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> ErrorBody:
        return ErrorBody(kind=self.kind, message=self.message)


class RateLimitedError(GatewayError):
    """Admission denied; back off and retry later."""
    kind = ErrorKind.RATE_LIMITED
    status_code = 429


class InvalidRequestError(GatewayError):
    """Caller input fails a precondition. Rejected before any backend cost."""
    kind = ErrorKind.INVALID_REQUEST
    status_code = 400


class BackendError(GatewayError):
    """The backend call itself failed (network, auth, quota)."""
    kind = ErrorKind.BACKEND_ERROR
    status_code = 502


class MalformedResponseError(GatewayError):
    """Backend replied with text that is not parseable JSON."""
    kind = ErrorKind.MALFORMED_RESPONSE
    status_code = 502


class SchemaViolationError(GatewayError):
    """Backend replied with JSON that does not match the paper contract."""
    kind = ErrorKind.SCHEMA_VIOLATION
    status_code = 502


_BY_KIND = {
    cls.kind: cls
    for cls in (
        RateLimitedError,
        InvalidRequestError,
        BackendError,
        MalformedResponseError,
        SchemaViolationError,
    )
}


def status_for(kind: ErrorKind) -> int:
    """HTTP status code used when a failure of this kind is returned."""
    return _BY_KIND[kind].status_code
