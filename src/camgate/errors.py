"""Gateway error definitions for camgate."""


class GatewayError(Exception):
    """An error that maps directly onto an HTTP response.

    Attributes:
        message: Plain-text body sent to the client.
        http_status: The HTTP status code to return.
    """

    def __init__(self, message: str, http_status: int = 404) -> None:
        super().__init__(message)
        self.message = message
        self.http_status = http_status


# -- Request errors -----------------------------------------------------------


class AuthenticationFailure(GatewayError):
    """Missing, malformed or wrong Basic-Auth credentials."""

    def __init__(self, reason: str = "") -> None:
        super().__init__(message="Access denied", http_status=401)
        self.reason = reason


class NotFound(GatewayError):
    """Base for every error rendered as the plain 404 page."""

    def __init__(self) -> None:
        super().__init__(message="Not found.\n", http_status=404)


class RouteNotMatched(NotFound):
    """The request path is not one of the gateway's routes."""

    def __init__(self, path: str = "") -> None:
        super().__init__()
        self.path = path


class UnsupportedObjectType(NotFound):
    """The requested object has a suffix with no known content type."""

    def __init__(self, key: str = "") -> None:
        super().__init__()
        self.key = key


class StoreError(NotFound):
    """The object store failed to list or fetch.

    Absent keys and store outages are deliberately indistinguishable to the
    client; ``cause`` keeps the original exception for the server log.
    """

    def __init__(self, operation: str, target: str, cause: BaseException | None = None) -> None:
        super().__init__()
        self.operation = operation
        self.target = target
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.operation} {self.target!r} failed: {self.cause!r}"


class InternalError(GatewayError):
    """An unexpected failure inside the gateway."""

    def __init__(self) -> None:
        super().__init__(message="Internal error.\n", http_status=500)


# -- Startup errors -----------------------------------------------------------


class StartupError(Exception):
    """Fatal configuration problem detected before any listener starts."""
