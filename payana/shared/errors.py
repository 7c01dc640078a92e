"""Error taxonomy for ride orchestration.

PreconditionError is raised before any network call. TransitionRejected
and RemoteUnavailable come back from the remote service. A degraded
result (local fallback) is not an error and is carried on the value
itself, see FareEstimate.degraded.
"""


class PayanaError(Exception):
    """Base class for errors surfaced to the user as a notification."""

    status_code = 400

    def __init__(self, message: str) -> None:
        """Initialize PayanaError.

        Args:
            message: Human-readable notification text.
        """
        super().__init__(message)
        self.message = message


class PreconditionError(PayanaError):
    """Malformed or missing input, caught locally with no side effect."""

    status_code = 422


class TransitionRejected(PayanaError):
    """The service refused a ride status change.

    Attributes:
        http_status: HTTP status returned by the service.
        detail: Service-provided reason, if any.
    """

    status_code = 409

    def __init__(
        self,
        message: str,
        *,
        http_status: int | None = None,
        detail: str | None = None,
    ) -> None:
        """Initialize TransitionRejected.

        Args:
            message: Human-readable notification text.
            http_status: HTTP status returned by the service.
            detail: Service-provided reason.
        """
        super().__init__(message)
        self.http_status = http_status
        self.detail = detail


class RemoteUnavailable(PayanaError):
    """Network or transport failure, or an unusable service response."""

    status_code = 502
