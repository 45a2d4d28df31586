"""Error hierarchy for the proxy and the views.

Every error carries the message shown to the caller and the HTTP status the
proxy answers with. TransientError subclasses are the only ones the booking
feed treats as network trouble; validation errors are never retried.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(3))
    def load_bookings():
        ...
"""


class NurseVisitError(Exception):
    """Base exception for all proxy and view errors."""

    status_code = 500

    def __init__(self, message: str, *, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class RequestValidationError(NurseVisitError):
    """Request rejected locally before anything is forwarded.

    Examples: missing required field, unsupported image type, image too large.
    """

    status_code = 400


class ConfigurationError(NurseVisitError):
    """Required environment configuration is missing."""

    pass


class UpstreamError(NurseVisitError):
    """The external script or the storage API did not deliver."""

    pass


class UpstreamFormatError(UpstreamError):
    """The external script answered with something that is not JSON.

    An HTML body usually means the script URL points at a login or error page,
    i.e. the deployment is misconfigured.
    """

    def __init__(
        self, message: str, *, html: bool = False, details: str | None = None
    ) -> None:
        super().__init__(message, details=details)
        self.html = html


class UpstreamRejectedError(UpstreamError):
    """Well-formed response with success:false."""

    pass


class UpstreamUnavailableError(UpstreamError):
    """The proxy could not reach the external script at all."""

    pass


class UploadError(UpstreamError):
    """Drive upload or permission change failed."""

    pass


class TransientError(NurseVisitError):
    """Temporary failure that may succeed on retry."""

    pass


class FetchTimeoutError(TransientError):
    """Request cancelled by the client-side timeout."""

    pass


class NetworkError(TransientError):
    """Connection could not be established or was dropped."""

    pass
