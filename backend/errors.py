class JourneyError(Exception):
    """Base error carrying the HTTP status it is rendered with."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_wire(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class MissingInputError(JourneyError):
    status_code = 400


class UnauthorizedError(JourneyError):
    status_code = 401


class NotFoundError(JourneyError):
    status_code = 404


class ConflictError(JourneyError):
    status_code = 409


class PayloadTooLargeError(JourneyError):
    status_code = 413


class UpstreamError(JourneyError):
    """Database or CDN failure."""


class UploadError(UpstreamError):
    pass
