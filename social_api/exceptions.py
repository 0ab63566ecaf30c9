"""
Domain exceptions raised by the service layer.

Services never build HTTP responses; they raise one of the classes below
and the handlers registered in ``social_api.main`` translate them into the
JSON envelope with the matching status code.
"""


class ServiceError(Exception):
    """Base class for errors that map onto a client-facing status code."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """A required field is missing or malformed."""

    status_code = 400


class NotFoundError(ServiceError):
    """The referenced entity does not exist."""

    status_code = 404


class ConflictError(ServiceError):
    """A uniqueness rule was violated (duplicate email, already liked, ...)."""

    status_code = 409
