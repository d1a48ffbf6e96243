"""Typed errors raised by the lifecycle, records and identity services.

Each error carries the HTTP status the API layer renders it with.
"""


class LifecycleError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LifecycleError):
    status_code = 400


class NotFoundError(LifecycleError):
    status_code = 404


class ConflictError(LifecycleError):
    status_code = 409


class InvalidStateError(LifecycleError):
    status_code = 409


class AuthorizationError(LifecycleError):
    status_code = 403


class AccountDeactivated(LifecycleError):
    status_code = 403

    def __init__(self, message: str = "Account has been deactivated.") -> None:
        super().__init__(message)


class Unauthenticated(LifecycleError):
    status_code = 401

    def __init__(self, message: str = "Not authenticated.") -> None:
        super().__init__(message)


class PartialFailureError(LifecycleError):
    status_code = 500
