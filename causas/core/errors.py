from __future__ import annotations


class ServiceError(ValueError):
    """Error raised by a service operation, carrying its wire code and HTTP status."""

    code = "internal"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class Unauthenticated(ServiceError):
    code = "unauthenticated"
    status_code = 401


class PermissionDenied(ServiceError):
    code = "permission-denied"
    status_code = 403


class InvalidArgument(ServiceError):
    code = "invalid-argument"
    status_code = 400


class NotFound(ServiceError):
    code = "not-found"
    status_code = 404


class FailedPrecondition(ServiceError):
    code = "failed-precondition"
    status_code = 409


class AlreadyExists(ServiceError):
    code = "already-exists"
    status_code = 409


class Internal(ServiceError):
    code = "internal"
    status_code = 500
