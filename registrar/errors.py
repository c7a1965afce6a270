"""Business-rule failures raised by the service layer."""
from __future__ import annotations


class RegistrarError(RuntimeError):
    """Base class for deterministic failures; never retried."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(RegistrarError):
    """Raised when arguments or rows are rejected before or by the store."""

    status_code = 400


class UnauthorizedError(RegistrarError):
    """Raised when the request carries no usable identity."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class RoleMismatchError(UnauthorizedError):
    """Raised when the identity holds no profile for the required role."""


class ForbiddenError(RegistrarError):
    """Raised when the actor lacks ownership of the target record."""

    status_code = 403


class NotFoundError(RegistrarError):
    status_code = 404


class ConflictError(RegistrarError):
    """Raised on a uniqueness violation, from the pre-check or the store."""

    status_code = 409


__all__ = [
    "ConflictError",
    "ForbiddenError",
    "InvalidInputError",
    "NotFoundError",
    "RegistrarError",
    "RoleMismatchError",
    "UnauthorizedError",
]
