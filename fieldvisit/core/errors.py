"""
Error taxonomy shared by routes, services and dependencies.

Every error carries a short human-readable message and the HTTP status it
maps to; ``fieldvisit.main`` renders them as ``{"error": message}``.
"""


class AppError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class DependencyError(AppError):
    """Identity, storage or geocoding provider failure."""
    status_code = 500
