# campusnet/core/exceptions.py

class AppError(Exception):
    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(AppError):
    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(message, status_code=400)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=404)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class MissingCredentialError(UnauthorizedError):
    def __init__(self, message: str = "Missing token") -> None:
        super().__init__(message)


class InvalidCredentialError(UnauthorizedError):
    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class TokenRevokedError(UnauthorizedError):
    def __init__(self, message: str = "Token revoked") -> None:
        super().__init__(message)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status_code=403)


class TransientStoreError(AppError):
    def __init__(self, message: str = "Storage temporarily unavailable") -> None:
        super().__init__(message, status_code=503)


class RateLimitedError(AppError):
    def __init__(self, message: str = "Too many requests", *, retry_after: int = 1) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = max(1, int(retry_after))


class ConfigError(Exception):
    """Fatal startup condition (missing signing key, bad store config)."""
