"""
Domain errors raised by the auth core and mapped to HTTP responses in api/errors.py.
Each carries the status and error code used in the response envelope.
"""


class ShopError(Exception):
    status = 500
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class UserNotFound(ShopError):
    status = 404
    code = "NOT_FOUND"
    message = "User does not exist"


class InvalidCredentials(ShopError):
    status = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class InvalidRefreshToken(ShopError):
    """Unknown, expired and already-used refresh tokens all look the same."""
    status = 401
    code = "INVALID_REFRESH_TOKEN"
    message = "Invalid refresh token"


class InvalidToken(ShopError):
    status = 401
    code = "INVALID_TOKEN"
    message = "Invalid token"


class TokenExpired(InvalidToken):
    code = "TOKEN_EXPIRED"
    message = "Token expired"


class DuplicateEmail(ShopError):
    status = 409
    code = "CONFLICT"
    message = "Email already registered"


class StoreFailure(ShopError):
    status = 500
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred"
