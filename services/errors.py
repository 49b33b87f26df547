"""
Domain errors raised by the credential core.

Each carries the HTTP status and envelope code that api.errors renders, so
handlers never need to translate them one by one.
"""


class AuthError(Exception):
    status = 400
    error = "BAD_REQUEST"
    message = "Bad request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class DuplicateIdentity(AuthError):
    # Same message whether the id or the email collided
    status = 409
    error = "CONFLICT"
    message = "Email exists"


EmailAlreadyExists = DuplicateIdentity


class InvalidCredentials(AuthError):
    status = 401
    error = "UNAUTHORIZED"
    message = "Invalid credentials"


class Unauthenticated(AuthError):
    status = 401
    error = "UNAUTHORIZED"
    message = "Not authenticated"


class InvalidAccessToken(AuthError):
    status = 401
    error = "UNAUTHORIZED"
    message = "Invalid token"


class InvalidSignature(InvalidAccessToken):
    pass


class AccessTokenExpired(InvalidAccessToken):
    message = "Token expired"


class SessionExpiredOrInvalid(AuthError):
    status = 403
    error = "FORBIDDEN"
    message = "Session expired or invalid, please log in again"


class RefreshTokenNotFound(SessionExpiredOrInvalid):
    pass


class RefreshTokenExpired(SessionExpiredOrInvalid):
    pass


class UserNotFound(AuthError):
    status = 404
    error = "NOT_FOUND"
    message = "User not found"


class StorageError(AuthError):
    status = 500
    error = "INTERNAL_ERROR"
    message = "An unexpected error occurred"
