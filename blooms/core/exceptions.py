"""Application exceptions raised by the auth core and mapped to HTTP responses in ``blooms.main``."""


class BloomsError(Exception):
    """Base exception for errors reported back to the API caller."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConflictError(BloomsError):
    """Raised when a write would violate a uniqueness rule (duplicate email)."""

    status_code = 409


class UnauthorizedError(BloomsError):
    """Raised when credentials are rejected or the account may not sign in."""

    status_code = 401


class ForbiddenError(BloomsError):
    """Raised when an authenticated caller lacks the required role."""

    status_code = 403


class UserNotFoundError(BloomsError):
    status_code = 404

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__("User not found")
