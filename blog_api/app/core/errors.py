"""
Error hierarchy for the blog backend.

Every failure a public operation can report is one of the classes
below.  Services raise them; ``api.error_handlers`` turns them into a
JSON envelope with the matching HTTP status.  Raw ``sqlite3`` errors
and token decoding errors never leave the service layer.

Messages are written for end users: they never include stack traces,
SQL or (for authentication) whether the username exists.
"""

from typing import Any, Dict


class BlogError(Exception):
    """Base exception for all reportable blog errors."""

    code = "BLOG_ERROR"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        """Convert to the REST error envelope."""
        return {"error": {"code": self.code, "message": self.message}}


class ValidationError(BlogError):
    """A required field is missing or a value is out of range."""

    code = "VALIDATION_ERROR"
    http_status = 400


class DuplicateUsername(BlogError):
    code = "DUPLICATE_USERNAME"
    http_status = 409

    def __init__(self, username: str):
        super().__init__(f"Username '{username}' is already taken")
        self.username = username


class AuthenticationFailure(BlogError):
    """Login failed.  Same message whether the user exists or not."""

    code = "AUTHENTICATION_FAILED"
    http_status = 401

    def __init__(self, message: str = "Wrong credentials"):
        super().__init__(message)


class InvalidToken(BlogError):
    """Session token missing, malformed or carrying a bad signature."""

    code = "INVALID_TOKEN"
    http_status = 401

    def __init__(self, message: str = "Invalid or missing session token"):
        super().__init__(message)


class NotFound(BlogError):
    code = "NOT_FOUND"
    http_status = 404


class Forbidden(BlogError):
    """Caller is authenticated but not allowed to perform the action."""

    code = "FORBIDDEN"
    http_status = 403

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotAuthor(Forbidden):
    code = "NOT_AUTHOR"

    def __init__(self, message: str = "You are not the author of this post"):
        super().__init__(message)


class StorageError(BlogError):
    """The database could not complete the operation."""

    code = "STORAGE_ERROR"
    http_status = 503

    def __init__(self, message: str = "Storage is temporarily unavailable"):
        super().__init__(message)
