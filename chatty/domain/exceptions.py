# chatty/domain/exceptions.py


class ChattyError(Exception):
    status_code: int = 400
    code: str = "BAD_REQUEST"
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(ChattyError):
    """Missing, invalid or stale session. Clients log out on this one."""

    status_code = 401
    code = "UNAUTHENTICATED"
    default_detail = "Unauthenticated"


class InvalidToken(Unauthenticated):
    code = "INVALID_TOKEN"
    default_detail = "Invalid session token"


class StaleSession(Unauthenticated):
    code = "STALE_SESSION"
    default_detail = "Session is no longer valid"


class ForbiddenError(ChattyError):
    status_code = 403
    code = "FORBIDDEN"
    default_detail = "Unauthorized"


class NotFound(ChattyError):
    status_code = 404
    code = "NOT_FOUND"
    default_detail = "Not found"


class InvalidCredentials(ChattyError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_detail = "Email or password incorrect"


class EmailTaken(ChattyError):
    status_code = 400
    code = "EMAIL_TAKEN"
    default_detail = "Email already exists"


class InvalidCursor(ChattyError):
    code = "INVALID_CURSOR"
    default_detail = "Invalid cursor"


class StorageFailure(ChattyError):
    status_code = 503
    code = "STORAGE_FAILURE"
    default_detail = "Storage is unavailable, try again"
