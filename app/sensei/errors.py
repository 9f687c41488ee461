from __future__ import annotations


class SenseiError(Exception):
    """
    Base for errors that map onto an HTTP response.
    `message` is safe to show to clients; anything internal goes in the log.
    """

    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(SenseiError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, errors: dict[str, str], message: str | None = None) -> None:
        super().__init__(message)
        self.errors = dict(errors)

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class Unauthenticated(SenseiError):
    status_code = 401
    message = "Unauthorized"


class NotFound(SenseiError):
    status_code = 404
    message = "Not found"

    def __init__(self, kind: str | None = None, ident: int | None = None) -> None:
        super().__init__()
        self.kind = kind
        self.ident = ident


class Forbidden(NotFound):
    """
    Resource exists but belongs to someone else.
    Rendered exactly like NotFound so callers can't probe for other users' ids.
    """

    def __init__(self, kind: str | None = None, ident: int | None = None, owner_id: int | None = None) -> None:
        super().__init__(kind, ident)
        self.owner_id = owner_id


class DuplicateUsername(SenseiError):
    status_code = 400
    message = "Username already exists"


class RateLimited(SenseiError):
    status_code = 429
    message = "Too many login attempts. Please wait 5 minutes."


class CsrfError(SenseiError):
    status_code = 400
    message = "CSRF token missing or invalid."


class StorageUnavailable(SenseiError):
    status_code = 500
