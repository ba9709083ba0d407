class AppError(Exception):
    """Base error. `message` is shown to the user as-is."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BackendError(AppError):
    """The hosted backend (or its in-memory stand-in) rejected a call."""


class NotAuthenticated(AppError):
    pass


class NotOnboarded(AppError):
    pass


class PermissionDenied(AppError):
    pass
