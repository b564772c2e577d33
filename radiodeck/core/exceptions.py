"""Application errors.

Every error carries a single-line, user-presentable ``message``. The HTTP
layer turns them into ``{"error": message}`` bodies; the client library
raises the last two directly.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    status_code = 404


class ValidationError(AppError):
    status_code = 422


class PersistenceError(AppError):
    status_code = 500


class ApiError(AppError):
    """The RadioDeck server answered with an error body, or could not be reached."""

    status_code = 502


class PlaybackError(AppError):
    """The audio engine could not open a stream."""
