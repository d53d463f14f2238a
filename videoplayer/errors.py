"""Domain errors raised by the store and membership layers.

Each error carries the HTTP status the API layer answers with, so the
FastAPI app needs a single handler for the whole family.
"""


class VideoPlayerError(Exception):
    """Base class for all video player errors."""

    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DuplicateKeyError(VideoPlayerError):
    """A video record with the same asset id already exists."""

    status_code = 409


class InvalidNameError(VideoPlayerError):
    """Playlist name is empty or whitespace only."""

    status_code = 422


class NotFoundError(VideoPlayerError):
    """The referenced video or playlist no longer exists."""

    status_code = 404


class PersistenceError(VideoPlayerError):
    """Committing to the database failed; the session was rolled back."""

    status_code = 503


class InvalidValueError(VideoPlayerError):
    """A duration or playback position is negative or not a finite number."""

    status_code = 422
