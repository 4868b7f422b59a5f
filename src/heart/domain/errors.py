class HeartGameError(Exception):
    """Base class for every error raised by the Heart game."""


# --- Puzzle acquisition ---
class PuzzleUnavailable(HeartGameError):
    """No puzzle could be loaded. The session stays in INITIALIZING."""


class SourceUnavailable(PuzzleUnavailable):
    """Network failure or non-success HTTP status from the puzzle provider."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(PuzzleUnavailable):
    """The provider answered, but without the expected fields."""


# --- Score persistence ---
class ScoreStoreError(HeartGameError):
    pass


class NotFound(ScoreStoreError):
    def __init__(self, identity: str) -> None:
        super().__init__(f"No score record for identity '{identity}'")
        self.identity = identity


class PersistenceError(ScoreStoreError):
    pass


# --- Identity ---
class AuthenticationError(HeartGameError):
    pass
