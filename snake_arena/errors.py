from __future__ import annotations


class ScoreboardError(Exception):
    """Base for failures surfaced to API callers as `{status: "error", message}`."""

    status_code = 500
    public_message = "Scoreboard is unavailable, try again later"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ClientInputError(ScoreboardError):
    status_code = 400
    public_message = "Invalid request"


class MissingContext(ClientInputError):
    public_message = "context id is required but missing from request"


class InvalidSubmission(ClientInputError):
    public_message = "Score must be a non-negative number"


class ConcurrentUpdateError(ScoreboardError):
    """A compare-and-set loop ran out of attempts against concurrent writers."""
