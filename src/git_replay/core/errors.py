"""Errors raised while replaying history.

Every error is fatal for the run; the CLI reports it and exits non-zero.
"""


class ReplayError(Exception):
    """Base class for all replay failures."""


class DecodeError(ReplayError):
    """A record in the replay log could not be decoded."""

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Malformed record on line {line_number}: {reason}")


class NoHistoryFound(ReplayError):
    """The destination branch has no readable tip commit."""


class OutOfOrderReplay(ReplayError):
    """A record predates the destination branch tip."""

    def __init__(self, timestamp: int, watermark: int, summary: str = ""):
        self.timestamp = timestamp
        self.watermark = watermark
        detail = f" ({summary})" if summary else ""
        super().__init__(
            f"Commit at {timestamp}{detail} is older than the destination tip "
            f"at {watermark}; use --force to replay anyway"
        )


class ContentFetchError(ReplayError):
    """Source content or metadata could not be retrieved."""


class RepositoryMutationError(ReplayError):
    """A destination repository operation failed."""
