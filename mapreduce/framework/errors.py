class ReduceTaskError(Exception):
    """Base class for conditions that abort a reduce task attempt.

    None of these are retried here. The caller decides whether to re-run
    the task.
    """


class InvalidTaskError(ReduceTaskError, ValueError):
    """Task parameters violate a precondition (e.g. n_map <= 0)."""


class InputUnavailableError(ReduceTaskError):
    """An intermediate file is missing or cannot be opened."""

    def __init__(self, path, reason=None):
        self.path = path
        self.reason = reason
        message = f"Intermediate file unavailable: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class DecodeError(ReduceTaskError):
    """A record in an intermediate file is malformed or truncated."""

    def __init__(self, source, reason, offset=None):
        self.source = source
        self.reason = reason
        self.offset = offset
        location = source if offset is None else f"{source} at offset {offset}"
        super().__init__(f"Cannot decode record in {location}: {reason}")


class OutputWriteError(ReduceTaskError):
    """The output file cannot be created, written or finalized."""

    def __init__(self, path, reason=None):
        self.path = path
        self.reason = reason
        message = f"Unable to write output file: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ReduceFunctionError(ReduceTaskError):
    """The user reduce function failed for a key."""

    def __init__(self, key, reason):
        self.key = key
        self.reason = reason
        super().__init__(f"Reduce function failed for key {key!r}: {reason}")
