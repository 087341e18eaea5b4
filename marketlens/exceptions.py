"""Exceptions raised by the analysis engines."""


class InsufficientDataError(ValueError):
    """Raised when a computation cannot produce any result from the input.

    Short histories degrade to documented fallbacks instead; this is only
    raised when there is nothing to analyze at all.
    """
