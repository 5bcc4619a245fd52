"""Errors raised by the ordering domain that Protean has no counterpart for.

Bad input raises ``protean.exceptions.ValidationError``, missing records raise
``ObjectNotFoundError`` and operations that do not fit the current state of a
record raise ``InvalidStateError``.
"""


class ForbiddenError(Exception):
    """The caller does not own the record it is trying to act on."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message
