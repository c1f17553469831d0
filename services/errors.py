"""
Errors raised by the allocation engine and chart edit sessions.

All of them are recoverable validation failures: the routes in app.py turn
them into a 400 response and leave the session open.
"""


class AllocationError(ValueError):
    """Base class for every allocation / session validation failure."""


class DuplicateLabelError(AllocationError):
    pass


class EmptyLabelError(AllocationError):
    pass


class IndexOutOfRangeError(AllocationError, IndexError):
    pass


class MissingNameError(AllocationError):
    pass


class IncompleteAllocationError(AllocationError):
    pass


class SessionStateError(AllocationError):
    """Operation not allowed in the session's current state."""
