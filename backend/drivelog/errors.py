"""
Exception hierarchy for the drive logger.

Missing position fixes are not errors: the sampling step simply skips the
tick. Everything here is non-fatal to the process.
"""


class DriveLogError(Exception):
    """Base class for drive logger errors."""


class PersistenceFailure(DriveLogError):
    """A session could not be serialized or written to storage."""


class SessionNotFound(DriveLogError):
    """No persisted session exists for the given reference."""


class InvalidSessionRef(DriveLogError):
    """A session reference is not a bare session file name."""


class SessionAlreadySealed(DriveLogError):
    """A finalized session was mutated or sealed a second time."""


class CounterError(DriveLogError):
    """The durable session counter could not be read or written."""
