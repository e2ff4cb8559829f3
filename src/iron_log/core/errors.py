"""
Exception hierarchy for iron-log.

Every error raised by the core or the persistence layer derives from
IronLogError so callers (the CLI, tests) can translate them into messages.
"""


class IronLogError(Exception):
    """Base class for all iron-log errors."""


class ValidationError(IronLogError, ValueError):
    """Raised when input or stored data fails validation."""


class NotFoundError(IronLogError, LookupError):
    """Raised when a workout, exercise, set or template no longer exists."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class SessionStateError(IronLogError):
    """Raised when an operation violates the workout session lifecycle."""


class PersistenceError(IronLogError):
    """Raised when the history store cannot be read or written."""
