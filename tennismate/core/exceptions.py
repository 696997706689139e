"""
Domain exceptions raised for caller errors.

Store failures are not part of this taxonomy: the matching, chat and counter
services log them and report them through the ``error`` field of their results
(or a None return for mutations); the API maps anything left over to 503.
"""

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class TennisMateError(Exception):
    """Base class for domain errors."""


class SelfSwipeError(TennisMateError):
    """Raised when a user tries to swipe on their own profile."""


class MatchNotFoundError(TennisMateError):
    pass


class NotParticipantError(TennisMateError):
    """Raised when a user acts on a match they are not part of."""


class ProposalNotFoundError(TennisMateError):
    pass


class NotificationNotFoundError(TennisMateError):
    pass


class InvalidTransitionError(TennisMateError):
    """Raised for a proposal status change the state machine does not allow."""

    def __init__(self, current: str, requested: str, reason: str = ""):
        self.current = current
        self.requested = requested
        message = f"Cannot move proposal from {current} to {requested}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


def is_unique_violation(exc: Exception) -> bool:
    """
    Tell whether an IntegrityError comes from a unique constraint.

    asyncpg exposes the SQLSTATE on the wrapped driver error; SQLite only
    reports it in the message.
    """
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION
    return "unique" in str(exc).lower()
