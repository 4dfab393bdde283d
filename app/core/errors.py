"""
Error taxonomy for the session engine.

Phase policy of the maintenance sweep:

- ``ConfigurationError``  — fatal, raised before any phase runs.
- ``AuthorizationError``  — bad trigger secret, rejected before any phase.
- ``TransientStoreError`` — store failure inside a phase; fatal only for
  materialization.
- ``InvariantViolation``  — never swallowed; logged as critical and
  surfaced on the sweep report even when the run succeeds.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


class SessionEngineError(Exception):
    """Base exception for the session engine."""

    pass


class ConfigurationError(SessionEngineError):
    """Raised when persistence configuration is missing."""

    pass


class AuthorizationError(SessionEngineError):
    """Raised when the maintenance trigger secret does not match."""

    pass


class TransientStoreError(SessionEngineError):
    """Raised when a store query or write fails.

    Attributes:
        operation: Repository operation that failed
        original_error: Underlying driver/ORM exception
    """

    def __init__(self, operation: str, original_error: Optional[Exception] = None) -> None:
        self.operation = operation
        self.original_error = original_error
        detail = f": {original_error}" if original_error is not None else ""
        super().__init__(f"Store operation '{operation}' failed{detail}")


class InvariantViolation(SessionEngineError):
    """Raised when persisted data breaks a data-model invariant."""

    pass


class SweepFailed(SessionEngineError):
    """Raised when a fatal sweep phase fails.

    Attributes:
        phase: Phase name that failed
        original_error: Exception raised by the phase
    """

    def __init__(self, phase: str, original_error: Exception) -> None:
        self.phase = phase
        self.original_error = original_error
        super().__init__(f"Phase '{phase}' failed: {original_error}")


class SweepAlreadyRunning(SessionEngineError):
    """Raised when another sweep holds the single-flight lease."""

    pass


@contextmanager
def store_operation(operation: str) -> Iterator[None]:
    """Translate ORM/driver failures into :class:`TransientStoreError`.

    Constraint violations propagate unchanged; callers treat them as
    conflicts, not outages.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        raise TransientStoreError(operation, e) from e
