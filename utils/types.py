"""
Type definitions and common data structures for the bot.

Directory and service boundary calls return a ``Result``: either ``Ok`` wrapping
the value or ``Err`` describing what kind of failure happened. Handlers map
``Err`` to a user-facing message (``helpers.error_messages.format_result_error``)
instead of letting ``None`` leak through.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Failure categories surfaced to command handlers."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    PERMISSION = "permission"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful boundary call."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """
    Failed boundary call.

    ``code`` optionally names the user-facing message to show; when absent the
    message is chosen from ``kind``.
    """

    kind: ErrorKind
    message: str
    cause: BaseException | None = None
    code: str | None = None

    @property
    def ok(self) -> bool:
        return False


Result: TypeAlias = Ok[T] | Err


def unavailable(message: str, cause: BaseException | None = None) -> Err:
    """Shorthand for a dependency-unavailable error."""
    return Err(ErrorKind.UNAVAILABLE, message, cause)


def rejected(kind: ErrorKind, code: str, message: str) -> Err:
    """Shorthand for a rule violation that maps to a specific user message."""
    return Err(kind, message, code=code)
