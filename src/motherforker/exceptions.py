"""
Custom exception classes for the repository migration tool.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Issue


class MigrationError(Exception):
    """Base exception for migration errors."""


class MalformedIssueError(MigrationError):
    """Raised when a source issue record violates the data model."""


class OrderingError(MigrationError):
    """Raised when source issues do not arrive in strictly increasing number order."""


class NumberVerificationError(MigrationError):
    """Raised when destination issue numbering cannot be kept in sync with the source.

    The offending source issue is attached so the operator can resolve it by hand.
    """

    def __init__(self, msg: str, issue: Issue) -> None:
        super().__init__(msg)
        self.issue: Issue = issue


class NumberingGapError(NumberVerificationError):
    """Raised when the destination lacks the issue immediately preceding the one to create."""


class NumberingConflictError(NumberVerificationError):
    """Raised when a destination issue occupies the number but was not migrated by this tool."""


class NumberMismatchError(NumberVerificationError):
    """Raised when the destination assigned a different number than expected."""
