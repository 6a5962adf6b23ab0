"""
Motherforker

Forks a hosted repository and copies its settings, labels, wiki, collaborators
and issue/pull request history into the fork, keeping every issue number so
that ``#123`` references stay valid.
"""

from __future__ import annotations

from .cli import main
from .exceptions import (
    MalformedIssueError,
    MigrationError,
    NumberingConflictError,
    NumberingGapError,
    NumberMismatchError,
    NumberVerificationError,
    OrderingError,
)
from .orchestrator import MigrationOrchestrator
from .replicator import NumberingReplicator
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "MalformedIssueError",
    "MigrationError",
    "MigrationOrchestrator",
    "NumberMismatchError",
    "NumberVerificationError",
    "NumberingConflictError",
    "NumberingGapError",
    "NumberingReplicator",
    "OrderingError",
    "main",
    "setup_logging",
]
