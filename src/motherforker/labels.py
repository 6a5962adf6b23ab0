"""
Label synchronisation between source and destination repositories.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import Label, RepositoryHandle

logger: logging.Logger = logging.getLogger(__name__)


class LabelSyncResult(NamedTuple):
    """Result of label synchronisation."""

    created: list[str]
    updated: list[str]
    deleted: list[str]


def sync_labels(
    destination: RepositoryHandle,
    existing: Iterable[Label],
    desired: Iterable[Label],
) -> LabelSyncResult:
    """Make the destination's labels match ``desired``.

    Labels are matched by exact, case-sensitive name. Existing labels missing
    from ``desired`` are deleted, labels present in both get the desired color,
    and the rest are created. Deletions go first so a label renamed by
    delete+recreate never collides with itself.

    Args:
        destination: Repository whose labels are changed
        existing: Labels the destination currently has
        desired: Labels the destination should end up with

    Returns:
        LabelSyncResult with the names of created, updated and deleted labels
    """
    provider, repo = destination.provider, destination.ref
    current: dict[str, Label] = {label.name: label for label in existing}
    wanted: dict[str, Label] = {label.name: label for label in desired}
    result = LabelSyncResult(created=[], updated=[], deleted=[])

    for name in current:
        if name not in wanted:
            provider.delete_label(repo, name)
            result.deleted.append(name)
            logger.debug(f"Deleted label: {name}")

    for name, label in wanted.items():
        existing_label = current.get(name)
        if existing_label is None:
            provider.create_label(repo, label)
            result.created.append(name)
            logger.debug(f"Created label: {name} ({label.color})")
        elif existing_label.color != label.color:
            provider.update_label(repo, label)
            result.updated.append(name)
            logger.debug(f"Updated label: {name} ({existing_label.color} -> {label.color})")

    logger.info(
        f"Synchronised labels: {len(result.created)} created, "
        f"{len(result.updated)} updated, {len(result.deleted)} deleted"
    )
    return result
