"""Migration orchestrator that copies a repository into a fresh fork.

Migration Flow
--------------
Steps run once per run, in this fixed order. The first failing step stops the
run; nothing is skipped on error.

Step 1: Fork
    - Fork the source repository (GitHub hands back the existing fork when
      one is already there)

Step 2: Settings
    - Copy description, feature toggles, default branch and visibility.
      Forks start with issues disabled, so this must precede issue replication

Step 3: Labels
    - Fetch both label sets eagerly and reconcile the destination by diff

Step 4: Issues and pull requests
    - Stream source issues lazily, oldest first, attaching each one's
      comments, and feed them to the NumberingReplicator one at a time

Step 5: Wiki
    - Delegated to the configured wiki transfer (a git mirror by default)

Step 6: Collaborators
    - Add the source owner and the source collaborators to the fork

Resuming
--------
There is no checkpoint file. Every step is safe to repeat: forking returns
the existing fork, settings and labels converge on the source, and the
replicator skips issues that already link back to the source. An interrupted
run is resumed by running it again.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .labels import sync_labels
from .models import RepositoryHandle
from .replicator import NumberingReplicator, ReplicationResult

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from .models import Issue, RepoRef
    from .protocols import RepositoryProvider

    WikiTransfer = Callable[[RepoRef, RepoRef], bool]

logger = logging.getLogger(__name__)


@dataclass
class MigrationStats:
    """Statistics collected during migration."""

    labels_created: int = 0
    labels_updated: int = 0
    labels_deleted: int = 0
    issues_created: int = 0
    issues_skipped: int = 0
    issues_repaired: int = 0
    comments_created: int = 0
    wiki_migrated: bool = False
    collaborators_added: list[str] = field(default_factory=list)


@dataclass
class MigrationResult:
    """Result of a migration run."""

    destination: RepoRef
    stats: MigrationStats


class MigrationOrchestrator:
    """Orchestrates the migration of a repository into a fork.

    Usage:
        provider = GitHubProvider(client)
        orchestrator = MigrationOrchestrator(provider, RepoRef.parse("owner/repo"))
        result = orchestrator.migrate()
    """

    def __init__(
        self,
        provider: RepositoryProvider,
        source: RepoRef,
        *,
        wiki_transfer: WikiTransfer | None = None,
        include_collaborators: bool = True,
        suppress_notifications: bool = True,
        verify_comments: bool = True,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            provider: Provider session used for both source and fork
            source: Repository to copy
            wiki_transfer: Copies the wiki from source to fork; wiki is skipped if None
            include_collaborators: Whether to add source collaborators to the fork
            suppress_notifications: Passed to the replicator
            verify_comments: Passed to the replicator
        """
        self._provider: RepositoryProvider = provider
        self._source: RepositoryHandle = RepositoryHandle(provider, source)
        self._wiki_transfer: WikiTransfer | None = wiki_transfer
        self._include_collaborators: bool = include_collaborators
        self._suppress_notifications: bool = suppress_notifications
        self._verify_comments: bool = verify_comments

    def migrate(self) -> MigrationResult:
        """Execute the complete migration process.

        Raises:
            MigrationError: If a step cannot be completed safely
            GithubException: Or another provider error, unchanged
        """
        logger.info(f"Starting migration of {self._source.ref}")
        stats = MigrationStats()

        destination = self.fork()
        self.copy_settings(destination)
        self.copy_labels(destination, stats)
        self.copy_issues(destination, stats)
        if self._wiki_transfer is not None:
            stats.wiki_migrated = self._wiki_transfer(self._source.ref, destination.ref)
        else:
            logger.info("Wiki transfer disabled, skipping")
        if self._include_collaborators:
            self.copy_collaborators(destination, stats)

        logger.info(f"Migration of {self._source.ref} to {destination.ref} completed successfully")
        return MigrationResult(destination=destination.ref, stats=stats)

    def fork(self) -> RepositoryHandle:
        return RepositoryHandle(self._provider, self._provider.fork(self._source.ref))

    def copy_settings(self, destination: RepositoryHandle) -> None:
        settings = self._provider.get_settings(self._source.ref)
        self._provider.set_settings(destination.ref, settings)
        logger.info(f"Copied settings to {destination.ref}")

    def copy_labels(self, destination: RepositoryHandle, stats: MigrationStats) -> None:
        desired = self._provider.list_labels(self._source.ref).all()
        existing = self._provider.list_labels(destination.ref).all()
        result = sync_labels(destination, existing, desired)
        stats.labels_created = len(result.created)
        stats.labels_updated = len(result.updated)
        stats.labels_deleted = len(result.deleted)

    def _with_comments(self, issues: Iterable[Issue]) -> Iterator[Issue]:
        for issue in issues:
            comments = self._provider.list_issue_comments(self._source.ref, issue.number)
            yield dataclasses.replace(issue, comments=tuple(comments))

    def copy_issues(self, destination: RepositoryHandle, stats: MigrationStats) -> ReplicationResult:
        replicator = NumberingReplicator(
            destination,
            suppress_notifications=self._suppress_notifications,
            verify_comments=self._verify_comments,
        )
        result = replicator.replicate(self._with_comments(self._provider.list_issues(self._source.ref)))
        stats.issues_created = len(result.created)
        stats.issues_skipped = len(result.skipped)
        stats.issues_repaired = len(result.repaired)
        stats.comments_created = result.comments_created
        return result

    def copy_collaborators(self, destination: RepositoryHandle, stats: MigrationStats) -> None:
        """Give the source owner and collaborators access to the fork."""
        fork_owner = self._provider.get_owner(destination.ref)
        logins = [self._provider.get_owner(self._source.ref), *self._provider.list_collaborators(self._source.ref)]

        for login in dict.fromkeys(logins):
            if login == fork_owner:
                continue
            self._provider.add_collaborator(destination.ref, login)
            stats.collaborators_added.append(login)
            logger.debug(f"Added collaborator {login} to {destination.ref}")

        logger.info(f"Added {len(stats.collaborators_added)} collaborators to {destination.ref}")
