"""Number-preserving replication of issues and pull requests.

The destination assigns issue numbers itself, sequentially and irreversibly,
from one counter shared by issues and pull requests. Source numbers are kept
(so ``#123`` references stay valid) by creating destination issues strictly
in source order and checking before every creation that the destination is
exactly one number behind.

Per source issue, oldest first:

    destination has #N?
    ├── no
    │   ├── N == 1                      -> create
    │   ├── destination has #N-1        -> create
    │   └── otherwise                   -> NumberingGapError
    └── yes
        ├── body links to source issue  -> already migrated, skip
        └── otherwise                   -> NumberingConflictError

Creating writes an empty issue first, checks the assigned number
(NumberMismatchError otherwise), then edits in the real body, state and
labels. Comments are created as placeholders and edited the same way, because
edits do not send @mention notifications.

Nothing is stored locally. A crashed run is resumed by running again: issues
whose body already links back to the source are skipped, and their comments
are completed if the crash interrupted them.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, NamedTuple

from .exceptions import (
    MalformedIssueError,
    NumberingConflictError,
    NumberingGapError,
    NumberMismatchError,
    OrderingError,
)
from .issue_builder import (
    NotificationStrategy,
    build_close_note,
    build_comment_body,
    build_issue_body,
    is_migrated_body,
    notification_strategy,
)
from .models import IssuePatch

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import Comment, Issue, RepositoryHandle

logger: logging.Logger = logging.getLogger(__name__)

# The destination rejects blank comments, so placeholders need some text
PLACEHOLDER_COMMENT: Final[str] = "_Migrating comment..._"


class Action(enum.Enum):
    CREATE = "create"
    SKIP = "skip"


class Decision(NamedTuple):
    """What to do with a source issue, and the destination issue it was decided against."""

    action: Action
    existing: Issue | None = None


@dataclass
class ReplicationResult:
    """Issue numbers handled during a replication run."""

    created: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    repaired: list[int] = field(default_factory=list)
    comments_created: int = 0
    last_number: int | None = None


class NumberingReplicator:
    """Replicates source issues into a destination while keeping their numbers.

    Usage:
        replicator = NumberingReplicator(destination)
        result = replicator.replicate(source_issues)

    Issues must be fed in strictly increasing number order; anything else
    raises OrderingError before the destination is touched.
    """

    def __init__(
        self,
        destination: RepositoryHandle,
        *,
        suppress_notifications: bool = True,
        verify_comments: bool = True,
    ) -> None:
        """Initialize the replicator.

        Args:
            destination: Repository to create issues in
            suppress_notifications: Create records empty and edit content in afterwards
            verify_comments: Complete the comments of already-migrated issues
        """
        self._destination: RepositoryHandle = destination
        self._suppress_notifications: bool = suppress_notifications
        self._verify_comments: bool = verify_comments
        self._last_number: int | None = None

    @property
    def last_number(self) -> int | None:
        """Number of the last source issue handled successfully."""
        return self._last_number

    def replicate(self, issues: Iterable[Issue]) -> ReplicationResult:
        """Replicate every issue, stopping at the first fatal error.

        Args:
            issues: Source issues with their comments, oldest first

        Returns:
            ReplicationResult listing created, skipped and repaired issue numbers

        Raises:
            NumberVerificationError: If numbering cannot be preserved
            OrderingError: If issues arrive out of order
        """
        result = ReplicationResult()
        for issue in issues:
            try:
                self.replicate_issue(issue, result)
            except Exception:
                logger.error(f"Replication stopped at {issue.kind} #{issue.number}; processed up to #{self._last_number}")
                raise
            result.last_number = self._last_number

        logger.info(
            f"Replicated issues: {len(result.created)} created, {len(result.skipped)} already migrated, "
            f"{len(result.repaired)} repaired"
        )
        return result

    def replicate_issue(self, issue: Issue, result: ReplicationResult | None = None) -> Action:
        """Replicate one issue, which must follow the previous one in source order."""
        if result is None:
            result = ReplicationResult()
        self._check_order(issue)

        decision = self.decide(issue)
        if decision.action is Action.SKIP:
            assert decision.existing is not None
            if not self._verify_comments:
                logger.info(f"Skipping {issue.kind} #{issue.number}: already migrated, comments not checked")
            else:
                logger.debug(f"Skipping {issue.kind} #{issue.number}: already migrated")
                if self._resume(issue, decision.existing, result):
                    result.repaired.append(issue.number)
            result.skipped.append(issue.number)
        else:
            self._create(issue, result)
            result.created.append(issue.number)
            logger.debug(f"Created {issue.kind} #{issue.number}: {issue.title}")

        self._last_number = issue.number
        return decision.action

    def decide(self, issue: Issue) -> Decision:
        """Decide whether ``issue`` is created or skipped, raising if neither is safe.

        Raises:
            NumberingGapError: If the destination lacks the preceding number
            NumberingConflictError: If the number is taken by an unrelated issue
        """
        provider, repo = self._destination.provider, self._destination.ref
        existing = provider.get_issue(repo, issue.number)

        if existing is None:
            if issue.number == 1 or provider.get_issue(repo, issue.number - 1) is not None:
                return Decision(Action.CREATE)
            msg = (
                f"Cannot create {issue.kind} #{issue.number}: destination {repo} has no #{issue.number - 1}, "
                "so the destination would assign a different number"
            )
            raise NumberingGapError(msg, issue)

        if is_migrated_body(existing.body, issue.url):
            return Decision(Action.SKIP, existing)

        msg = (
            f"Cannot migrate {issue.kind} #{issue.number}: destination {repo} already has #{issue.number} "
            f"('{existing.title}') and it was not migrated from {issue.url}"
        )
        if not existing.body.strip():
            msg += (
                ". Its body is empty, so a previous run was probably interrupted right after creating it. "
                f"Put the migrated body of {issue.url} into it by hand and run again to add its comments"
            )
        raise NumberingConflictError(msg, issue)

    def _check_order(self, issue: Issue) -> None:
        if self._last_number is not None and issue.number <= self._last_number:
            msg = f"Source issues out of order: #{issue.number} after #{self._last_number}"
            raise OrderingError(msg)

    def _create(self, issue: Issue, result: ReplicationResult) -> None:
        provider, repo = self._destination.provider, self._destination.ref
        strategy = notification_strategy(issue.origin_site, suppress=self._suppress_notifications)
        body = build_issue_body(issue)
        initial_body = "" if strategy is NotificationStrategy.PLACEHOLDER_THEN_EDIT else body

        if issue.is_pull_request:
            if not issue.head_ref or not issue.base_ref:
                msg = f"Pull request #{issue.number} has no head/base branch references"
                raise MalformedIssueError(msg)
            created = provider.create_pull_request(repo, issue.title, initial_body, issue.head_ref, issue.base_ref)
        else:
            created = provider.create_issue(repo, issue.title, initial_body)

        if created.number != issue.number:
            msg = f"{issue.kind.capitalize()} number mismatch: expected {issue.number}, got {created.number}"
            raise NumberMismatchError(msg, issue)

        provider.update_issue(
            repo,
            issue.number,
            IssuePatch(
                body=body if strategy is NotificationStrategy.PLACEHOLDER_THEN_EDIT else None,
                state="closed" if issue.closed else "open",
                labels=issue.labels,
            ),
        )

        for comment in issue.comments:
            self._create_comment(issue, comment, strategy)
            result.comments_created += 1

        if issue.closed:
            provider.create_comment(repo, issue.number, build_close_note(issue))
            result.comments_created += 1

    def _create_comment(
        self,
        issue: Issue,
        comment: Comment,
        strategy: NotificationStrategy,
        placeholder: Comment | None = None,
    ) -> None:
        provider, repo = self._destination.provider, self._destination.ref
        body = build_comment_body(comment, issue.origin_site)

        if strategy is NotificationStrategy.DIRECT and placeholder is None:
            provider.create_comment(repo, issue.number, body)
            return
        if placeholder is None:
            placeholder = provider.create_comment(repo, issue.number, PLACEHOLDER_COMMENT)
        provider.update_comment(repo, issue.number, placeholder.id, body)

    def _resume(self, issue: Issue, existing: Issue, result: ReplicationResult) -> bool:
        """Complete an already-migrated issue whose migration was interrupted.

        A crash can only cut the comment sequence short, so the comments still
        missing are a suffix of the source comments and appending them keeps
        the original order. Returns True if anything had to be repaired.
        """
        provider, repo = self._destination.provider, self._destination.ref

        if any(not comment.url for comment in issue.comments):
            logger.warning(
                f"Cannot verify comments of {issue.kind} #{issue.number}: source comments have no URL. "
                "Check the destination by hand"
            )
            return False

        destination_comments = list(provider.list_issue_comments(repo, issue.number))
        missing = [
            comment
            for comment in issue.comments
            if not any(is_migrated_body(existing_comment.body, comment.url) for existing_comment in destination_comments)
        ]
        if missing and list(issue.comments[-len(missing) :]) != missing:
            logger.warning(
                f"Comments of {issue.kind} #{issue.number} are missing out of order "
                f"({len(missing)} of {len(issue.comments)}); not repairing. Check the destination by hand"
            )
            return False

        close_note = build_close_note(issue) if issue.closed else None
        needs_close_note = close_note is not None and all(c.body != close_note for c in destination_comments)
        needs_close = issue.closed and not existing.closed
        if not missing and not needs_close_note and not needs_close:
            return False

        logger.warning(
            f"{issue.kind.capitalize()} #{issue.number} was only partly migrated by a previous run; "
            f"adding {len(missing)} missing comment(s)"
        )
        placeholders = [c for c in destination_comments if c.body == PLACEHOLDER_COMMENT]
        strategy = notification_strategy(issue.origin_site, suppress=self._suppress_notifications)
        for comment in missing:
            self._create_comment(issue, comment, strategy, placeholders.pop(0) if placeholders else None)
            result.comments_created += 1

        if needs_close:
            provider.update_issue(repo, issue.number, IssuePatch(state="closed"))
        if needs_close_note:
            assert close_note is not None
            provider.create_comment(repo, issue.number, close_note)
            result.comments_created += 1
        return True
