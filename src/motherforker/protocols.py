"""Protocol defining the contract for a repository hosting provider.

The replication engine never talks to a hosting API directly. It consumes the
capabilities below, which keeps the numbering state machine testable with an
in-memory fake and leaves transport concerns (authentication, retries, rate
limiting) to the implementation.

The engine calls the provider in this order during a run:
1. fork() - Create the destination repository
2. get_settings() / set_settings() - Copy repository settings
3. list_labels() / create_label() / update_label() / delete_label() - Label sync
4. list_issues() / list_issue_comments() on the source, then for each issue
   get_issue() / create_issue() or create_pull_request() / update_issue() /
   create_comment() / update_comment() on the destination
5. get_owner() / list_collaborators() / add_collaborator() - Collaborator setup

Example implementations:
    - GitHubProvider: Uses PyGithub for REST API access
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

    from .models import Comment, Issue, IssuePatch, Label, RepoRef, RepositorySettings
    from .pagination import PaginatedFetch


class RepositoryProvider(Protocol):
    """Capabilities of a hosting provider consumed by the migration engine.

    Any failure not described here (network errors, permission errors, rate
    limits that outlast the transport's retries) is raised as-is.
    """

    def fork(self, repo: RepoRef) -> RepoRef:
        """Fork the repository and return a reference to the fork."""
        ...

    def get_settings(self, repo: RepoRef) -> RepositorySettings: ...

    def set_settings(self, repo: RepoRef, settings: RepositorySettings) -> None: ...

    def list_labels(self, repo: RepoRef) -> PaginatedFetch[Label, Any]:
        """Return the labels of the repository, page by page."""
        ...

    def create_label(self, repo: RepoRef, label: Label) -> None: ...

    def update_label(self, repo: RepoRef, label: Label) -> None:
        """Replace the color of the existing label with ``label.name``."""
        ...

    def delete_label(self, repo: RepoRef, name: str) -> None: ...

    def list_issues(
        self,
        repo: RepoRef,
        *,
        state: Literal["open", "closed", "all"] = "all",
        sort: Literal["created", "updated", "comments"] = "created",
        direction: Literal["asc", "desc"] = "asc",
    ) -> PaginatedFetch[Issue, Any]:
        """Lazily yield issues and pull requests; the defaults give all of them, oldest first.

        Yielded issues carry no comments; use list_issue_comments() for those.
        """
        ...

    def get_issue(self, repo: RepoRef, number: int) -> Issue | None:
        """Return the issue or pull request with this number, or None if it does not exist."""
        ...

    def create_issue(self, repo: RepoRef, title: str, body: str) -> Issue:
        """Create an issue. The destination assigns the number."""
        ...

    def create_pull_request(self, repo: RepoRef, title: str, body: str, head: str, base: str) -> Issue:
        """Create a pull request from ``head`` into ``base``. The destination assigns the number."""
        ...

    def update_issue(self, repo: RepoRef, number: int, patch: IssuePatch) -> None: ...

    def list_issue_comments(self, repo: RepoRef, number: int) -> Iterable[Comment]:
        """Return the comments of an issue in chronological order."""
        ...

    def create_comment(self, repo: RepoRef, number: int, body: str) -> Comment: ...

    def update_comment(self, repo: RepoRef, number: int, comment_id: int | str, body: str) -> None: ...

    def get_owner(self, repo: RepoRef) -> str:
        """Return the login of the account owning the repository."""
        ...

    def list_collaborators(self, repo: RepoRef) -> Iterable[str]:
        """Return the logins of the repository's collaborators."""
        ...

    def add_collaborator(self, repo: RepoRef, login: str) -> None:
        """Add or invite a collaborator. Must be a no-op for existing collaborators."""
        ...
