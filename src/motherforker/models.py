"""Data models exchanged between the replication engine and repository providers.

Issues, comments and labels are read-only snapshots of the source repository
taken during one migration run. Nothing here is persisted: resuming a run
relies on querying the destination again.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal
from urllib.parse import urlparse

from .exceptions import MalformedIssueError, MigrationError

if TYPE_CHECKING:
    from datetime import datetime

    from .protocols import RepositoryProvider


class OriginSite(enum.Enum):
    """Hosting site an issue was originally filed on."""

    GITHUB = "github"
    GOOGLECODE = "googlecode"
    BITBUCKET = "bitbucket"


@dataclass(frozen=True)
class RepoRef:
    """Address of a repository, as ``owner/name``."""

    full_name: str

    @classmethod
    def parse(cls, repo: str) -> RepoRef:
        """Build a reference from a full name or a repository URL.

        Accepts ``owner/name``, ``https://github.com/owner/name`` and the same
        URL with a trailing ``.git`` or slash.
        """
        text = repo.strip()
        if "://" in text:
            text = urlparse(text).path.strip("/").removesuffix(".git")

        parts = text.split("/")
        if len(parts) != 2:  # noqa: PLR2004
            msg = f"Invalid repository '{repo}'. Expected 'owner/repository' or a repository URL"
            raise MigrationError(msg)
        owner, name = parts
        if not owner or not name:
            msg = f"Invalid repository '{repo}'. Both owner and repository name must be non-empty"
            raise MigrationError(msg)
        return cls(f"{owner}/{name}")

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.full_name.split("/", 1)[1]

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class RepositoryHandle:
    """A repository bound to the provider session used to talk to it."""

    provider: RepositoryProvider
    ref: RepoRef


@dataclass(frozen=True)
class Label:
    """A label that can be applied to issues. Labels are keyed by exact name."""

    name: str
    color: str  # Hex color without '#' prefix (e.g., "ff0000")

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", self.color.lstrip("#").lower())


@dataclass(frozen=True)
class RepositorySettings:
    """Repository settings copied verbatim from source to destination."""

    description: str | None
    has_issues: bool
    has_wiki: bool
    default_branch: str
    private: bool


@dataclass(frozen=True)
class Comment:
    """A comment on an issue.

    ``id`` is opaque: providers hand it back to update the comment they created.
    """

    id: int | str
    author: str
    created_at: datetime
    body: str
    url: str = ""


@dataclass(frozen=True)
class Issue:
    """An issue or pull request from the source repository.

    Issues and pull requests share one number counter, assigned in creation order.
    """

    number: int
    url: str
    title: str
    body: str
    author: str
    created_at: datetime
    closed: bool = False
    closed_at: datetime | None = None
    labels: frozenset[str] = field(default_factory=frozenset)
    comments: tuple[Comment, ...] = ()
    origin_site: OriginSite = OriginSite.GITHUB
    is_pull_request: bool = False
    head_ref: str | None = None  # Pull requests only, e.g. "owner:branch"
    base_ref: str | None = None  # Pull requests only, e.g. "main"

    def __post_init__(self) -> None:
        if self.number < 1:
            msg = f"Issue number must be positive, got {self.number}"
            raise MalformedIssueError(msg)
        if self.closed and self.closed_at is None:
            msg = f"Issue #{self.number} is closed but has no close date"
            raise MalformedIssueError(msg)
        if not self.closed and self.closed_at is not None:
            msg = f"Issue #{self.number} is open but has a close date"
            raise MalformedIssueError(msg)
        object.__setattr__(self, "labels", frozenset(self.labels))
        object.__setattr__(self, "comments", tuple(self.comments))

    @property
    def kind(self) -> str:
        return "pull request" if self.is_pull_request else "issue"


@dataclass(frozen=True)
class IssuePatch:
    """Fields to change on an existing destination issue. ``None`` fields are left untouched."""

    body: str | None = None
    state: Literal["open", "closed"] | None = None
    labels: frozenset[str] | None = None
