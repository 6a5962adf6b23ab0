"""GitHub implementation of the repository provider, using PyGithub."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Final, Literal, TypeVar

from github import Auth, Github, GithubException, UnknownObjectException
from github.GithubRetry import GithubRetry

from . import utils
from .exceptions import MigrationError
from .models import Comment, Issue, Label, OriginSite, RepoRef, RepositorySettings
from .pagination import Page, PaginatedFetch

if TYPE_CHECKING:
    from collections.abc import Callable

    import github.Issue
    import github.IssueComment
    from github.PaginatedList import PaginatedList
    from github.Repository import Repository

    from .models import IssuePatch

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_TOKEN_ENV_VAR: Final[str] = "GITHUB_TOKEN"  # noqa: S105
_PASSWORD_ENV_VAR: Final[str] = "GITHUB_PASSWORD"  # noqa: S105
_DEFAULT_TOKEN_PASS_PATH: Final[str] = "github/cli/token"  # noqa: S105
DEFAULT_PER_PAGE: Final[int] = 100

RawT = TypeVar("RawT")
ItemT = TypeVar("ItemT")


def get_token(pass_path: str | None = None) -> str | None:
    """Get GitHub token from pass path, env var GITHUB_TOKEN, or default pass location."""
    if pass_path:
        return utils.get_pass_value(pass_path)

    token: str | None = os.environ.get(_TOKEN_ENV_VAR)
    if token:
        return token

    try:
        return utils.get_pass_value(_DEFAULT_TOKEN_PASS_PATH)
    except utils.PassError:
        logger.warning("No GitHub token specified nor found")
        return None


def get_password() -> str | None:
    return os.environ.get(_PASSWORD_ENV_VAR)


def get_client(
    token: str | None = None,
    *,
    login: str | None = None,
    password: str | None = None,
    per_page: int = DEFAULT_PER_PAGE,
) -> Github:
    """Get an authenticated GitHub client.

    Transient failures and rate limits are retried by PyGithub's GithubRetry.

    Raises:
        ValueError: If neither a token nor a login and password are given
    """
    auth: Auth.Auth
    if login and password:
        auth = Auth.Login(login, password)
    elif token:
        auth = Auth.Token(token)
    else:
        msg = "Neither login and password nor access token given"
        raise ValueError(msg)
    return Github(auth=auth, per_page=per_page, retry=GithubRetry())


def _to_label(gh_label: Any) -> Label:
    return Label(name=gh_label.name, color=gh_label.color)


def _to_comment(gh_comment: github.IssueComment.IssueComment) -> Comment:
    return Comment(
        id=gh_comment.id,
        author=gh_comment.user.login if gh_comment.user else "ghost",
        created_at=gh_comment.created_at,
        body=gh_comment.body or "",
        url=gh_comment.html_url,
    )


class GitHubProvider:
    """Repository provider backed by the GitHub REST API.

    One provider wraps one authenticated client; every repository reference
    passed to it is accessed with that client's credentials. Pages are as large
    as the client's ``per_page`` setting.
    """

    def __init__(self, client: Github) -> None:
        self._client: Github = client
        self._repos: dict[str, Repository] = {}

    def validate_access(self) -> str:
        """Check the credentials and return the authenticated login."""
        try:
            login = self._client.get_user().login
        except GithubException as e:
            msg = f"GitHub API access failed: {e}"
            raise MigrationError(msg) from e
        logger.info(f"GitHub API access validated as {login}")
        return login

    def _repo(self, repo: RepoRef) -> Repository:
        if repo.full_name not in self._repos:
            self._repos[repo.full_name] = self._client.get_repo(repo.full_name, lazy=True)
        return self._repos[repo.full_name]

    def _pages(
        self, paginated: PaginatedList[RawT], convert: Callable[[RawT], ItemT]
    ) -> PaginatedFetch[ItemT, int]:
        """Walk a PyGithub list page by page, using the page index as cursor."""

        def fetch_page(page: int) -> Page[ItemT, int]:
            raw_items = paginated.get_page(page)
            # A short page is the last one
            next_page = page + 1 if len(raw_items) >= self._client.per_page else None
            return Page([convert(item) for item in raw_items], next_page)

        return PaginatedFetch(fetch_page, 0)

    def fork(self, repo: RepoRef) -> RepoRef:
        """Fork into the authenticated user's account. GitHub returns the existing fork if there is one."""
        fork = self._repo(repo).create_fork()
        logger.info(f"Forked {repo} to {fork.full_name}")
        ref = RepoRef(fork.full_name)
        self._repos[ref.full_name] = fork
        return ref

    def get_settings(self, repo: RepoRef) -> RepositorySettings:
        gh_repo = self._repo(repo)
        return RepositorySettings(
            description=gh_repo.description,
            has_issues=gh_repo.has_issues,
            has_wiki=gh_repo.has_wiki,
            default_branch=gh_repo.default_branch,
            private=gh_repo.private,
        )

    def set_settings(self, repo: RepoRef, settings: RepositorySettings) -> None:
        self._repo(repo).edit(
            description=settings.description or "",
            has_issues=settings.has_issues,
            has_wiki=settings.has_wiki,
            default_branch=settings.default_branch,
            private=settings.private,
        )

    def list_labels(self, repo: RepoRef) -> PaginatedFetch[Label, int]:
        return self._pages(self._repo(repo).get_labels(), _to_label)

    def create_label(self, repo: RepoRef, label: Label) -> None:
        self._repo(repo).create_label(name=label.name, color=label.color)

    def update_label(self, repo: RepoRef, label: Label) -> None:
        self._repo(repo).get_label(label.name).edit(name=label.name, color=label.color)

    def delete_label(self, repo: RepoRef, name: str) -> None:
        self._repo(repo).get_label(name).delete()

    def _to_issue(self, repo: RepoRef, gh_issue: github.Issue.Issue) -> Issue:
        closed = gh_issue.state == "closed"
        head_ref: str | None = None
        base_ref: str | None = None
        is_pull_request = gh_issue.pull_request is not None
        if is_pull_request:
            pull = self._repo(repo).get_pull(gh_issue.number)
            head_ref, base_ref = pull.head.label, pull.base.ref

        return Issue(
            number=gh_issue.number,
            url=gh_issue.html_url,
            title=gh_issue.title,
            body=gh_issue.body or "",
            author=gh_issue.user.login if gh_issue.user else "ghost",
            created_at=gh_issue.created_at,
            closed=closed,
            # GitHub keeps no close date for some very old closed issues
            closed_at=(gh_issue.closed_at or gh_issue.updated_at) if closed else None,
            labels=frozenset(label.name for label in gh_issue.labels),
            origin_site=OriginSite.GITHUB,
            is_pull_request=is_pull_request,
            head_ref=head_ref,
            base_ref=base_ref,
        )

    def list_issues(
        self,
        repo: RepoRef,
        *,
        state: Literal["open", "closed", "all"] = "all",
        sort: Literal["created", "updated", "comments"] = "created",
        direction: Literal["asc", "desc"] = "asc",
    ) -> PaginatedFetch[Issue, int]:
        """Issues and pull requests share one numbering, so both come back."""
        paginated = self._repo(repo).get_issues(state=state, sort=sort, direction=direction)
        return self._pages(paginated, lambda gh_issue: self._to_issue(repo, gh_issue))

    def get_issue(self, repo: RepoRef, number: int) -> Issue | None:
        try:
            gh_issue = self._repo(repo).get_issue(number)
        except UnknownObjectException as e:
            if e.status == 404:  # noqa: PLR2004
                return None
            raise
        return self._to_issue(repo, gh_issue)

    def create_issue(self, repo: RepoRef, title: str, body: str) -> Issue:
        gh_issue = self._repo(repo).create_issue(title=title, body=body)
        return self._to_issue(repo, gh_issue)

    def create_pull_request(self, repo: RepoRef, title: str, body: str, head: str, base: str) -> Issue:
        """Open a pull request from ``head`` into ``base``.

        Raises:
            MigrationError: If GitHub rejects the branches. It does so when the head
                branch was deleted or has no commits that ``base`` lacks, which is
                the case for every pull request that was already merged.
        """
        try:
            pull = self._repo(repo).create_pull(base=base, head=head, title=title, body=body)
        except GithubException as e:
            if e.status != 422:  # noqa: PLR2004
                raise
            msg = (
                f"GitHub refused to recreate pull request '{title}' from {head} into {base} in {repo}: {e}. "
                "Pull requests whose head branch is merged or deleted cannot be recreated; "
                f"push a branch with unmerged commits as {head}, or open an issue in its place whose body links to "
                "the source pull request, then run again"
            )
            raise MigrationError(msg) from e
        return self._to_issue(repo, pull.as_issue())

    def update_issue(self, repo: RepoRef, number: int, patch: IssuePatch) -> None:
        changes: dict[str, Any] = {}
        if patch.body is not None:
            changes["body"] = patch.body
        if patch.state is not None:
            changes["state"] = patch.state
        if patch.labels is not None:
            changes["labels"] = sorted(patch.labels)
        if changes:
            self._repo(repo).get_issue(number).edit(**changes)

    def list_issue_comments(self, repo: RepoRef, number: int) -> list[Comment]:
        return self._pages(self._repo(repo).get_issue(number).get_comments(), _to_comment).all()

    def create_comment(self, repo: RepoRef, number: int, body: str) -> Comment:
        return _to_comment(self._repo(repo).get_issue(number).create_comment(body))

    def update_comment(self, repo: RepoRef, number: int, comment_id: int | str, body: str) -> None:
        self._repo(repo).get_issue(number).get_comment(int(comment_id)).edit(body)

    def get_owner(self, repo: RepoRef) -> str:
        return self._repo(repo).owner.login

    def list_collaborators(self, repo: RepoRef) -> list[str]:
        return [user.login for user in self._repo(repo).get_collaborators()]

    def add_collaborator(self, repo: RepoRef, login: str) -> None:
        self._repo(repo).add_to_collaborators(login, permission="push")
