"""Build migrated issue and comment bodies carrying provenance headers.

Every migrated body links back to the original issue or comment. That link is
what a later run looks for to tell that an issue was already migrated, so it
must survive verbatim in the rewritten body.
"""

from __future__ import annotations

import datetime as dt
import enum
import re
from typing import TYPE_CHECKING, Final, Protocol

from .models import OriginSite

if TYPE_CHECKING:
    from .models import Comment, Issue

TOOL_NAME: Final[str] = "motherforker"


class NotificationStrategy(enum.Enum):
    """How migrated text is written to the destination."""

    DIRECT = "direct"
    """Create records with their final content."""
    PLACEHOLDER_THEN_EDIT = "placeholder_then_edit"
    """Create records empty, then edit in the final content. Edits do not send mention notifications."""


class AttributionFormatter(Protocol):
    """Formats the original author of migrated content for its origin site."""

    def format_author(self, name: str) -> str: ...


class MentionAttribution:
    """Author names are logins on the destination's site too, so mention them."""

    def format_author(self, name: str) -> str:
        return f"@{name}"


class PlainAttribution:
    """Author names from another site mean nothing to the destination; print them as-is."""

    def format_author(self, name: str) -> str:
        return name


_FORMATTERS: Final[dict[OriginSite, AttributionFormatter]] = {
    OriginSite.GITHUB: MentionAttribution(),
    OriginSite.GOOGLECODE: PlainAttribution(),
    OriginSite.BITBUCKET: PlainAttribution(),
}


def attribution_for(site: OriginSite) -> AttributionFormatter:
    return _FORMATTERS[site]


def notification_strategy(site: OriginSite, *, suppress: bool = True) -> NotificationStrategy:
    """Decide how migrated content for ``site`` is written.

    Original bodies may contain @mentions regardless of where they were filed,
    so every site gets placeholder-then-edit unless suppression is turned off.
    """
    del site
    return NotificationStrategy.PLACEHOLDER_THEN_EDIT if suppress else NotificationStrategy.DIRECT


def format_timestamp(timestamp: dt.datetime) -> str:
    """Format a timestamp in UTC, e.g. "2024-01-15 at 10:30 (UTC)".

    Naive datetimes are taken to already be in UTC.
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(dt.UTC)
    return timestamp.strftime("%Y-%m-%d at %H:%M (UTC)")


def _provenance_header(opening: str, author: str, timestamp: dt.datetime, url: str) -> str:
    header = f"{opening} {author} on {format_timestamp(timestamp)}\n\n"
    header += f"*Migrated by {TOOL_NAME} from {url}*\n\n"
    header += "---\n\n"
    return header


def build_issue_body(issue: Issue) -> str:
    """Build the destination body of a migrated issue or pull request.

    Args:
        issue: Source issue

    Returns:
        Provenance header followed by the original body verbatim
    """
    author = attribution_for(issue.origin_site).format_author(issue.author)
    opening = "Pull request originally opened by" if issue.is_pull_request else "Issue originally opened by"
    return _provenance_header(opening, author, issue.created_at, issue.url) + issue.body


def build_comment_body(comment: Comment, origin_site: OriginSite) -> str:
    """Build the destination body of a migrated comment."""
    author = attribution_for(origin_site).format_author(comment.author)
    return _provenance_header("Comment originally posted by", author, comment.created_at, comment.url) + comment.body


def build_close_note(issue: Issue) -> str:
    """Build the comment recording when a closed issue was originally closed."""
    assert issue.closed_at is not None  # Issue guarantees closed_at for closed issues
    return f"{issue.kind.capitalize()} originally closed on {format_timestamp(issue.closed_at)}"


def is_migrated_body(body: str | None, url: str) -> bool:
    """Check whether a destination body was written by this tool for the record at ``url``.

    The URL must not continue with a word character, so issue 1 is not
    mistaken for issue 10.
    """
    if not body or not url:
        return False
    return re.search(re.escape(url) + r"(?!\w)", body) is not None
