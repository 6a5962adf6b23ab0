"""
Command-line interface for the repository migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys

from github import GithubException

from . import github_utils as ghu
from .exceptions import MigrationError, NumberVerificationError
from .models import RepoRef
from .orchestrator import MigrationOrchestrator
from .utils import PassError, setup_logging
from .wiki import WikiMirror, basic_credential

logger: logging.Logger = logging.getLogger(__name__)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Fork a GitHub repository and copy its labels, issues, pull requests, wiki and collaborators"
    )

    _ = parser.add_argument("source_repo", help="Repository to fork (owner/repo or URL)")

    _ = parser.add_argument(
        "--github-pass-token", help="Path for GitHub token in pass utility (default: github/cli/token)"
    )
    _ = parser.add_argument(
        "--login", help="GitHub login for password authentication (password read from GITHUB_PASSWORD)"
    )
    _ = parser.add_argument(
        "--per-page", type=int, default=ghu.DEFAULT_PER_PAGE, help="Page size for GitHub list requests"
    )
    _ = parser.add_argument("--no-wiki", action="store_true", help="Do not copy the wiki")
    _ = parser.add_argument("--no-collaborators", action="store_true", help="Do not add collaborators to the fork")
    _ = parser.add_argument(
        "--no-comment-check",
        action="store_true",
        help="Skip already-migrated issues without checking their comments are complete",
    )
    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return parser.parse_args(argv)


def _report_numbering_error(error: NumberVerificationError) -> None:
    """Log the offending issue in full so the operator can fix the destination by hand."""
    issue = error.issue
    logger.error(
        f"Offending {issue.kind} #{issue.number}: {issue.title}\n"
        f"URL: {issue.url}\n"
        f"Author: {issue.author}\n"
        f"State: {'closed' if issue.closed else 'open'}\n"
        f"Body:\n{issue.body}"
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging(verbose=args.verbose)

    try:
        source = RepoRef.parse(args.source_repo)
        password = ghu.get_password() if args.login else None
        token = None if args.login and password else ghu.get_token(args.github_pass_token)
        client = ghu.get_client(token, login=args.login, password=password, per_page=args.per_page)

        provider = ghu.GitHubProvider(client)
        provider.validate_access()
        git_credential = basic_credential(args.login, password) if args.login and password else token

        orchestrator = MigrationOrchestrator(
            provider,
            source,
            wiki_transfer=None if args.no_wiki else WikiMirror(git_credential),
            include_collaborators=not args.no_collaborators,
            verify_comments=not args.no_comment_check,
        )
        result = orchestrator.migrate()

    except NumberVerificationError as e:
        logger.exception("Migration halted: issue numbering cannot be preserved")
        _report_numbering_error(e)
        sys.exit(1)
    except (MigrationError, GithubException, PassError, ValueError):
        logger.exception("Migration failed")
        sys.exit(1)

    stats = result.stats
    print(f"Migrated {source} to {result.destination}")
    print(f"  Labels: {stats.labels_created} created, {stats.labels_updated} updated, {stats.labels_deleted} deleted")
    print(
        f"  Issues: {stats.issues_created} created, {stats.issues_skipped} already migrated, "
        f"{stats.issues_repaired} repaired"
    )
    print(f"  Comments: {stats.comments_created} created")
    print(f"  Wiki: {'copied' if stats.wiki_migrated else 'not copied'}")
    print(f"  Collaborators: {len(stats.collaborators_added)} added")
    sys.exit(0)
