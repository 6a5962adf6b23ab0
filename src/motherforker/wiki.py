"""Wiki mirroring from source to destination repository.

GitHub stores a repository's wiki as a separate git repository next to it
(``owner/name.wiki.git``), so the transfer is a mirror clone and push.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Final
from urllib.parse import quote

from .exceptions import MigrationError

if TYPE_CHECKING:
    from .models import RepoRef

logger: logging.Logger = logging.getLogger(__name__)

GITHUB_HOST: Final[str] = "https://github.com"


def wiki_url(repo: RepoRef, host: str = GITHUB_HOST) -> str:
    return f"{host}/{repo.full_name}.wiki.git"


def basic_credential(login: str, password: str) -> str:
    """URL userinfo for signing git in with a login and password instead of a token."""
    return f"{quote(login, safe='')}:{quote(password, safe='')}"


def _inject_token(url: str, token: str | None) -> str:
    """Inject authentication token into HTTPS URL.

    Returns the original URL if it is not HTTPS or no token is given.
    """
    if not token or not url.startswith("https://"):
        return url
    return url.replace("https://", f"https://{token}@")


def _sanitize_error(error: str, tokens: list[str | None]) -> str:
    """Replace every token in an error message with ***TOKEN***."""
    result = error
    for token in tokens:
        if token:
            result = result.replace(token, "***TOKEN***")
    return result


def _is_missing_repository(stderr: str) -> bool:
    stderr = stderr.lower()
    return "not found" in stderr or "does not exist" in stderr


class WikiMirror:
    """Copies a wiki with git, authenticating with a GitHub token or a ``basic_credential``.

    Callable as ``mirror(source, destination)`` so it can be passed to the
    orchestrator as its wiki transfer step.
    """

    def __init__(self, token: str | None, *, host: str = GITHUB_HOST) -> None:
        self._token: str | None = token
        self._host: str = host

    def __call__(self, source: RepoRef, destination: RepoRef) -> bool:
        """Mirror the source wiki into the destination wiki.

        Returns:
            True if a wiki was copied, False if the source has none

        Raises:
            MigrationError: If cloning or pushing fails for another reason
        """
        tokens = [self._token]
        temp_clone_path: str | None = None

        try:
            temp_clone_path = tempfile.mkdtemp(prefix="wiki_migration_")
            source_url = _inject_token(wiki_url(source, self._host), self._token)

            result = subprocess.run(  # noqa: S603
                ["git", "clone", "--mirror", source_url, temp_clone_path],  # noqa: S607
                check=False,
                capture_output=True,
                text=True,
            )
            if result.returncode != 0:
                if _is_missing_repository(result.stderr):
                    logger.info(f"No wiki found for {source}, skipping")
                    return False
                msg = f"Failed to clone wiki: {_sanitize_error(result.stderr, tokens)}"
                raise MigrationError(msg)

            destination_url = _inject_token(wiki_url(destination, self._host), self._token)
            result = subprocess.run(  # noqa: S603
                ["git", "push", "--mirror", destination_url],  # noqa: S607
                cwd=temp_clone_path,
                check=False,
                capture_output=True,
                text=True,
            )
            if result.returncode != 0:
                msg = (
                    f"Failed to push wiki: {_sanitize_error(result.stderr, tokens)}. "
                    f"Create a first wiki page on {destination} and retry"
                )
                raise MigrationError(msg)

            logger.info(f"Wiki migrated from {source} to {destination}")
            return True

        except OSError as e:
            msg = f"Failed to migrate wiki: {_sanitize_error(str(e), tokens)}"
            raise MigrationError(msg) from e
        finally:
            if temp_clone_path and Path(temp_clone_path).exists():
                shutil.rmtree(temp_clone_path)
