"""
Utility functions for the repository migration tool.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from subprocess import CompletedProcess


class PassError(Exception):
    """Base class for pass-related errors."""


class InvalidPassPathError(PassError):
    """Raised when the pass path format is invalid."""


class PassphraseRequiredError(PassError):
    """Raised when a GPG passphrase is required for the pass utility."""


def setup_logging(*, verbose: bool = False) -> None:
    """Configure logging for the migration process."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(), logging.FileHandler("migration.log", mode="a")],
    )


def _validate_pass_path(pass_path: str) -> None:
    if not re.fullmatch(r"(?:[A-Za-z0-9_-]+)(?:/[A-Za-z0-9_-]+)*", pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise InvalidPassPathError(msg)


def _run_pass(pass_path: str, passphrase: str | None = None) -> CompletedProcess[str]:
    env = None
    if passphrase is not None:
        env = os.environ.copy() | {"PASSWORD_STORE_GPG_OPTS": "--pinentry-mode=loopback --passphrase-fd 0"}
    try:
        return subprocess.run(  # noqa: S603
            ["pass", pass_path], input=passphrase, capture_output=True, text=True, check=True, env=env  # noqa: S607
        )
    except FileNotFoundError as e:
        msg = "The pass utility is not installed"
        raise PassError(msg) from e


def _describe_failure(pass_path: str, e: subprocess.CalledProcessError, suffix: str = "") -> str:
    return (
        f"Failed to get value from pass at '{pass_path}'{suffix}.\n"
        f"Output: {e.stdout.strip()}\n"
        f"Error: {e.stderr.strip()}\n"
        f"Return code: {e.returncode}"
    )


def get_pass_value(pass_path: str) -> str:
    """Get value from pass utility at specified path.

    Asks for the GPG passphrase on stdin when the agent cannot decrypt on its own.
    """
    _validate_pass_path(pass_path)

    try:
        result = _run_pass(pass_path)
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.lower()
        if e.returncode == 1 and "not in the password store" in stderr:
            msg = f"Pass path '{pass_path}' not found or invalid."
            raise InvalidPassPathError(msg) from e
        if not (e.returncode == 2 and "gpg" in stderr and "public key decryption failed" in stderr):  # noqa: PLR2004
            raise PassError(_describe_failure(pass_path, e)) from e

        # Fails in non-interactive sessions (e.g. pytest)
        try:
            passphrase = input("Enter passphrase for GPG key used by pass: ")
        except EOFError as eof:
            msg = "Passphrase input was interrupted. Please run the command in an interactive session."
            raise PassphraseRequiredError(msg) from eof
        try:
            result = _run_pass(pass_path, passphrase)
        except subprocess.CalledProcessError as retry_error:
            raise PassphraseRequiredError(_describe_failure(pass_path, retry_error, " with passphrase")) from retry_error

    return result.stdout.strip()
