"""Process and console helpers.

Every git call goes through git(); the mod's build command goes through
run() so its output reaches the terminal. The print helpers give the
tool its section rules, warnings and errors.
"""

from __future__ import annotations

import subprocess
import sys
from typing import NoReturn

RULE_WIDTH = 60


def git(*args: str, check: bool = True) -> str:
    """Run git and return its stdout as UTF-8 text.

    Output is decoded strictly, so manifest content stored in another
    encoding raises UnicodeDecodeError rather than being read with the
    locale's codec.

    Args:
        *args: Arguments to pass to git (e.g., "show", "abc1234:package.json").
        check: If True (default), raise CalledProcessError on non-zero exit,
               with stderr decoded for the error message.

    Returns:
        Stdout with trailing whitespace removed. Leading whitespace is kept
        since it is significant in file contents.
    """
    cmd = ["git", *args]
    result = subprocess.run(cmd, capture_output=True)
    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode,
            cmd,
            output=result.stdout.decode("utf-8", errors="replace"),
            stderr=result.stderr.decode("utf-8", errors="replace"),
        )
    return result.stdout.decode("utf-8").rstrip()


def run(*args: str, check: bool = True) -> subprocess.CompletedProcess[bytes]:
    """Run the build command, streaming its output to the terminal."""
    return subprocess.run(args, check=check)


def step(msg: str) -> None:
    """Print a phase header between thin rules."""
    print(f"\n{'─' * RULE_WIDTH}\n{msg}\n{'─' * RULE_WIDTH}")


def banner(msg: str) -> None:
    """Print the closing message of a run between heavy rules."""
    print(f"\n{'=' * RULE_WIDTH}\n{msg}\n{'=' * RULE_WIDTH}")


def warn(msg: str) -> None:
    print(f"WARNING: {msg}", file=sys.stderr)


def fatal(msg: str) -> NoReturn:
    """Print an error to stderr and exit with code 1."""
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
