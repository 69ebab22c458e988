"""Git queries and mutations.

Read-only queries raise VcsQueryFailed when git fails, so callers can tell
"git could not answer" apart from a legitimately empty result. Mutations
(add, commit, push, tag) raise VcsMutationFailed and are never retried.
"""

from __future__ import annotations

import subprocess

from .exceptions import VcsMutationFailed, VcsQueryFailed
from .models import CommitRecord
from .shell import git

# Markers unlikely to appear in commit messages; control characters would be
# eaten by str.strip()/splitlines().
_FIELD_SEP = "----MR-FIELD----"
_RECORD_SEP = "----MR-COMMIT----"
_COMMIT_FORMAT = (
    "--pretty=format:" + _FIELD_SEP.join(["%H", "%P", "%as", "%s", "%b"]) + _RECORD_SEP
)


def _query(*args: str) -> str:
    try:
        return git(*args)
    except subprocess.CalledProcessError as e:
        raise VcsQueryFailed(f"git {' '.join(args)} failed", stderr=e.stderr) from e
    except UnicodeDecodeError as e:
        raise VcsQueryFailed(f"git {' '.join(args)} returned undecodable output: {e}") from e
    except FileNotFoundError as e:
        raise VcsQueryFailed("git executable not found") from e


def _mutate(*args: str) -> str:
    try:
        return git(*args)
    except subprocess.CalledProcessError as e:
        raise VcsMutationFailed(f"git {' '.join(args)} failed", stderr=e.stderr) from e
    except FileNotFoundError as e:
        raise VcsMutationFailed("git executable not found") from e


# --- Read-only queries ---


def log_hashes(path: str | None = None) -> list[str]:
    """List commit hashes newest-first, optionally only those touching ``path``."""
    args = ["log", "--pretty=format:%H"]
    if path:
        args.extend(["--follow", "--", path])
    return _query(*args).splitlines()


def log_hashes_with_dates(path: str, *, reverse: bool = False) -> list[tuple[str, str]]:
    """Like log_hashes(), but pairs each hash with its committer date (YYYY-MM-DD)."""
    args = ["log", f"--pretty=format:%H{_FIELD_SEP}%cs"]
    if reverse:
        args.append("--reverse")
    args.extend(["--follow", "--", path])
    pairs: list[tuple[str, str]] = []
    for line in _query(*args).splitlines():
        commit_hash, _, date = line.partition(_FIELD_SEP)
        if commit_hash:
            pairs.append((commit_hash, date))
    return pairs


def file_at(commit: str, path: str) -> str:
    """Return the content of ``path`` as of ``commit``.

    Raises:
        VcsQueryFailed: If the file does not exist at that commit.
    """
    return _query("show", f"{commit}:{path}")


def parent_of(commit: str) -> str | None:
    """Return the first parent of ``commit``, or None for a root commit."""
    parts = _query("rev-list", "--parents", "-n", "1", commit).split()
    return parts[1] if len(parts) > 1 else None


def count_commits_between(base: str, tip: str = "HEAD") -> int:
    """Count commits reachable from ``tip`` but not from ``base``."""
    return int(_query("rev-list", "--count", f"{base}..{tip}") or 0)


def date_of(ref: str) -> str:
    """Return the committer date (YYYY-MM-DD) of a commit or tag."""
    date = _query("log", "-1", "--format=%cs", ref).strip()
    if not date:
        raise VcsQueryFailed(f"No commit date for {ref}")
    return date


def list_tags(sort: str = "-v:refname") -> list[str]:
    """List tags using git's ``--sort`` key (newest version first by default)."""
    return [t for t in _query("tag", "--list", f"--sort={sort}").splitlines() if t.strip()]


def rev_parse(ref: str) -> str:
    return _query("rev-parse", ref)


def short_hash(ref: str = "HEAD") -> str:
    return _query("rev-parse", "--short", ref)


def tag_commit(tag: str) -> str | None:
    """Return the commit a local tag points to, or None if it doesn't exist."""
    try:
        return _query("rev-parse", f"refs/tags/{tag}^{{commit}}")
    except VcsQueryFailed:
        return None


def describe_tag(ref: str) -> str:
    """Return the nearest tag reachable from ``ref``."""
    return _query("describe", "--tags", "--abbrev=0", ref)


def is_dirty() -> bool:
    """True if there are staged, unstaged or untracked changes."""
    return bool(_query("status", "--porcelain").strip())


def subjects(rev_range: str, max_count: int | None = None) -> list[str]:
    """Return commit subjects for a revision range, newest-first."""
    args = ["log", "--pretty=format:%s"]
    if max_count is not None:
        args.append(f"--max-count={max_count}")
    args.append(rev_range)
    return [s for s in _query(*args).splitlines() if s]


def commits_in_range(rev_range: str) -> list[CommitRecord]:
    """Return full commit records for a revision range, newest-first.

    ``rev_range`` is anything ``git log`` accepts: ``a..b`` for a half-open
    interval, or a single ref for everything reachable from it.
    """
    raw = _query("log", _COMMIT_FORMAT, rev_range)
    records: list[CommitRecord] = []
    for chunk in raw.split(_RECORD_SEP):
        chunk = chunk.strip("\n")
        if not chunk.strip():
            continue
        fields = chunk.split(_FIELD_SEP)
        if len(fields) < 4:
            continue
        parents = fields[1].split()
        records.append(
            CommitRecord(
                hash=fields[0],
                parent_hash=parents[0] if parents else None,
                author_date=fields[2],
                subject=fields[3].strip(),
                body=fields[4].strip() if len(fields) > 4 else "",
            )
        )
    return records


# --- Mutations ---


def add(path: str) -> None:
    _mutate("add", path)


def commit(message: str) -> None:
    _mutate("commit", "-m", message)


def push(remote: str = "origin", branch: str = "HEAD") -> None:
    _mutate("push", "-u", remote, branch)


def create_tag(tag: str) -> None:
    _mutate("tag", tag)


def delete_tag(tag: str) -> None:
    _mutate("tag", "-d", tag)


def push_tag(tag: str, remote: str = "origin") -> None:
    _mutate("push", remote, tag)
