"""Tests for mod_release.vcs."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from mod_release import vcs
from mod_release.exceptions import VcsMutationFailed, VcsQueryFailed

F = "----MR-FIELD----"
R = "----MR-COMMIT----"


def _failure(*args: str, stderr: str = "fatal: bad revision") -> subprocess.CalledProcessError:
    return subprocess.CalledProcessError(128, ["git", *args], output="", stderr=stderr)


class TestQueries:
    """Tests for read-only queries."""

    @patch("mod_release.vcs.git")
    def test_log_hashes_follows_path(self, mock_git: MagicMock) -> None:
        """Path-filtered logs follow renames."""
        mock_git.return_value = "aaa\nbbb"

        assert vcs.log_hashes("package.json") == ["aaa", "bbb"]
        mock_git.assert_called_once_with(
            "log", "--pretty=format:%H", "--follow", "--", "package.json"
        )

    @patch("mod_release.vcs.git")
    def test_log_hashes_with_dates_reversed(self, mock_git: MagicMock) -> None:
        """Hashes are paired with committer dates, oldest-first when reversed."""
        mock_git.return_value = f"aaa{F}2024-01-01\nbbb{F}2024-02-01"

        result = vcs.log_hashes_with_dates("package.json", reverse=True)

        assert result == [("aaa", "2024-01-01"), ("bbb", "2024-02-01")]
        assert "--reverse" in mock_git.call_args.args

    @patch("mod_release.vcs.git")
    def test_empty_log_is_not_a_failure(self, mock_git: MagicMock) -> None:
        """No commits is a legitimate empty result."""
        mock_git.return_value = ""

        assert vcs.log_hashes("package.json") == []

    @patch("mod_release.vcs.git")
    def test_failure_raises_query_failed(self, mock_git: MagicMock) -> None:
        """A failing git call is reported, not turned into empty output."""
        mock_git.side_effect = _failure("show", "abc:package.json")

        with pytest.raises(VcsQueryFailed) as exc_info:
            vcs.file_at("abc", "package.json")

        assert "fatal: bad revision" in str(exc_info.value)
        assert exc_info.value.stderr == "fatal: bad revision"

    @patch("mod_release.vcs.git")
    def test_undecodable_output_raises_query_failed(self, mock_git: MagicMock) -> None:
        """Content that isn't UTF-8 is a query failure, not a crash."""
        mock_git.side_effect = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        with pytest.raises(VcsQueryFailed, match="undecodable"):
            vcs.file_at("abc", "package.json")

    @patch("mod_release.vcs.git")
    def test_missing_git_raises_query_failed(self, mock_git: MagicMock) -> None:
        """A missing git executable is a query failure too."""
        mock_git.side_effect = FileNotFoundError("git")

        with pytest.raises(VcsQueryFailed):
            vcs.is_dirty()

    @patch("mod_release.vcs.git")
    def test_parent_of_root_is_none(self, mock_git: MagicMock) -> None:
        """A commit listed without parents is a root commit."""
        mock_git.return_value = "aaa"

        assert vcs.parent_of("aaa") is None

    @patch("mod_release.vcs.git")
    def test_parent_of_returns_first_parent(self, mock_git: MagicMock) -> None:
        """The first listed parent is returned."""
        mock_git.return_value = "aaa bbb"

        assert vcs.parent_of("aaa") == "bbb"

    @patch("mod_release.vcs.git")
    def test_count_commits_between(self, mock_git: MagicMock) -> None:
        """Counts use a half-open range."""
        mock_git.return_value = "4"

        assert vcs.count_commits_between("v1.0.0", "v1.0.1") == 4
        mock_git.assert_called_once_with("rev-list", "--count", "v1.0.0..v1.0.1")

    @patch("mod_release.vcs.git")
    def test_date_of_empty_raises(self, mock_git: MagicMock) -> None:
        """An empty date is a failure, not a value."""
        mock_git.return_value = ""

        with pytest.raises(VcsQueryFailed):
            vcs.date_of("v1.0.0")

    @patch("mod_release.vcs.git")
    def test_list_tags_sorted(self, mock_git: MagicMock) -> None:
        """Tags are listed with the requested sort key."""
        mock_git.return_value = "v0.2.0\nv0.1.0\n"

        assert vcs.list_tags() == ["v0.2.0", "v0.1.0"]
        mock_git.assert_called_once_with("tag", "--list", "--sort=-v:refname")

    @patch("mod_release.vcs.git")
    def test_tag_commit_missing_is_none(self, mock_git: MagicMock) -> None:
        """A tag that doesn't exist resolves to None."""
        mock_git.side_effect = _failure("rev-parse")

        assert vcs.tag_commit("v9.9.9") is None

    @patch("mod_release.vcs.git")
    def test_is_dirty(self, mock_git: MagicMock) -> None:
        """Any porcelain output means the tree is dirty."""
        mock_git.return_value = " M package.json"
        assert vcs.is_dirty()

        mock_git.return_value = ""
        assert not vcs.is_dirty()

    @patch("mod_release.vcs.git")
    def test_subjects_max_count(self, mock_git: MagicMock) -> None:
        """max_count limits how far back subjects are read."""
        mock_git.return_value = "fix: a\nfeat: b"

        assert vcs.subjects("HEAD", max_count=2) == ["fix: a", "feat: b"]
        mock_git.assert_called_once_with(
            "log", "--pretty=format:%s", "--max-count=2", "HEAD"
        )


class TestCommitsInRange:
    """Tests for commits_in_range()."""

    @patch("mod_release.vcs.git")
    def test_parses_records(self, mock_git: MagicMock) -> None:
        """Multi-line bodies and root commits are parsed."""
        mock_git.return_value = (
            f"bbb{F}aaa{F}2024-02-01{F}feat(ui): add button{F}First line\n\nSecond line\n{R}\n"
            f"aaa{F}{F}2024-01-01{F}init{F}{R}"
        )

        records = vcs.commits_in_range("HEAD")

        assert [r.hash for r in records] == ["bbb", "aaa"]
        assert records[0].parent_hash == "aaa"
        assert records[0].subject == "feat(ui): add button"
        assert records[0].body == "First line\n\nSecond line"
        assert records[0].author_date == "2024-02-01"
        assert records[1].parent_hash is None
        assert records[1].body == ""

    @patch("mod_release.vcs.git")
    def test_empty_range(self, mock_git: MagicMock) -> None:
        """An empty range has no records."""
        mock_git.return_value = ""

        assert vcs.commits_in_range("aaa..HEAD") == []


class TestMutations:
    """Tests for mutating operations."""

    @patch("mod_release.vcs.git")
    def test_push_sets_upstream(self, mock_git: MagicMock) -> None:
        """Pushes go to the given remote with -u."""
        vcs.push("origin")

        mock_git.assert_called_once_with("push", "-u", "origin", "HEAD")

    @patch("mod_release.vcs.git")
    def test_failure_raises_mutation_failed(self, mock_git: MagicMock) -> None:
        """Mutation failures are distinct from query failures."""
        mock_git.side_effect = _failure("commit", stderr="nothing to commit")

        with pytest.raises(VcsMutationFailed) as exc_info:
            vcs.commit("chore: Update version to 0.1.1")

        assert not isinstance(exc_info.value, VcsQueryFailed)
        assert "nothing to commit" in str(exc_info.value)

    @patch("mod_release.vcs.git")
    def test_delete_tag(self, mock_git: MagicMock) -> None:
        """Only the local tag is deleted."""
        vcs.delete_tag("v0.1.1")

        mock_git.assert_called_once_with("tag", "-d", "v0.1.1")
