"""Tests for mod_release.cli."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import semver
from click.testing import CliRunner

from mod_release.changelog import render_changelog
from mod_release.cli import cli
from mod_release.exceptions import DirtyWorkingTree
from mod_release.models import ChangelogSection, ClassifiedCommit


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def in_tmp_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every command from an empty project directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestVersion:
    """Tests for the version command."""

    @patch("mod_release.cli.manage_version")
    def test_prints_version_last(self, mock_manage: MagicMock, runner: CliRunner) -> None:
        """The resolved version is the last line of output."""
        mock_manage.return_value = (semver.Version(0, 0, 30), True)

        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert result.output.splitlines()[-1] == "0.0.30"
        assert mock_manage.call_args.kwargs == {"ci_build": False, "release": False}

    @patch("mod_release.cli.manage_version")
    def test_ci_build_wins_over_release(
        self, mock_manage: MagicMock, runner: CliRunner
    ) -> None:
        """--ci-build with --release warns and doesn't tag."""
        mock_manage.return_value = (semver.Version(0, 1, 0), False)

        result = runner.invoke(cli, ["version", "--ci-build", "--release"])

        assert result.exit_code == 0
        assert "WARNING:" in result.output
        assert mock_manage.call_args.kwargs == {"ci_build": True, "release": False}

    @patch("mod_release.cli.manage_version")
    def test_errors_exit_1(self, mock_manage: MagicMock, runner: CliRunner) -> None:
        """Release errors are reported and exit with status 1."""
        mock_manage.side_effect = DirtyWorkingTree("Repository has uncommitted changes.")

        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 1
        assert "ERROR: Repository has uncommitted changes." in result.output

    @patch("mod_release.cli.manage_version")
    def test_manifest_option(
        self, mock_manage: MagicMock, runner: CliRunner
    ) -> None:
        """--manifest overrides the configured manifest path."""
        mock_manage.return_value = (semver.Version(1, 0, 0), False)

        runner.invoke(cli, ["version", "--manifest", "mod.toml"])

        config = mock_manage.call_args.args[0]
        assert config.manifest_path == Path("mod.toml")

    def test_bad_config_exit_1(self, runner: CliRunner, in_tmp_repo: Path) -> None:
        """An invalid configuration file is fatal."""
        (in_tmp_repo / "mod-release.toml").write_text("fallback_commits = -1\n")

        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 1
        assert "Invalid mod-release configuration" in result.output


class TestPackage:
    """Tests for the package command."""

    @patch("mod_release.cli.run_package")
    def test_passes_flags(self, mock_run: MagicMock, runner: CliRunner) -> None:
        """Flags are forwarded to the pipeline."""
        result = runner.invoke(
            cli, ["package", "--release", "--skip-build", "--github-output", "out.txt"]
        )

        assert result.exit_code == 0
        assert mock_run.call_args.kwargs == {
            "ci_build": False,
            "release": True,
            "skip_build": True,
            "github_output": "out.txt",
        }


class TestChangelog:
    """Tests for the changelog command."""

    @patch("mod_release.cli.generate_changelog", return_value="rendered\n")
    def test_writes_file(
        self, mock_generate: MagicMock, runner: CliRunner, in_tmp_repo: Path
    ) -> None:
        """The changelog for the manifest's version is written without a bump."""
        (in_tmp_repo / "package.json").write_text('{"name": "m", "version": "0.3.1"}')

        result = runner.invoke(cli, ["changelog", "--output", "dist/changelog.txt"])

        assert result.exit_code == 0
        assert (in_tmp_repo / "dist" / "changelog.txt").read_text() == "rendered\n"
        assert mock_generate.call_args.args[1] == semver.Version(0, 3, 1)
        assert mock_generate.call_args.kwargs == {"just_bumped": False}

    def test_missing_manifest_exit_1(self, runner: CliRunner) -> None:
        """Without a manifest there's nothing to render."""
        result = runner.invoke(cli, ["changelog"])

        assert result.exit_code == 1
        assert "ERROR: Cannot read manifest package.json" in result.output


class TestMarkdown:
    """Tests for the markdown command."""

    def test_converts_default_paths(self, runner: CliRunner, in_tmp_repo: Path) -> None:
        """dist/changelog.txt is converted to dist/changelog.md."""
        (in_tmp_repo / "dist").mkdir()
        (in_tmp_repo / "dist" / "changelog.txt").write_text(
            render_changelog(
                [
                    ChangelogSection(
                        version="0.1.0",
                        date="2024-01-01",
                        entries={"Features": [ClassifiedCommit(category="Features", message="init")]},
                    )
                ]
            )
        )

        result = runner.invoke(cli, ["markdown"])

        assert result.exit_code == 0
        markdown = (in_tmp_repo / "dist" / "changelog.md").read_text()
        assert markdown.startswith("## Version 0.1.0 (2024-01-01)")
        assert "* init" in markdown

    def test_missing_input(self, runner: CliRunner) -> None:
        """A missing changelog is reported."""
        result = runner.invoke(cli, ["markdown"])

        assert result.exit_code == 1
        assert "Changelog not found" in result.output


class TestNotes:
    """Tests for the notes command."""

    @patch("mod_release.cli.release_notes")
    @patch("mod_release.cli.previous_tag", return_value="v0.1.0")
    def test_prints_markdown(
        self, mock_previous: MagicMock, mock_notes: MagicMock, runner: CliRunner
    ) -> None:
        """Notes for a tag are printed as markdown."""
        mock_notes.return_value = ChangelogSection(
            version="0.1.1",
            date="2024-02-01",
            entries={"Bugfixes": [ClassifiedCommit(category="Bugfixes", message="crash")]},
        )

        result = runner.invoke(cli, ["notes", "v0.1.1"])

        assert result.exit_code == 0
        mock_notes.assert_called_once()
        assert mock_notes.call_args.args[:2] == ("v0.1.1", "v0.1.0")
        assert "## Version 0.1.1 (2024-02-01)" in result.output
        assert "* crash" in result.output

    @patch("mod_release.cli.release_notes", return_value=None)
    @patch("mod_release.cli.previous_tag")
    def test_explicit_previous_and_empty(
        self, mock_previous: MagicMock, mock_notes: MagicMock, runner: CliRunner
    ) -> None:
        """--previous skips detection; an empty first release says so."""
        result = runner.invoke(cli, ["notes", "v0.1.0", "--previous", "v0.0.9"])

        assert result.exit_code == 0
        mock_previous.assert_not_called()
        assert "No changes documented" in result.output
