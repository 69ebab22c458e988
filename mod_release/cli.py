"""CLI entry point for mod-release."""

from __future__ import annotations

from pathlib import Path

import click

from .changelog import changelog_to_markdown, render_changelog
from .config import load_config
from .exceptions import ModReleaseError
from .manifest import load_manifest, manifest_version
from .pipeline import generate_changelog, manage_version, run_package
from .release_notes import previous_tag, release_notes
from .shell import fatal, step, warn

manifest_option = click.option(
    "--manifest",
    "manifest_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Manifest holding the mod name and version [default: package.json].",
)
ci_build_option = click.option(
    "--ci-build", is_flag=True, help="Use the manifest version as-is; never commit or tag."
)
release_option = click.option(
    "--release", is_flag=True, help="Create and push the v<version> tag."
)


def _resolve_modes(ci_build: bool, release: bool) -> bool:
    """Return the effective release flag; CI builds never tag."""
    if ci_build and release:
        warn("--ci-build and --release both given; running as a CI build")
        return False
    return release


@click.group()
@click.version_option(package_name="mod-release")
def cli() -> None:
    """Version, changelog and packaging for Factorio mods, driven by git history."""


@cli.command()
@ci_build_option
@release_option
@manifest_option
def version(ci_build: bool, release: bool, manifest_path: Path | None) -> None:
    """Compute, commit and optionally tag the next version."""
    release = _resolve_modes(ci_build, release)
    try:
        config = load_config(manifest_path=manifest_path)
        resolved, _ = manage_version(config, ci_build=ci_build, release=release)
    except ModReleaseError as e:
        fatal(str(e))
    click.echo(str(resolved))


@cli.command()
@ci_build_option
@release_option
@click.option("--skip-build", is_flag=True, help="Don't run the build command.")
@click.option(
    "--github-output",
    type=click.Path(dir_okay=False),
    default=None,
    help="File to append step outputs to [default: $GITHUB_OUTPUT].",
)
@manifest_option
def package(
    ci_build: bool,
    release: bool,
    skip_build: bool,
    github_output: str | None,
    manifest_path: Path | None,
) -> None:
    """Manage the version, regenerate the changelog and zip the mod."""
    release = _resolve_modes(ci_build, release)
    try:
        config = load_config(manifest_path=manifest_path)
        run_package(
            config,
            ci_build=ci_build,
            release=release,
            skip_build=skip_build,
            github_output=github_output,
        )
    except ModReleaseError as e:
        fatal(str(e))


@cli.command()
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the changelog here instead of stdout.",
)
@manifest_option
def changelog(output: Path | None, manifest_path: Path | None) -> None:
    """Render the cumulative changelog for the manifest's current version."""
    try:
        config = load_config(manifest_path=manifest_path)
        current = manifest_version(load_manifest(config.manifest_path), config.manifest_path)
        text = generate_changelog(config, current, just_bumped=False)
    except ModReleaseError as e:
        fatal(str(e))

    if output is None:
        click.echo(text, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text)
    click.echo(f"✓ Wrote changelog to {output}")


@cli.command()
@click.option(
    "--input",
    "input_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("dist/changelog.txt"),
    show_default=True,
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("dist/changelog.md"),
    show_default=True,
)
def markdown(input_path: Path, output: Path) -> None:
    """Convert a text changelog into GitHub release markdown."""
    if not input_path.exists():
        raise click.ClickException(
            f"Changelog not found at {input_path}. Run 'mod-release package' first."
        )
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(changelog_to_markdown(input_path.read_text()) + "\n")
    click.echo(f"✓ Wrote {output}")


@cli.command()
@click.argument("tag")
@click.option("--previous", default=None, help="Tag to diff against [default: auto].")
@manifest_option
def notes(tag: str, previous: str | None, manifest_path: Path | None) -> None:
    """Print markdown release notes for TAG."""
    step(f"Release notes for {tag}")
    try:
        config = load_config(manifest_path=manifest_path)
        previous = previous or previous_tag(tag)
        section = release_notes(tag, previous, config.categories)
    except ModReleaseError as e:
        fatal(str(e))

    if section is None:
        click.echo("No changes documented for this release.")
        return
    click.echo(changelog_to_markdown(render_changelog([section])))
