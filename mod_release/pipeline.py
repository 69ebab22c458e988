"""Release pipeline: version → commit → tag → changelog → bundle.

This module orchestrates a mod-release run:
1. Refuse to run on a dirty working tree (except CI builds)
2. Compute the next version from git history and reconcile it with the manifest
3. Write, commit and push the manifest if the version changed
4. In release mode, create and push the ``v<version>`` tag
5. Rebuild the cumulative changelog from the manifest's history
6. Build and zip the mod

CI builds skip steps 2-4 and use the manifest's version verbatim.
"""

from __future__ import annotations

from pathlib import Path

import semver

from . import vcs
from .bundle import bundle_mod
from .changelog import assemble_changelog, render_changelog
from .commits import version_commit_message
from .config import ReleaseConfig
from .exceptions import DirtyWorkingTree, VcsMutationFailed, VcsQueryFailed
from .history import ManifestHistory
from .manifest import load_manifest, manifest_version, write_manifest_version
from .series import resolve_version
from .shell import banner, step, warn
from .timeline import find_version_change_points
from .workflow_steps import github_output_path, write_package_outputs


def check_clean_tree() -> None:
    """Raise DirtyWorkingTree if there are uncommitted changes."""
    if vcs.is_dirty():
        raise DirtyWorkingTree(
            "Repository has uncommitted changes. Commit or stash them before "
            "releasing (see 'git status')."
        )


def build_id() -> str:
    """Short HEAD hash, suffixed with ``-dirty`` for uncommitted changes."""
    try:
        short = vcs.short_hash()
    except VcsQueryFailed:
        short = "unknownhash"
    try:
        dirty = vcs.is_dirty()
    except VcsQueryFailed:
        dirty = False
    return f"{short}-dirty" if dirty else short


def commit_version_bump(manifest_path: Path, version: str, remote: str) -> None:
    """Stage, commit and push the manifest version change.

    Raises:
        VcsMutationFailed: With the manual command to finish the step.
    """
    message = version_commit_message(version)
    try:
        vcs.add(str(manifest_path))
        vcs.commit(message)
    except VcsMutationFailed as e:
        raise VcsMutationFailed(
            f"Failed to commit the {manifest_path} version update. Check that git "
            f"user.name/user.email are set, then run: "
            f'git add {manifest_path} && git commit -m "{message}"',
            stderr=e.stderr,
        ) from e
    print(f"  Committed: {message}")

    try:
        vcs.push(remote)
    except VcsMutationFailed as e:
        raise VcsMutationFailed(
            f"Failed to push the version commit to {remote}. Check network access "
            f"and permissions, then run: git push -u {remote} HEAD",
            stderr=e.stderr,
        ) from e
    print(f"  Pushed to {remote}")


def ensure_release_tag(version: str, remote: str) -> str:
    """Create (if needed) and push the ``v<version>`` tag.

    An existing local tag that points elsewhere is deleted and re-created
    on HEAD, with a warning.

    Returns:
        The tag name.
    """
    tag = f"v{version}"
    step(f"Tagging release {tag}")
    remediation = (
        f"Verify the tag with 'git show-ref --tags' and 'git ls-remote --tags {remote}', "
        f"resolve any conflict, then run: git push {remote} {tag}"
    )

    existing = vcs.tag_commit(tag)
    if existing is None:
        try:
            vcs.create_tag(tag)
        except VcsMutationFailed as e:
            raise VcsMutationFailed(
                f"Failed to create tag {tag}. {remediation}", stderr=e.stderr
            ) from e
        print(f"  Created {tag}")
    else:
        try:
            head = vcs.rev_parse("HEAD")
        except VcsQueryFailed:
            head = None
        if head is None:
            warn(f"Could not verify that existing tag {tag} points to HEAD")
        elif existing != head:
            warn(f"Tag {tag} exists at {existing[:7]}, not HEAD ({head[:7]}); re-tagging HEAD")
            try:
                vcs.delete_tag(tag)
                vcs.create_tag(tag)
            except VcsMutationFailed as e:
                raise VcsMutationFailed(
                    f"Failed to move tag {tag} to HEAD. {remediation}", stderr=e.stderr
                ) from e
            print(f"  Moved {tag} to HEAD")
        else:
            print(f"  {tag} already exists on HEAD")

    try:
        vcs.push_tag(tag, remote)
    except VcsMutationFailed as e:
        raise VcsMutationFailed(
            f"Failed to push tag {tag} to {remote}. {remediation}", stderr=e.stderr
        ) from e
    print(f"  Pushed {tag} to {remote}")
    return tag


def manage_version(
    config: ReleaseConfig,
    *,
    ci_build: bool = False,
    release: bool = False,
    history: ManifestHistory | None = None,
) -> tuple[semver.Version, bool]:
    """Determine the version to release, committing a bump if needed.

    Args:
        config: Release configuration.
        ci_build: Use the manifest version as-is; no git mutations.
        release: Also create and push the release tag.
        history: Manifest history to reuse (created if not given).

    Returns:
        Tuple of (version, whether this run committed a version bump).
    """
    if not ci_build:
        check_clean_tree()

    manifest = load_manifest(config.manifest_path)
    current = manifest_version(manifest, config.manifest_path)

    if ci_build:
        step("CI build")
        print(f"  Using version {current} from {config.manifest_path}")
        return current, False

    history = history or ManifestHistory(str(config.manifest_path))
    decision = resolve_version(history, current, fallback_commits=config.fallback_commits)

    if decision.should_commit:
        step(f"Updating {config.manifest_path} to {decision.version}")
        write_manifest_version(config.manifest_path, str(decision.version))
        commit_version_bump(config.manifest_path, str(decision.version), config.remote)

    if release:
        ensure_release_tag(str(decision.version), config.remote)

    return decision.version, decision.should_commit


def generate_changelog(
    config: ReleaseConfig,
    version: semver.Version,
    just_bumped: bool,
    history: ManifestHistory | None = None,
) -> str:
    """Render the cumulative changelog for ``version``."""
    step("Generating changelog")
    history = history or ManifestHistory(str(config.manifest_path))
    points = find_version_change_points(history)
    print(f"  {len(points)} version changes in {config.manifest_path}")
    sections = assemble_changelog(
        points, version, just_bumped=just_bumped, categories=config.categories
    )
    return render_changelog(sections)


def run_package(
    config: ReleaseConfig,
    *,
    ci_build: bool = False,
    release: bool = False,
    skip_build: bool = False,
    github_output: str | None = None,
) -> Path:
    """Execute the full packaging pipeline.

    Returns:
        Path to the mod zip.
    """
    history = ManifestHistory(str(config.manifest_path))
    version, bumped = manage_version(
        config, ci_build=ci_build, release=release, history=history
    )
    changelog_text = generate_changelog(config, version, bumped, history)

    manifest = load_manifest(config.manifest_path)
    zip_path = bundle_mod(
        config,
        manifest,
        str(version),
        changelog_text,
        build_id=build_id(),
        skip_build=skip_build,
    )

    output = github_output_path(github_output)
    if output:
        write_package_outputs(output, zip_path, str(version))

    banner(f"Packaged {zip_path}")
    return zip_path
