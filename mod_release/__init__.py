"""mod-release - git-driven versioning, changelogs and packaging for Factorio mods."""
