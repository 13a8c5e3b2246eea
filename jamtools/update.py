"""Updating buildpack versions and dependency lists."""

from __future__ import annotations

import json
import os
import tomllib
from typing import Any

from .cargo import ConfigMetadataDependency, decode_config, encode_config
from .dependency import get_cargo_dependencies_within_constraint
from .semver import strict_parse_version

__all__ = [
    "CommandError",
    "semver_bump",
    "highest_semver_bump",
    "update_dependencies_run",
]

_BUMP_RANK = {"<none>": 0, "patch": 1, "minor": 2, "major": 3}


class CommandError(Exception):
    """Raised when a command cannot complete."""


def semver_bump(old_version: str, new_version: str) -> str:
    """Return 'major', 'minor', 'patch' or '<none>' for the change between two versions.

    Both versions must be strict MAJOR.MINOR.PATCH versions.
    """
    old = strict_parse_version(old_version)
    new = strict_parse_version(new_version)
    if new.major > old.major:
        return "major"
    if new.minor > old.minor:
        return "minor"
    if new.patch > old.patch:
        return "patch"
    return "<none>"


def highest_semver_bump(highest: str, current: str) -> str:
    """Return the larger of two bumps; an unknown highest bump is kept as it is."""
    if highest not in _BUMP_RANK:
        return highest
    if highest == "<none>":
        return current
    if _BUMP_RANK.get(current, 0) > _BUMP_RANK[highest]:
        return current
    return highest


def _load_new_dependencies(metadata_file: str | os.PathLike[str]) -> list[ConfigMetadataDependency]:
    try:
        with open(metadata_file, encoding="utf-8") as file:
            text = file.read()
    except OSError as err:
        raise CommandError(f"failed to open metadata.json file: {err}") from err
    try:
        entries: Any = json.loads(text)
        if not isinstance(entries, list):
            raise TypeError(f"expected a list, got {type(entries).__name__}")
        return [ConfigMetadataDependency.from_dict(entry) for entry in entries]
    except (ValueError, TypeError) as err:
        raise CommandError(f"failed decode metadata.json: {err}") from err


def update_dependencies_run(
    buildpack_file: str | os.PathLike[str], metadata_file: str | os.PathLike[str]
) -> list[str]:
    """Merge the dependencies in metadata_file into buildpack_file by its constraints.

    Returns the versions that were not in the buildpack.toml before, sorted.
    """
    try:
        with open(buildpack_file, "rb") as file:
            config = decode_config(file.read())
    except (OSError, tomllib.TOMLDecodeError, ValueError, TypeError) as err:
        raise CommandError(f"failed to parse buildpack.toml: {err}") from err

    original_versions = {dep.version for dep in config.metadata.dependencies}
    new_dependencies = _load_new_dependencies(metadata_file)
    all_dependencies = [*config.metadata.dependencies, *new_dependencies]

    matching: list[ConfigMetadataDependency] = []
    for constraint in config.metadata.dependency_constraints:
        matching.extend(get_cargo_dependencies_within_constraint(all_dependencies, constraint))
        if matching:
            config.metadata.dependencies = list(matching)

    new_versions = sorted(
        {dep.version for dep in config.metadata.dependencies} - original_versions
    )

    try:
        text = encode_config(config)
    except (TypeError, ValueError) as err:
        raise CommandError(f"failed to write buildpack config: {err}") from err

    try:
        fd = os.open(buildpack_file, os.O_RDWR | os.O_TRUNC)
    except OSError as err:
        raise CommandError(f"failed to open buildpack config file: {err}") from err
    with os.fdopen(fd, "w", encoding="utf-8") as file:
        file.write(text)

    print("Updating buildpack.toml with new versions: ", f"[{' '.join(new_versions)}]")
    return new_versions