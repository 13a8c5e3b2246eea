"""Dependency records and selection of dependency versions by constraint."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .cargo import Config, ConfigMetadataDependency, ConfigMetadataDependencyConstraint
from .semver import new_constraint, parse_version

__all__ = [
    "Stack",
    "Distro",
    "Dependency",
    "get_dependencies_within_constraint",
    "get_cargo_dependencies_within_constraint",
    "find_dependency_name",
]

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Stack:
    """A stack a dependency is built for."""

    id: str = ""


@dataclass(frozen=True)
class Distro:
    """A distribution a dependency is built for."""

    name: str = ""
    version: str = ""


@dataclass
class Dependency:
    """One entry of a dependency server listing.

    ``id`` holds the entry's name; ``cpe`` and ``sha256`` are kept for older
    listings that lack ``cpes`` and ``checksum``.
    """

    arch: str = ""
    checksum: str = ""
    cpe: str = ""
    cpes: list[str] = field(default_factory=list)
    created_at: str = ""
    deprecation_date: str = ""
    distros: list[Distro] = field(default_factory=list)
    id: str = ""
    licenses: list[str] = field(default_factory=list)
    modified_at: str = ""
    os: str = ""
    purl: str = ""
    sha256: str = ""
    source: str = ""
    source_checksum: str = ""
    source_sha256: str = ""
    stacks: list[Stack] = field(default_factory=list)
    uri: str = ""
    version: str = ""


def _parse_rfc3339(text: str) -> datetime:
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return _ZERO_TIME


def _to_cargo(dependency: Dependency, dependency_name: str) -> ConfigMetadataDependency:
    converted = ConfigMetadataDependency(
        cpe=dependency.cpe,
        purl=dependency.purl,
        id=dependency.id,
        name=dependency_name,
        sha256=dependency.sha256,
        source=dependency.source,
        source_sha256=dependency.source_sha256,
        uri=dependency.uri,
        version=dependency.version.replace("v", ""),
        checksum=dependency.checksum,
        source_checksum=dependency.source_checksum,
        stacks=[stack.id for stack in dependency.stacks],
        licenses=list(dependency.licenses),
    )
    if dependency.deprecation_date:
        converted.deprecation_date = _parse_rfc3339(dependency.deprecation_date)
    return converted


def get_dependencies_within_constraint(
    dependencies: list[Dependency],
    constraint: ConfigMetadataDependencyConstraint,
    dependency_name: str,
) -> list[ConfigMetadataDependency]:
    """Return the highest ``constraint.patches`` matching dependencies, lowest version first."""
    matching: list[ConfigMetadataDependency] = []
    for dependency in dependencies:
        condition = new_constraint(constraint.constraint)
        version = parse_version(dependency.version)
        if not condition.check(version) or dependency.id != constraint.id:
            continue
        matching.append(_to_cargo(dependency, dependency_name))

    matching.sort(key=lambda dep: parse_version(dep.version))

    if constraint.patches > len(matching):
        return matching
    return matching[len(matching) - constraint.patches :]


def _contains_variant(
    deps: list[ConfigMetadataDependency], os: str, arch: str, stacks: list[str]
) -> bool:
    return any(
        (not os or dep.os == os) and (not arch or dep.arch == arch) and dep.stacks == stacks
        for dep in deps
    )


def get_cargo_dependencies_within_constraint(
    dependencies: list[ConfigMetadataDependency],
    constraint: ConfigMetadataDependencyConstraint,
) -> list[ConfigMetadataDependency]:
    """Return matching dependencies for the highest ``constraint.patches`` versions.

    Variants of one version that differ by OS, architecture or stacks are all
    kept and count as a single patch.
    """
    condition = new_constraint(constraint.constraint)
    by_version: dict[str, list[ConfigMetadataDependency]] = {}

    for dependency in dependencies:
        version = parse_version(dependency.version)
        if dependency.id != constraint.id or not condition.check(version):
            continue
        variants = by_version.get(dependency.version)
        if variants is None:
            by_version[dependency.version] = [dependency]
        elif not _contains_variant(variants, dependency.os, dependency.arch, dependency.stacks):
            variants.append(dependency)

    versions = sorted(by_version, key=parse_version)
    start = max(len(versions) - constraint.patches, 0)
    return [dep for version in versions[start:] for dep in by_version[version]]


def find_dependency_name(dependency_id: str, config: Config) -> str:
    """Return the name of the last dependency in the config with the given ID, or ''."""
    name = ""
    for dependency in config.metadata.dependencies:
        if dependency.id == dependency_id:
            name = dependency.name
    return name