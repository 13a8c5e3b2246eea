"""Reading and writing the order and stacks of a composite buildpack.toml."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import tomli_w

__all__ = [
    "BuildpackConfigError",
    "BuildpackConfigOrderGroup",
    "BuildpackConfigOrder",
    "BuildpackConfigStack",
    "BuildpackConfigTarget",
    "BuildpackConfig",
    "parse_buildpack_config",
    "overwrite_buildpack_config",
]


class BuildpackConfigError(Exception):
    """Raised when a buildpack configuration cannot be read or written."""


def _get(table: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = table.get(key, default)
    if not isinstance(value, kind):
        raise ValueError(f"{key}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _tables(table: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    items = _get(table, key, list, [])
    for item in items:
        if not isinstance(item, Mapping):
            raise ValueError(f"{key}: expected a table, got {type(item).__name__}")
    return items


@dataclass
class BuildpackConfigOrderGroup:
    """One buildpack in an order group."""

    id: str = ""
    version: str = ""
    optional: bool = False


@dataclass
class BuildpackConfigOrder:
    """One [[order]] entry."""

    group: list[BuildpackConfigOrderGroup] = field(default_factory=list)


@dataclass
class BuildpackConfigStack:
    """One [[stacks]] entry."""

    id: str = ""
    mixins: list[str] = field(default_factory=list)


@dataclass
class BuildpackConfigTarget:
    """One [[targets]] entry."""

    os: str = ""
    arch: str = ""


@dataclass
class BuildpackConfig:
    """A buildpack.toml whose api, buildpack and metadata tables are kept as parsed."""

    api: Any = None
    buildpack: Any = None
    metadata: Any = None
    order: list[BuildpackConfigOrder] = field(default_factory=list)
    stacks: list[BuildpackConfigStack] = field(default_factory=list)
    targets: list[BuildpackConfigTarget] = field(default_factory=list)

    @classmethod
    def _from_table(cls, table: Mapping[str, Any]) -> BuildpackConfig:
        return cls(
            api=table.get("api"),
            buildpack=table.get("buildpack"),
            metadata=table.get("metadata"),
            order=[
                BuildpackConfigOrder(
                    group=[
                        BuildpackConfigOrderGroup(
                            id=_get(g, "id", str, ""),
                            version=_get(g, "version", str, ""),
                            optional=_get(g, "optional", bool, False),
                        )
                        for g in _tables(o, "group")
                    ]
                )
                for o in _tables(table, "order")
            ],
            stacks=[
                BuildpackConfigStack(
                    id=_get(s, "id", str, ""), mixins=list(_get(s, "mixins", list, []))
                )
                for s in _tables(table, "stacks")
            ],
            targets=[
                BuildpackConfigTarget(os=_get(t, "os", str, ""), arch=_get(t, "arch", str, ""))
                for t in _tables(table, "targets")
            ],
        )

    def _to_table(self) -> dict[str, Any]:
        table: dict[str, Any] = {}
        for key, value in (
            ("api", self.api),
            ("buildpack", self.buildpack),
            ("metadata", self.metadata),
        ):
            if value is not None:
                table[key] = value
        if self.order:
            table["order"] = [{"group": [_dump_group(g) for g in o.group]} for o in self.order]
        if self.stacks:
            table["stacks"] = [_dump_stack(s) for s in self.stacks]
        if self.targets:
            table["targets"] = [_dump_target(t) for t in self.targets]
        return table


def _dump_group(group: BuildpackConfigOrderGroup) -> dict[str, Any]:
    table: dict[str, Any] = {"id": group.id}
    if group.version:
        table["version"] = group.version
    if group.optional:
        table["optional"] = True
    return table


def _dump_stack(stack: BuildpackConfigStack) -> dict[str, Any]:
    table: dict[str, Any] = {"id": stack.id}
    if stack.mixins:
        table["mixins"] = list(stack.mixins)
    return table


def _dump_target(target: BuildpackConfigTarget) -> dict[str, Any]:
    table: dict[str, Any] = {}
    if target.os:
        table["os"] = target.os
    if target.arch:
        table["arch"] = target.arch
    return table


def parse_buildpack_config(path: str | os.PathLike[str]) -> BuildpackConfig:
    """Read a buildpack.toml."""
    try:
        with open(path, "rb") as file:
            data = file.read()
    except OSError as err:
        raise BuildpackConfigError(f"failed to open buildpack config file: {err}") from err
    try:
        return BuildpackConfig._from_table(tomllib.loads(data.decode("utf-8")))
    except ValueError as err:
        raise BuildpackConfigError(f"failed to parse buildpack config: {err}") from err


def overwrite_buildpack_config(path: str | os.PathLike[str], config: BuildpackConfig) -> None:
    """Replace the contents of an existing buildpack.toml with the given config."""
    try:
        fd = os.open(path, os.O_RDWR | os.O_TRUNC)
    except OSError as err:
        raise BuildpackConfigError(f"failed to open buildpack config file: {err}") from err
    with os.fdopen(fd, "w", encoding="utf-8") as file:
        try:
            text = tomli_w.dumps(config._to_table())
        except (TypeError, ValueError) as err:
            raise BuildpackConfigError(f"failed to write buildpack config: {err}") from err
        file.write(text)