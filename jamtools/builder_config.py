"""Reading and writing builder.toml files."""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

import tomli_w

__all__ = [
    "BuilderConfigError",
    "BuilderConfigBuildpack",
    "BuilderConfigExtension",
    "ImageRegistry",
    "Run",
    "Build",
    "BuilderConfigLifecycle",
    "BuilderConfigOrderGroup",
    "BuilderConfigOrder",
    "BuilderExtensionConfigOrderGroup",
    "BuilderExtensionConfigOrder",
    "BuilderConfigStack",
    "BuilderConfigTarget",
    "BuilderConfig",
    "parse_builder_config",
    "overwrite_builder_config",
]


class BuilderConfigError(Exception):
    """Raised when a builder configuration cannot be read or written."""


_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_DOCKER_PREFIX = "docker://"


def _strip_scheme(uri: str) -> str:
    """Remove the scheme and a leading '//' from a URI, rejecting bad escapes."""
    bad = _BAD_ESCAPE_RE.search(uri)
    if bad is not None:
        start = bad.start()
        raise ValueError(f'parse "{uri}": invalid URL escape "{uri[start:start + 3]}"')
    match = _SCHEME_RE.match(uri)
    if match is not None:
        uri = uri[match.end():]
    return uri.removeprefix("//")


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


def _table(table: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    return _get(table, key, dict, {})


def _string(table: Mapping[str, Any], key: str) -> str:
    value = table.get(key)
    return value if isinstance(value, str) else ""


@dataclass
class BuilderConfigBuildpack:
    """A buildpack image; the table may name it by 'uri' or by 'image'."""

    uri: str = ""
    version: str = ""

    @classmethod
    def _from_table(cls, table: Mapping[str, Any]) -> BuilderConfigBuildpack:
        uri = _string(table, "image")
        uri = _string(table, "uri") or uri if "uri" in table else uri
        return cls(uri=_strip_scheme(uri) if uri else "", version=_string(table, "version"))

    def _to_table(self) -> dict[str, Any]:
        return {"uri": self.uri, "version": self.version}


@dataclass
class BuilderConfigExtension:
    """An extension image; the table may name it by 'uri' or by 'image'."""

    id: str = ""
    uri: str = ""
    version: str = ""

    @classmethod
    def _from_table(cls, table: Mapping[str, Any]) -> BuilderConfigExtension:
        uri = _string(table, "image")
        uri = _string(table, "uri") or uri if "uri" in table else uri
        return cls(
            id=_string(table, "id"),
            uri=_strip_scheme(uri) if uri else "",
            version=_string(table, "version"),
        )

    def _to_table(self) -> dict[str, Any]:
        return {"id": self.id, "uri": self.uri, "version": self.version}


@dataclass
class ImageRegistry:
    """One run image reference."""

    image: str = ""


@dataclass
class Run:
    """The [run] table."""

    images: list[ImageRegistry] = field(default_factory=list)


@dataclass
class Build:
    """The [build] table."""

    image: str = ""


@dataclass
class BuilderConfigLifecycle:
    """The [lifecycle] table."""

    version: str = ""


@dataclass
class BuilderConfigOrderGroup:
    """One buildpack in an order group."""

    id: str = ""
    version: str = ""
    optional: bool = False


@dataclass
class BuilderConfigOrder:
    """One [[order]] entry."""

    group: list[BuilderConfigOrderGroup] = field(default_factory=list)


@dataclass
class BuilderExtensionConfigOrderGroup:
    """One extension in an order group."""

    id: str = ""
    version: str = ""
    optional: bool = False


@dataclass
class BuilderExtensionConfigOrder:
    """One [[order-extensions]] entry."""

    group: list[BuilderExtensionConfigOrderGroup] = field(default_factory=list)


@dataclass
class BuilderConfigStack:
    """The [stack] table."""

    id: str = ""
    build_image: str = ""
    run_image: str = ""
    run_image_mirrors: list[str] = field(default_factory=list)


@dataclass
class BuilderConfigTarget:
    """One [[targets]] entry."""

    os: str = ""
    arch: str = ""


def _load_group(cls, table: Mapping[str, Any]):
    return cls(
        id=_get(table, "id", str, ""),
        version=_get(table, "version", str, ""),
        optional=_get(table, "optional", bool, False),
    )


def _dump_group(group) -> dict[str, Any]:
    table: dict[str, Any] = {"id": group.id}
    if group.version:
        table["version"] = group.version
    if group.optional:
        table["optional"] = True
    return table


@dataclass
class BuilderConfig:
    """A whole builder.toml."""

    description: str = ""
    buildpacks: list[BuilderConfigBuildpack] = field(default_factory=list)
    lifecycle: BuilderConfigLifecycle = field(default_factory=BuilderConfigLifecycle)
    order: list[BuilderConfigOrder] = field(default_factory=list)
    extensions: list[BuilderConfigExtension] = field(default_factory=list)
    order_extension: list[BuilderExtensionConfigOrder] = field(default_factory=list)
    build: Build = field(default_factory=Build)
    run: Run = field(default_factory=Run)
    stack: BuilderConfigStack = field(default_factory=BuilderConfigStack)
    targets: list[BuilderConfigTarget] = field(default_factory=list)

    @classmethod
    def _from_table(cls, table: Mapping[str, Any]) -> BuilderConfig:
        lifecycle = _table(table, "lifecycle")
        build = _table(table, "build")
        run = _table(table, "run")
        stack = _table(table, "stack")
        return cls(
            description=_get(table, "description", str, ""),
            buildpacks=[
                BuilderConfigBuildpack._from_table(t) for t in _tables(table, "buildpacks")
            ],
            lifecycle=BuilderConfigLifecycle(version=_get(lifecycle, "version", str, "")),
            order=[
                BuilderConfigOrder(
                    group=[_load_group(BuilderConfigOrderGroup, g) for g in _tables(o, "group")]
                )
                for o in _tables(table, "order")
            ],
            extensions=[
                BuilderConfigExtension._from_table(t) for t in _tables(table, "extensions")
            ],
            order_extension=[
                BuilderExtensionConfigOrder(
                    group=[
                        _load_group(BuilderExtensionConfigOrderGroup, g)
                        for g in _tables(o, "group")
                    ]
                )
                for o in _tables(table, "order-extensions")
            ],
            build=Build(image=_get(build, "image", str, "")),
            run=Run(
                images=[
                    ImageRegistry(image=_get(i, "image", str, "")) for i in _tables(run, "images")
                ]
            ),
            stack=BuilderConfigStack(
                id=_get(stack, "id", str, ""),
                build_image=_get(stack, "build-image", str, ""),
                run_image=_get(stack, "run-image", str, ""),
                run_image_mirrors=list(_get(stack, "run-image-mirrors", list, [])),
            ),
            targets=[
                BuilderConfigTarget(os=_get(t, "os", str, ""), arch=_get(t, "arch", str, ""))
                for t in _tables(table, "targets")
            ],
        )

    def _to_table(self) -> dict[str, Any]:
        table: dict[str, Any] = {"description": self.description}
        if self.buildpacks:
            table["buildpacks"] = [b._to_table() for b in self.buildpacks]
        table["lifecycle"] = {"version": self.lifecycle.version}
        if self.order:
            table["order"] = [{"group": [_dump_group(g) for g in o.group]} for o in self.order]
        if self.extensions:
            table["extensions"] = [e._to_table() for e in self.extensions]
        if self.order_extension:
            table["order-extensions"] = [
                {"group": [_dump_group(g) for g in o.group]} for o in self.order_extension
            ]
        if self.build != Build():
            table["build"] = {"image": self.build.image}
        if self.run != Run():
            table["run"] = {"images": [{"image": i.image} for i in self.run.images]}
        if self.stack != BuilderConfigStack():
            stack: dict[str, Any] = {"id": self.stack.id}
            if self.stack.build_image:
                stack["build-image"] = self.stack.build_image
            if self.stack.run_image:
                stack["run-image"] = self.stack.run_image
            if self.stack.run_image_mirrors:
                stack["run-image-mirrors"] = list(self.stack.run_image_mirrors)
            table["stack"] = stack
        if self.targets:
            table["targets"] = [{"os": t.os, "arch": t.arch} for t in self.targets]
        return table


def parse_builder_config(path: str | os.PathLike[str]) -> BuilderConfig:
    """Read a builder.toml; buildpack and extension URIs lose their scheme."""
    try:
        with open(path, "rb") as file:
            data = file.read()
    except OSError as err:
        raise BuilderConfigError(f"failed to open builder config file: {err}") from err
    try:
        return BuilderConfig._from_table(tomllib.loads(data.decode("utf-8")))
    except ValueError as err:
        raise BuilderConfigError(f"failed to parse builder config: {err}") from err


def _with_docker_scheme(uri: str) -> str:
    return uri if uri.startswith(_DOCKER_PREFIX) else f"{_DOCKER_PREFIX}{uri}"


def overwrite_builder_config(path: str | os.PathLike[str], config: BuilderConfig) -> None:
    """Replace the contents of an existing builder.toml with the given config."""
    config = replace(
        config,
        buildpacks=[replace(b, uri=_with_docker_scheme(b.uri)) for b in config.buildpacks],
        extensions=[replace(e, uri=_with_docker_scheme(e.uri)) for e in config.extensions],
    )
    try:
        fd = os.open(path, os.O_RDWR | os.O_TRUNC)
    except OSError as err:
        raise BuilderConfigError(f"failed to open builder config file: {err}") from err
    with os.fdopen(fd, "w", encoding="utf-8") as file:
        try:
            text = tomli_w.dumps(config._to_table())
        except (TypeError, ValueError) as err:
            raise BuilderConfigError(f"failed to write builder config: {err}") from err
        file.write(text)