"""Buildpack and extension configuration types, TOML coding and checksum validation."""

from __future__ import annotations

import hashlib
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from typing import Any, BinaryIO

import tomli_w

__all__ = [
    "ValidationError",
    "ConfigMetadataDependency",
    "ConfigExtensionMetadataDependency",
    "ConfigMetadataDependencyConstraint",
    "ConfigBuildpack",
    "ConfigStack",
    "ConfigTarget",
    "ConfigOrderGroup",
    "ConfigOrder",
    "ConfigMetadata",
    "Config",
    "ValidatedReader",
    "decode_config",
    "encode_config",
]


class ValidationError(Exception):
    """Raised when streamed content does not match its checksum."""


def _spec(default: Any = "", *, key: str | None = None, load=None, factory=None, skip=False):
    metadata: dict[str, Any] = {}
    if key is not None:
        metadata["key"] = key
    if load is not None:
        metadata["load"] = load
    if skip:
        metadata["skip"] = True
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _key(f) -> str:
    return f.metadata.get("key", f.name)


def _load(cls, data: Any):
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a table for {cls.__name__}, got {type(data).__name__}")
    values = {}
    for f in fields(cls):
        key = _key(f)
        if key in data and not f.metadata.get("skip"):
            loader = f.metadata.get("load")
            values[f.name] = loader(data[key]) if loader else data[key]
    return cls(**values)


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, list, dict)):
        return not value
    if isinstance(value, int) and not isinstance(value, bool):
        return value == 0
    return False


def _plain(value: Any) -> Any:
    if isinstance(value, ConfigMetadata):
        return _dump_metadata(value)
    if is_dataclass(value) and not isinstance(value, type):
        return _dump(value)
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def _dump(obj: Any) -> dict[str, Any]:
    table: dict[str, Any] = {}
    for f in fields(obj):
        if f.metadata.get("skip"):
            continue
        value = _plain(getattr(obj, f.name))
        if not _is_empty(value):
            table[_key(f)] = value
    return table


def _load_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value) if value else None
    raise TypeError(f"expected a date, got {type(value).__name__}")


@dataclass
class _DependencyFields:
    checksum: str = _spec()
    cpe: str = _spec()
    cpes: list[str] = _spec(factory=list)
    purl: str = _spec()
    deprecation_date: datetime | None = _spec(None, load=_load_datetime)
    id: str = _spec()
    licenses: list[Any] = _spec(factory=list)
    name: str = _spec()
    sha256: str = _spec()
    source: str = _spec()
    source_checksum: str = _spec(key="source-checksum")
    source_sha256: str = _spec()
    stacks: list[str] = _spec(factory=list)
    strip_components: int = _spec(0, key="strip-components")
    uri: str = _spec()
    version: str = _spec()
    os: str = _spec()
    arch: str = _spec()


@dataclass
class ConfigMetadataDependency(_DependencyFields):
    """A dependency listed in a buildpack's metadata."""

    def has_stack(self, stack: str) -> bool:
        """Return whether the dependency lists the given stack."""
        return stack in self.stacks

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConfigMetadataDependency:
        """Build a dependency from a TOML or JSON table."""
        return _load(cls, data)

    def to_dict(self) -> dict[str, Any]:
        """Return the dependency as a table, leaving out empty fields."""
        return _dump(self)


@dataclass
class ConfigExtensionMetadataDependency(_DependencyFields):
    """A dependency listed in an extension's metadata."""

    def has_stack(self, stack: str) -> bool:
        """Return whether the dependency lists the given stack."""
        return stack in self.stacks

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConfigExtensionMetadataDependency:
        """Build a dependency from a TOML or JSON table."""
        return _load(cls, data)

    def to_dict(self) -> dict[str, Any]:
        """Return the dependency as a table, leaving out empty fields."""
        return _dump(self)


@dataclass
class ConfigMetadataDependencyConstraint:
    """How many patches of which versions of a dependency to keep."""

    constraint: str = _spec()
    id: str = _spec()
    patches: int = _spec(0)


@dataclass
class ConfigBuildpack:
    """The [buildpack] table."""

    id: str = _spec()
    name: str = _spec()
    version: str = _spec()
    homepage: str = _spec()
    clear_env: bool = _spec(False, key="clear-env")
    description: str = _spec()
    keywords: list[str] = _spec(factory=list)
    licenses: list[dict[str, Any]] = _spec(factory=list)
    sbom_formats: list[str] = _spec(factory=list, key="sbom-formats")


@dataclass
class ConfigStack:
    """One [[stacks]] entry."""

    id: str = _spec()
    mixins: list[str] = _spec(factory=list)


@dataclass
class ConfigTarget:
    """One [[targets]] entry."""

    os: str = _spec()
    arch: str = _spec()
    distros: list[dict[str, Any]] = _spec(factory=list)


@dataclass
class ConfigOrderGroup:
    """One buildpack in an order group."""

    id: str = _spec()
    version: str = _spec()
    optional: bool = _spec(False)


@dataclass
class ConfigOrder:
    """One [[order]] entry."""

    group: list[ConfigOrderGroup] = _spec(
        factory=list, load=lambda items: [_load(ConfigOrderGroup, i) for i in items]
    )


@dataclass
class ConfigMetadata:
    """The [metadata] table; keys it does not know are kept in unstructured."""

    include_files: list[str] = _spec(factory=list, key="include-files")
    pre_package: str = _spec(key="pre-package")
    dependencies: list[ConfigMetadataDependency] = _spec(
        factory=list,
        load=lambda items: [ConfigMetadataDependency.from_dict(i) for i in items],
    )
    dependency_constraints: list[ConfigMetadataDependencyConstraint] = _spec(
        factory=list,
        key="dependency-constraints",
        load=lambda items: [_load(ConfigMetadataDependencyConstraint, i) for i in items],
    )
    default_versions: dict[str, str] = _spec(factory=dict, key="default-versions")
    unstructured: dict[str, Any] = _spec(factory=dict, skip=True)


def _load_metadata(data: Mapping[str, Any]) -> ConfigMetadata:
    metadata = _load(ConfigMetadata, data)
    known = {_key(f) for f in fields(ConfigMetadata) if not f.metadata.get("skip")}
    metadata.unstructured = {k: v for k, v in data.items() if k not in known}
    return metadata


def _dump_metadata(metadata: ConfigMetadata) -> dict[str, Any]:
    table = _dump(metadata)
    for key, value in metadata.unstructured.items():
        table.setdefault(key, _plain(value))
    return table


@dataclass
class Config:
    """A whole buildpack.toml."""

    api: str = _spec()
    buildpack: ConfigBuildpack = _spec(
        factory=ConfigBuildpack, load=lambda d: _load(ConfigBuildpack, d)
    )
    metadata: ConfigMetadata = _spec(factory=ConfigMetadata, load=_load_metadata)
    stacks: list[ConfigStack] = _spec(
        factory=list, load=lambda items: [_load(ConfigStack, i) for i in items]
    )
    order: list[ConfigOrder] = _spec(
        factory=list, load=lambda items: [_load(ConfigOrder, i) for i in items]
    )
    targets: list[ConfigTarget] = _spec(
        factory=list, load=lambda items: [_load(ConfigTarget, i) for i in items]
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Config:
        """Build a config from a parsed TOML document."""
        return _load(cls, data)

    def to_dict(self) -> dict[str, Any]:
        """Return the config as a TOML-ready table, leaving out empty fields."""
        return _dump(self)


def decode_config(text: str | bytes) -> Config:
    """Parse buildpack.toml text into a Config."""
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    return Config.from_dict(tomllib.loads(text))


def encode_config(config: Config) -> str:
    """Render a Config as TOML text."""
    return tomli_w.dumps(config.to_dict())


_ALGORITHMS = frozenset({"md5", "sha1", "sha224", "sha256", "sha384", "sha512"})


class ValidatedReader:
    """Wraps a binary stream and checks its checksum once the stream is exhausted.

    The checksum is 'algorithm:hex'; a bare hex digest is taken as sha256.
    """

    def __init__(self, source: BinaryIO, checksum: str) -> None:
        algorithm, sep, digest = checksum.partition(":")
        if not sep:
            algorithm, digest = "sha256", checksum
        self._source = source
        self._algorithm = algorithm
        self._expected = digest
        self._hash = None

    def read(self, size: int = -1) -> bytes:
        """Read from the source; raise ValidationError at its end on a mismatch."""
        if self._hash is None:
            if self._algorithm not in _ALGORITHMS:
                raise ValidationError(
                    f"validation error: unsupported algorithm {self._algorithm!r}"
                )
            self._hash = hashlib.new(self._algorithm)
        data = self._source.read(size)
        if data:
            self._hash.update(data)
        if not data or size is None or size < 0:
            if self._hash.hexdigest() != self._expected:
                raise ValidationError("validation error: checksum does not match")
        return data