# jamtools

jamtools helps you maintain Cloud Native Buildpacks. It reads and rewrites
`buildpack.toml` and `builder.toml` files, inspects buildpackage archives in
OCI layout, and keeps the dependency lists in a `buildpack.toml` up to date.

## Installation

```
pip install jamtools
```

## Command line

Installing the package adds a `jam` command with two subcommands.

```
jam version
```

prints the tool's version line.

```
jam update-dependencies --buildpack-file buildpack.toml --metadata-file metadata.json
```

reads a JSON list of dependency entries from the metadata file, merges them
with the dependencies already in `buildpack.toml`, keeps for each
`[[metadata.dependency-constraints]]` entry the newest `patches` versions that
satisfy its constraint, and writes the file back. It prints the versions that
were not in the file before. Errors are printed to standard error and the
command exits with status 1.

## Library

- `jamtools.semver`: semantic versions and constraints. `parse_version`
  accepts a leading `v` and missing parts; `strict_parse_version` requires
  `MAJOR.MINOR.PATCH`; `new_constraint` parses expressions such as `1.*`,
  `~1.2`, `^0.3`, `>= 1.2, < 2` and `1.0 - 2.0`, joined with `||`.
  `Constraint.check` tests a version. Bad input raises `SemverError`.
- `jamtools.cargo`: the data model of `buildpack.toml` (`Config`,
  `ConfigMetadata`, `ConfigMetadataDependency`,
  `ConfigExtensionMetadataDependency`, `ConfigMetadataDependencyConstraint`
  and friends), with `decode_config` and `encode_config` for TOML text.
  `ValidatedReader` wraps a binary stream and raises `ValidationError` at its
  end when the content does not match an `algorithm:hex` checksum.
- `jamtools.scribe`: `Logger`, which writes messages at fixed indent levels
  (`title`, `process`, `subprocess`, `action`, `detail`, `break_`).
- `jamtools.dependency`: `Dependency` records, and selection by constraint:
  `get_dependencies_within_constraint`,
  `get_cargo_dependencies_within_constraint` (which keeps every OS,
  architecture and stack variant of a chosen version) and
  `find_dependency_name`.
- `jamtools.buildpack_inspector`: `BuildpackInspector.dependencies` returns a
  `BuildpackMetadata` for every `buildpack.toml` in a buildpackage tarball,
  flattened layers included. Missing or unreadable content raises
  `InspectionError`.
- `jamtools.builder_config`: `parse_builder_config` and
  `overwrite_builder_config` for `builder.toml`. Buildpack and extension URIs
  lose their scheme on reading and are written back with `docker://`.
  Failures raise `BuilderConfigError`.
- `jamtools.buildpack_config`: `parse_buildpack_config` and
  `overwrite_buildpack_config` for the order, stacks and targets of a
  composite `buildpack.toml`; the `api`, `buildpack` and `metadata` tables are
  kept as parsed. Failures raise `BuildpackConfigError`.
- `jamtools.update`: `update_dependencies_run` (what the command above runs),
  `semver_bump`, which names the size of a change between two versions, and
  `highest_semver_bump`.
- `jamtools.archive`: `extract_tar` unpacks an uncompressed tar into a
  directory and raises `UnsafeArchiveError` for entries that would reach
  outside it.
- `jamtools.packing`: `copy_file` and
  `fix_include_files_directory_structure`, which copies include files into an
  `<os>/<arch>` directory for each target of a multi-architecture buildpack.
- `jamtools.matchers`: `HaveDirectory`, `HaveFile` and `HaveFileWithContent`
  check image layers (objects with `layers()` or `uncompressed()`) for
  entries; `MatchTomlContent` compares two TOML files by content.

Example:

```python
from jamtools.update import update_dependencies_run

new_versions = update_dependencies_run("buildpack.toml", "metadata.json")
```

## What it does not do

jamtools does not download dependencies, so it cannot build offline
buildpacks. It has no command to package a buildpack or extension into a
tarball, to summarize a buildpackage, to update versions in `builder.toml` or
`package.toml` from an image registry, or to create or publish stack images.
It does not talk to registries or a container daemon at all.