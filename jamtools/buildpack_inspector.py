"""Reading buildpack configurations out of an OCI buildpackage archive."""

from __future__ import annotations

import gzip
import io
import json
import tarfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import IO, BinaryIO

from .cargo import Config, decode_config

__all__ = ["InspectionError", "BuildpackMetadata", "BuildpackInspector"]


class InspectionError(Exception):
    """Raised when a buildpackage archive lacks what is needed or cannot be read."""


@dataclass
class BuildpackMetadata:
    """A buildpack's configuration and, where known, the buildpackage digest."""

    config: Config = field(default_factory=Config)
    sha256: str = ""


@contextmanager
def _open_tar(fileobj: IO[bytes], mode: str) -> Iterator[tarfile.TarFile | None]:
    try:
        archive = tarfile.open(fileobj=fileobj, mode=mode)
    except tarfile.ReadError as err:
        if str(err) != "empty file":
            raise
        archive = None
    try:
        yield archive
    finally:
        if archive is not None:
            archive.close()


def _find(archive: tarfile.TarFile | None, filename: str) -> IO[bytes]:
    """Return a reader for the first entry whose name ends with filename."""
    if archive is not None:
        for member in archive:
            if member.name.endswith(filename):
                return archive.extractfile(member) or io.BytesIO()
    raise InspectionError(f"failed to fetch archived file {filename}")


def _collect(archive: tarfile.TarFile | None, filename: str) -> list[bytes]:
    """Return the contents of every entry whose name ends with filename."""
    contents: list[bytes] = []
    if archive is not None:
        for member in archive:
            if member.name.endswith(filename):
                reader = archive.extractfile(member)
                contents.append(reader.read() if reader is not None else b"")
    if not contents:
        raise InspectionError(f"failed to fetch archived file {filename}")
    return contents


def _blob_path(digest: str) -> str:
    return f"blobs/sha256/{digest.removeprefix('sha256:')}"


def _layer_configs(blob: IO[bytes]) -> list[bytes]:
    layer = gzip.GzipFile(fileobj=blob, mode="rb")
    with layer:
        try:
            layer.peek(1)
        except (OSError, EOFError) as err:
            raise InspectionError(f"failed to read layer blob: {err}") from err
        with _open_tar(layer, "r|") as inner:
            return _collect(inner, "buildpack.toml")


class BuildpackInspector:
    """Lists the buildpack configurations held in a buildpackage tarball."""

    def dependencies(self, path: str) -> list[BuildpackMetadata]:
        """Return the metadata of every buildpack in the buildpackage at path.

        Composite buildpacks get the buildpackage digest; so does the only
        buildpack when there is just one.
        """
        with open(path, "rb") as file, _open_tar(file, "r:") as archive:
            index = json.loads(_find(archive, "index.json").read())
            digest = index["manifests"][0]["digest"]

            manifest = json.loads(_find(archive, _blob_path(digest)).read())

            collection: list[BuildpackMetadata] = []
            for layer in manifest.get("layers") or []:
                blob = _find(archive, _blob_path(layer["digest"]))
                for text in _layer_configs(blob):
                    config = decode_config(text)
                    collection.append(
                        BuildpackMetadata(config=config, sha256=digest if config.order else "")
                    )

        if len(collection) == 1:
            collection[0].sha256 = digest
        return collection