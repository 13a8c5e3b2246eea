"""Unpacking image archives onto disk."""

from __future__ import annotations

import os
import shutil
import tarfile

__all__ = ["UnsafeArchiveError", "extract_tar"]


class UnsafeArchiveError(Exception):
    """Raised when an archive entry would point outside the destination."""


def _open(fileobj) -> tarfile.TarFile | None:
    try:
        return tarfile.open(fileobj=fileobj, mode="r:")
    except tarfile.ReadError as err:
        if str(err) == "empty file":
            return None
        raise


def _link(member: tarfile.TarInfo, target: str) -> None:
    link_path = member.linkname
    if not os.path.isabs(link_path):
        real = os.path.realpath(os.path.join(target, link_path), strict=True)
        relative = os.path.relpath(real, target)
        if os.path.normpath(relative).startswith(".."):
            raise UnsafeArchiveError("unsafe relative symlink")
    os.symlink(link_path, target)


def _write(member: tarfile.TarInfo, archive: tarfile.TarFile, target: str) -> None:
    fd = os.open(target, os.O_CREAT | os.O_RDWR, member.mode)
    with os.fdopen(fd, "wb") as out:
        reader = archive.extractfile(member)
        if reader is not None:
            with reader:
                shutil.copyfileobj(reader, out)


def extract_tar(input_path: str | os.PathLike[str], destination: str | os.PathLike[str]) -> None:
    """Extract directories, regular files and links of an uncompressed tar into destination.

    Entries whose names contain '..' are refused, and so are relative links
    that resolve outside their own location.
    """
    with open(input_path, "rb") as source:
        archive = _open(source)
        if archive is None:
            return
        with archive:
            for member in archive:
                if ".." in member.name:
                    raise UnsafeArchiveError("entry contains unsafe relative link")
                target = os.path.join(destination, member.name)
                if member.isdir():
                    os.makedirs(target, 0o755, exist_ok=True)
                elif member.islnk():
                    _link(member, target)
                elif member.isreg():
                    _write(member, archive, target)