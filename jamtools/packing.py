"""Laying out buildpack files for packaging across several targets."""

from __future__ import annotations

import os
import shutil
import stat
from collections.abc import Iterable
from typing import Any

__all__ = ["PackingError", "copy_file", "fix_include_files_directory_structure"]

_TOP_LEVEL_CONFIGS = frozenset({"buildpack.toml", "extension.toml"})


class PackingError(Exception):
    """Raised when files cannot be prepared for packaging."""


def copy_file(src: str | os.PathLike[str], dst: str | os.PathLike[str]) -> int:
    """Copy the regular file src to dst and return the number of bytes copied."""
    info = os.stat(src)
    if not stat.S_ISREG(info.st_mode):
        raise PackingError(f"{os.fspath(src)} is not a regular file")
    with open(src, "rb") as source, open(dst, "wb") as destination:
        shutil.copyfileobj(source, destination)
        return destination.tell()


def _join(*parts: str) -> str:
    return os.path.normpath(os.path.join(*parts))


def fix_include_files_directory_structure(
    include_files: Iterable[str], targets: Iterable[Any], tmp_dir: str | os.PathLike[str]
) -> list[str]:
    """Copy include files into an '<os>/<arch>' directory for every target.

    Top-level buildpack.toml and extension.toml, and files already under a
    target directory, are kept as they are. Returns the new list of include
    files, relative to tmp_dir.
    """
    tmp_dir = os.fspath(tmp_dir)
    os_arch_dirs = [f"{target.os}/{target.arch}" for target in targets]

    fixed: list[str] = []
    for file in include_files:
        if file in _TOP_LEVEL_CONFIGS or any(file.startswith(d) for d in os_arch_dirs):
            fixed.append(file)
            continue

        for directory in os_arch_dirs:
            relative = _join(directory, file)
            absolute = _join(tmp_dir, relative)
            try:
                os.makedirs(os.path.dirname(absolute), exist_ok=True)
            except OSError as err:
                raise PackingError(
                    "failed to create platform specific directory for include file "
                    f"or dependencies - attempted directory: {err}"
                ) from err

            source = _join(tmp_dir, file)
            try:
                copy_file(source, absolute)
            except (OSError, PackingError) as err:
                raise PackingError(
                    f"failed to copy file {source} to {absolute}: {err}"
                ) from err
            fixed.append(relative)

    return fixed