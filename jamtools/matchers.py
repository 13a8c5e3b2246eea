"""Matchers for the contents of image layers and of TOML files.

An image is any object with a ``layers()`` method; a layer is any object
with an ``uncompressed()`` method returning a binary stream of a tar archive.
"""

from __future__ import annotations

import os
import re
import tarfile
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any

__all__ = ["HaveDirectory", "HaveFile", "HaveFileWithContent", "MatchTomlContent"]

_Predicate = Callable[[tarfile.TarInfo, tarfile.TarFile], bool]


def _is_image(actual: Any) -> bool:
    return callable(getattr(actual, "layers", None))


def _is_layer(actual: Any) -> bool:
    return callable(getattr(actual, "uncompressed", None))


def _scan(stream: Any, pattern: re.Pattern[str], predicate: _Predicate) -> bool:
    try:
        archive = tarfile.open(fileobj=stream, mode="r|")
    except tarfile.ReadError as err:
        if str(err) == "empty file":
            return False
        raise
    with archive:
        for member in archive:
            name = member.name.removeprefix("/").removesuffix("/")
            if pattern.search(name) and predicate(member, archive):
                return True
    return False


def _match_image(expected: Any, actual: Any, predicate: _Predicate) -> bool:
    if not isinstance(expected, str):
        raise TypeError(f"expected must be a <string>, received {expected!r}")
    pattern = re.compile(f"^{expected.removeprefix('/')}\\Z")

    layers: list[Any] = []
    if _is_image(actual):
        layers.extend(actual.layers())
    if _is_layer(actual):
        layers.append(actual)

    for layer in reversed(layers):
        stream = layer.uncompressed()
        try:
            found = _scan(stream, pattern, predicate)
        finally:
            stream.close()
        if found:
            return True
    return False


class HaveDirectory:
    """Matches an image or layer holding a directory at the given path pattern."""

    def __init__(self, path: Any) -> None:
        self.path = path

    def match(self, actual: Any) -> bool:
        """Return whether actual holds the directory."""
        return _match_image(self.path, actual, lambda member, _: member.isdir())

    def failure_message(self, actual: Any) -> str:
        return f"Expected\n\t{actual!r}\nto have directory with path\n\t{self.path!r}"

    def negated_failure_message(self, actual: Any) -> str:
        return f"Expected\n\t{actual!r}\nnot to have directory with path\n\t{self.path!r}"


class HaveFile:
    """Matches an image or layer holding a regular file at the given path pattern."""

    def __init__(self, path: Any) -> None:
        self.path = path

    def match(self, actual: Any) -> bool:
        """Return whether actual holds the file."""
        return _match_image(self.path, actual, lambda member, _: member.isreg())

    def failure_message(self, actual: Any) -> str:
        return f"Expected\n\t{actual!r}\nto have file with path\n\t{self.path!r}"

    def negated_failure_message(self, actual: Any) -> str:
        return f"Expected\n\t{actual!r}\nnot to have file with path\n\t{self.path!r}"


class _Equal:
    def __init__(self, expected: str) -> None:
        self.expected = expected

    def match(self, actual: Any) -> bool:
        return actual == self.expected

    def failure_message(self, actual: Any) -> str:
        return f"Expected\n\t{actual!r}\nto equal\n\t{self.expected!r}"

    def negated_failure_message(self, actual: Any) -> str:
        return f"Expected\n\t{actual!r}\nnot to equal\n\t{self.expected!r}"


def _is_matcher(candidate: Any) -> bool:
    return all(
        callable(getattr(candidate, name, None))
        for name in ("match", "failure_message", "negated_failure_message")
    )


class HaveFileWithContent:
    """Matches an image or layer holding a file whose content satisfies a matcher.

    The matcher is a string, compared for equality, or an object with
    ``match``, ``failure_message`` and ``negated_failure_message`` methods.
    """

    def __init__(self, path: Any, matcher: Any) -> None:
        self.path = path
        self.matcher = matcher
        self._failed: Any = self
        self._found_content = ""

    def match(self, actual: Any) -> bool:
        """Return whether actual holds the file with matching content."""
        matcher = self.matcher
        if isinstance(matcher, str):
            matcher = _Equal(matcher)
        elif not _is_matcher(matcher):
            raise TypeError(f"expected must be a <string> or matcher, received {matcher!r}")

        self._failed = self

        def check(member: tarfile.TarInfo, archive: tarfile.TarFile) -> bool:
            if not member.isreg():
                self._failed = self
                return False
            reader = archive.extractfile(member)
            data = reader.read() if reader is not None else b""
            self._found_content = data.decode("utf-8", errors="replace")
            result = bool(matcher.match(self._found_content))
            self._failed = matcher
            return result

        return _match_image(self.path, actual, check)

    def _name(self, actual: Any) -> str:
        if _is_image(actual):
            config_name = getattr(actual, "config_name", None)
            return f"image {config_name() if callable(config_name) else ''}"
        if _is_layer(actual):
            diff_id = getattr(actual, "diff_id", None)
            return f"layer {diff_id() if callable(diff_id) else ''}"
        return ""

    def failure_message(self, actual: Any) -> str:
        if self._failed is self:
            return f"Expected\n\t{self._name(actual)}\nto have file\n\t{self.path!r}"
        return self._failed.failure_message(self._found_content)

    def negated_failure_message(self, actual: Any) -> str:
        if self._failed is self:
            return f"Expected\n\t{self._name(actual)}\nnot to have file\n\t{self.path!r}"
        return self._failed.negated_failure_message(self._found_content)


class MatchTomlContent:
    """Matches a TOML file whose parsed content equals that of an expected file."""

    def __init__(self, expected_file_path: str | os.PathLike[str]) -> None:
        self.expected_file_path = expected_file_path

    def match(self, actual: Any) -> bool:
        """Return whether the TOML file at path actual has the expected content."""
        if not isinstance(actual, (str, os.PathLike)):
            raise TypeError("MatchTomlContent matcher expects a file path")
        actual_contents = Path(actual).read_bytes()
        expected_contents = Path(self.expected_file_path).read_bytes()
        return tomllib.loads(actual_contents.decode("utf-8")) == tomllib.loads(
            expected_contents.decode("utf-8")
        )

    def failure_message(self, actual: Any) -> str:
        return f"Expected\n{actual} contents\nto match the contents of \n{self.expected_file_path}"

    def negated_failure_message(self, actual: Any) -> str:
        return (
            f"Expected\n{actual} contents\n not to match the contents of \n"
            f"{self.expected_file_path}"
        )