"""Semantic versions and version constraints."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering

__all__ = [
    "SemverError",
    "Version",
    "Constraint",
    "parse_version",
    "strict_parse_version",
    "new_constraint",
]


class SemverError(ValueError):
    """Raised for versions and constraints that cannot be parsed."""


_IDENT = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

_LOOSE_RE = re.compile(
    r"v?(?P<major>[0-9]+)(?:\.(?P<minor>[0-9]+))?(?:\.(?P<patch>[0-9]+))?"
    rf"(?:-(?P<pre>{_IDENT}))?(?:\+(?P<meta>{_IDENT}))?"
)

_STRICT_RE = re.compile(
    r"(?P<major>0|[1-9][0-9]*)\.(?P<minor>0|[1-9][0-9]*)\.(?P<patch>0|[1-9][0-9]*)"
    rf"(?:-(?P<pre>{_IDENT}))?(?:\+(?P<meta>{_IDENT}))?"
)

_CV = (
    r"v?(?:[0-9]+|[xX*])(?:\.(?:[0-9]+|[xX*])){0,2}"
    rf"(?:-{_IDENT})?(?:\+{_IDENT})?"
)
_OPS = r"!=|>=|=>|<=|=<|~>|>|<|=|~|\^"
_TERM_RE = re.compile(rf"(?P<op>{_OPS})?(?P<ver>{_CV})")
_HYPHEN_RE = re.compile(rf"\s*({_CV})\s+-\s+({_CV})\s*")
_GLUE_RE = re.compile(rf"({_OPS})\s+")
_OP_ALIASES = {"": "=", "=>": ">=", "=<": "<=", "~>": "~"}
_WILDCARDS = frozenset({"x", "X", "*"})


def _compare_identifier(left: str, right: str) -> int:
    left_numeric, right_numeric = left.isdigit(), right.isdigit()
    if left_numeric and right_numeric:
        a, b = int(left), int(right)
        return (a > b) - (a < b)
    if left_numeric:
        return -1
    if right_numeric:
        return 1
    return (left > right) - (left < right)


def _compare_prerelease(left: str, right: str) -> int:
    if left == right:
        return 0
    if not left:
        return 1
    if not right:
        return -1
    left_parts, right_parts = left.split("."), right.split(".")
    for a, b in zip(left_parts, right_parts):
        result = _compare_identifier(a, b)
        if result:
            return result
    return (len(left_parts) > len(right_parts)) - (len(left_parts) < len(right_parts))


def _check_prerelease(prerelease: str) -> None:
    for part in prerelease.split(".") if prerelease else ():
        if part.isdigit() and len(part) > 1 and part.startswith("0"):
            raise SemverError("version segment starts with 0")


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A semantic version; build metadata does not take part in comparisons."""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    metadata: str = ""
    original: str = field(default="", compare=False)

    def compare(self, other: Version) -> int:
        """Return -1, 0 or 1 as this version is lower, equal or higher."""
        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        if mine != theirs:
            return (mine > theirs) - (mine < theirs)
        return _compare_prerelease(self.prerelease, other.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.prerelease))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def _from_match(match: re.Match[str], text: str) -> Version:
    prerelease = match["pre"] or ""
    _check_prerelease(prerelease)
    return Version(
        major=int(match["major"]),
        minor=int(match["minor"] or 0),
        patch=int(match["patch"] or 0),
        prerelease=prerelease,
        metadata=match["meta"] or "",
        original=text,
    )


def parse_version(text: str) -> Version:
    """Parse a version leniently: a leading 'v' and missing parts are allowed."""
    match = _LOOSE_RE.fullmatch(text)
    if match is None:
        raise SemverError("invalid semantic version")
    return _from_match(match, text)


def strict_parse_version(text: str) -> Version:
    """Parse a version that must be exactly MAJOR.MINOR.PATCH[-PRE][+META]."""
    if not text:
        raise SemverError("version string empty")
    match = _STRICT_RE.fullmatch(text)
    if match is None:
        raise SemverError("invalid semantic version")
    return _from_match(match, text)


@dataclass(frozen=True)
class _Term:
    op: str
    version: Version
    major_dirty: bool
    minor_dirty: bool
    patch_dirty: bool

    @property
    def dirty(self) -> bool:
        return self.major_dirty or self.minor_dirty or self.patch_dirty

    def _tilde(self, v: Version) -> bool:
        con = self.version
        if v < con:
            return False
        if self.major_dirty:
            return True
        if v.major != con.major:
            return False
        return self.minor_dirty or v.minor == con.minor

    def _caret(self, v: Version) -> bool:
        con = self.version
        if v < con:
            return False
        if self.major_dirty:
            return True
        if con.major > 0 or self.minor_dirty:
            return v.major == con.major
        if v.major > 0:
            return False
        if con.minor > 0 or self.patch_dirty:
            return v.minor == con.minor
        if v.minor > 0:
            return False
        return v.patch == con.patch

    def _greater(self, v: Version) -> bool:
        con = self.version
        if not self.dirty:
            return v > con
        if self.major_dirty:
            return False
        if v.major != con.major:
            return v.major > con.major
        if self.minor_dirty:
            return False
        return v.minor > con.minor

    def _less_equal(self, v: Version) -> bool:
        con = self.version
        if not self.dirty:
            return v <= con
        if self.major_dirty:
            return True
        if v.major != con.major:
            return v.major < con.major
        return self.minor_dirty or v.minor <= con.minor

    def _not_equal(self, v: Version) -> bool:
        con = self.version
        if not self.dirty:
            return v != con
        if self.major_dirty:
            return False
        if v.major != con.major:
            return True
        if self.minor_dirty:
            return False
        return v.minor != con.minor

    def matches(self, v: Version) -> bool:
        if v.prerelease and not self.version.prerelease:
            return False
        match self.op:
            case "=":
                return self._tilde(v) if self.dirty else v == self.version
            case "!=":
                return self._not_equal(v)
            case ">":
                return self._greater(v)
            case ">=":
                return v >= self.version
            case "<":
                return v < self.version
            case "<=":
                return self._less_equal(v)
            case "~":
                return self._tilde(v)
            case "^":
                return self._caret(v)
        raise SemverError(f"unknown operator {self.op!r}")


def _parse_term(token: str, source: str) -> _Term:
    match = _TERM_RE.fullmatch(token)
    if match is None:
        raise SemverError(f"improper constraint: {source}")
    op = match["op"] or ""
    op = _OP_ALIASES.get(op, op)
    text = match["ver"]
    body = text[1:] if text.startswith("v") else text
    body, _, metadata = body.partition("+")
    core, _, prerelease = body.partition("-")
    parts: list[str | None] = list(core.split("."))
    parts += [None] * (3 - len(parts))

    numbers: list[int] = []
    flags: list[bool] = []
    wildcard = False
    for part in parts:
        wildcard = wildcard or part is None or part in _WILDCARDS
        flags.append(wildcard)
        numbers.append(0 if wildcard else int(part))

    version = Version(*numbers, prerelease=prerelease, metadata=metadata, original=text)
    return _Term(op, version, *flags)


class Constraint:
    """A set of version conditions: comma or space means and, '||' means or."""

    def __init__(self, text: str) -> None:
        self.original = text
        self._alternatives: list[list[_Term]] = []
        for alternative in text.split("||"):
            expanded = _HYPHEN_RE.sub(r" >=\1, <=\2 ", alternative)
            glued = _GLUE_RE.sub(r"\1", expanded)
            tokens = [token for token in re.split(r"[\s,]+", glued) if token]
            if not tokens:
                raise SemverError(f"improper constraint: {text}")
            self._alternatives.append([_parse_term(token, text) for token in tokens])

    def check(self, version: Version | str) -> bool:
        """Return whether the version satisfies the constraint."""
        if isinstance(version, str):
            version = parse_version(version)
        return any(
            all(term.matches(version) for term in terms) for terms in self._alternatives
        )

    def __str__(self) -> str:
        return self.original

    def __repr__(self) -> str:
        return f"Constraint({self.original!r})"


def new_constraint(text: str) -> Constraint:
    """Parse a constraint expression such as '1.*' or '>= 1.2, < 2'."""
    return Constraint(text)