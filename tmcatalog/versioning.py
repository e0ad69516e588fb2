"""Semantic versions as understood by the catalog, and version constraints."""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass
from typing import Callable

from tmcatalog.errors import InvalidVersionError

_VERSION_RE = re.compile(
    r"v?(?P<major>[0-9]+)(?:\.(?P<minor>[0-9]+))?(?:\.(?P<patch>[0-9]+))?"
    r"(?:-(?P<pre>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
    r"(?:\+(?P<meta>[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*))?"
)


def _sign(a, b) -> int:
    return (a > b) - (a < b)


def _compare_prerelease_part(s: str, o: str) -> int:
    if s == o:
        return 0
    if s == "":
        return -1
    if o == "":
        return 1
    s_num, o_num = s.isdigit(), o.isdigit()
    if not s_num and not o_num:
        return _sign(s, o)
    if not s_num:
        return 1
    if not o_num:
        return -1
    return _sign(int(s), int(o))


def _compare_prerelease(a: str, b: str) -> int:
    for s, o in itertools.zip_longest(a.split("."), b.split("."), fillvalue=""):
        result = _compare_prerelease_part(s, o)
        if result:
            return result
    return 0


@dataclass(frozen=True)
class SemVer:
    """A semantic version; missing minor or patch parts count as zero."""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    metadata: str = ""
    original: str = ""

    @classmethod
    def parse(cls, text: str) -> SemVer:
        """Parse a version such as '1', 'v1.2' or '1.2.3-pre+build'."""
        match = _VERSION_RE.fullmatch(text)
        if match is None:
            raise InvalidVersionError(text)
        pre = match["pre"] or ""
        if pre:
            for part in pre.split("."):
                if part.isdigit() and len(part) > 1 and part.startswith("0"):
                    raise InvalidVersionError(f"{text}: prerelease part starts with 0")
        return cls(
            major=int(match["major"]),
            minor=int(match["minor"] or 0),
            patch=int(match["patch"] or 0),
            prerelease=pre,
            metadata=match["meta"] or "",
            original=text,
        )

    def compare(self, other: SemVer) -> int:
        """Return -1, 0 or 1; build metadata does not take part."""
        result = _sign(
            (self.major, self.minor, self.patch), (other.major, other.minor, other.patch)
        )
        if result:
            return result
        if not self.prerelease and not other.prerelease:
            return 0
        if not self.prerelease:
            return 1
        if not other.prerelease:
            return -1
        return _compare_prerelease(self.prerelease, other.prerelease)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def tilde_constraint(version: str) -> Callable[[SemVer], bool]:
    """Return a predicate accepting versions matching '~version'.

    The major part must be equal; the minor part too when it is given.
    Versions lower than the bound never match.
    """
    match = _VERSION_RE.fullmatch(version)
    if match is None:
        raise InvalidVersionError(f"~{version}")
    bound = SemVer.parse(version)
    minor_dirty = match["minor"] is None
    patch_dirty = match["patch"] is None

    def matches(candidate: SemVer) -> bool:
        if candidate.prerelease and not bound.prerelease:
            return False
        if candidate.compare(bound) < 0:
            return False
        if (bound.major, bound.minor, bound.patch) == (0, 0, 0) and not (
            minor_dirty or patch_dirty
        ):
            return True
        if candidate.major != bound.major:
            return False
        if candidate.minor != bound.minor and not minor_dirty:
            return False
        return True

    return matches