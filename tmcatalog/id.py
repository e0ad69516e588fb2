"""Thing Model identifiers, versions and links."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable, Optional

from tmcatalog.errors import (
    CatalogError,
    InvalidIdError,
    InvalidPseudoVersionError,
    InvalidVersionError,
)
from tmcatalog.versioning import SemVer

TM_FILE_EXTENSION = ".tm.json"
PSEUDO_VERSION_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

_PSEUDO_VERSION_RE = re.compile(r"(([0-9A-Za-z\-]+)\-)?([0-9]{14})-([0-9a-z]{12})")
_TRANSLITERATIONS = str.maketrans(
    {"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss", "ø": "oe", "æ": "ae"}
)
_INVALID_RUN = re.compile(r"[^a-z0-9]+")


def _sign(a, b) -> int:
    return (a > b) - (a < b)


def sanitize_name(name: str) -> str:
    """Turn a name into a lower-case, file-name-safe form joined by hyphens."""
    text = unicodedata.normalize("NFKD", name.lower().translate(_TRANSLITERATIONS))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _INVALID_RUN.sub("-", text).strip("-")


def join_skipping_empty(elems: Iterable[str], sep: str) -> str:
    """Join elements, skipping empty ones after the first."""
    elems = list(elems)
    if not elems:
        return ""
    return sep.join([elems[0], *(e for e in elems[1:] if e)])


@dataclass(frozen=True)
class TMVersion:
    """A TM version: a semantic base, a timestamp and a content hash."""

    base: Optional[SemVer] = None
    timestamp: str = ""
    hash: str = ""

    def base_string(self) -> str:
        return self.base.original if self.base is not None else ""

    def __str__(self) -> str:
        text = self.base_string()
        if self.timestamp:
            text += "-" + self.timestamp
        if self.hash:
            text += "-" + self.hash
        return text

    def compare(self, other: TMVersion) -> int:
        """Order by base version, then timestamp, then hash."""
        if self.base is None or other.base is None:
            result = _sign(self.base is not None, other.base is not None)
        else:
            result = self.base.compare(other.base)
        return result or _sign(self.timestamp, other.timestamp) or _sign(self.hash, other.hash)


@dataclass(frozen=True)
class TMID:
    """A TM identifier: a slash-separated name and a version."""

    name: str
    version: TMVersion

    def __str__(self) -> str:
        return f"{self.name}/{self.version}{TM_FILE_EXTENSION}"

    def equals(self, other: TMID) -> bool:
        """True if both ids name the same content, whatever their timestamps."""
        return (
            self.name == other.name
            and self.version.base_string() == other.version.base_string()
            and self.version.hash == other.version.hash
        )


@dataclass(frozen=True)
class Link:
    rel: str
    href: str


def find_link(links: Optional[Iterable[Link]], rel: str) -> Optional[Link]:
    """Return the first link with the given relation, or None."""
    return next((link for link in links or () if link.rel == rel), None)


def new_tmid(author: str, manufacturer: str, mpn: str, opt_path: str, version: TMVersion) -> TMID:
    """Build a TMID from sanitized name parts and an optional sub-path."""
    parts = [sanitize_name(author), sanitize_name(manufacturer), sanitize_name(mpn)]
    parts.extend(sanitize_name(p) for p in opt_path.split("/"))
    return TMID(name=join_skipping_empty(parts, "/"), version=version)


def parse_tmid(s: str) -> TMID:
    """Parse a TM id such as 'author/manufacturer/mpn/v1.0.0-<ts>-<hash>.tm.json'."""
    if s != s.lower() or not s.endswith(TM_FILE_EXTENSION):
        raise InvalidIdError(s)
    stem = s[: -len(TM_FILE_EXTENSION)]
    parts = stem.split("/")
    if len(parts) < 4:
        raise InvalidIdError(s)
    filename = parts[-1]
    name = stem.removesuffix("/" + filename)
    try:
        version = parse_tmversion(filename)
    except CatalogError as exc:
        raise InvalidIdError(s) from exc
    return TMID(name=name, version=version)


def parse_tmversion(s: str) -> TMVersion:
    """Parse a pseudo-version such as 'v1.2.3-pre-20231109150513-e86784632bf6'."""
    if not s.startswith("v"):
        raise InvalidVersionError(s)
    original = SemVer.parse(s)
    match = _PSEUDO_VERSION_RE.fullmatch(original.prerelease)
    if match is None:
        raise InvalidPseudoVersionError(s)
    base = f"v{original.major}.{original.minor}.{original.patch}"
    if match.group(2):
        base += "-" + match.group(2)
    return TMVersion(base=SemVer.parse(base), timestamp=match.group(3), hash=match.group(4))


def tmversion_from_original(ver: str) -> TMVersion:
    """Derive a base TM version from a TM's own version string; 'v0.0.0' if unusable."""
    base = "v0.0.0"
    if ver:
        try:
            base = "v" + str(SemVer.parse(ver))
        except InvalidVersionError:
            pass
    return TMVersion(base=SemVer.parse(base))