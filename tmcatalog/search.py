"""Search parameters and the results of searching catalog repositories."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Iterable, Optional

from tmcatalog.errors import CatalogError
from tmcatalog.id import TMID, TMVersion, parse_tmid, sanitize_name

DEFAULT_LIST_SEPARATOR = ","


def _sign(a, b) -> int:
    return (a > b) - (a < b)


class FilterType(enum.IntEnum):
    """How a name given in search parameters is matched against TM names."""

    FULL_MATCH = 0
    PREFIX_MATCH = 1


@dataclass
class SearchOptions:
    # FULL_MATCH limits a search result to at most one entry.
    name_filter_type: FilterType = FilterType.FULL_MATCH


@dataclass
class SearchParams:
    """Criteria that index entries must meet to appear in a search result."""

    author: list[str] = field(default_factory=list)
    manufacturer: list[str] = field(default_factory=list)
    mpn: list[str] = field(default_factory=list)
    protocol: list[str] = field(default_factory=list)
    name: str = ""
    query: str = ""
    options: SearchOptions = field(default_factory=SearchOptions)

    def sanitize(self) -> None:
        """Sanitize author, manufacturer and mpn filters the way names are stored."""
        self.author = [sanitize_name(v) for v in self.author or ()]
        self.manufacturer = [sanitize_name(v) for v in self.manufacturer or ()]
        self.mpn = [sanitize_name(v) for v in self.mpn or ()]


@dataclass(frozen=True)
class FoundSource:
    """The repository or directory in which something was found."""

    directory: str = ""
    repo_name: str = ""

    def __str__(self) -> str:
        if self.directory:
            return f"<{self.directory}>"
        return self.repo_name


@dataclass
class FoundVersion:
    """An index version together with where it was found.

    Attributes of the index version are readable directly on this object.
    """

    index_version: Any
    found_in: FoundSource = field(default_factory=FoundSource)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name == "index_version":
            raise AttributeError(name)
        try:
            inner = self.__dict__["index_version"]
        except KeyError:
            raise AttributeError(name) from None
        return getattr(inner, name)


@dataclass
class FoundEntry:
    """A TM name with its versions, as found in one repository."""

    name: str
    manufacturer: str = ""
    mpn: str = ""
    author: str = ""
    versions: list[FoundVersion] = field(default_factory=list)
    found_in: FoundSource = field(default_factory=FoundSource)
    attachments: list[Any] = field(default_factory=list)


@dataclass
class FoundAttachment:
    name: str
    media_type: str = ""
    found_in: FoundSource = field(default_factory=FoundSource)


def _merge_found_entries(e1: Iterable[FoundEntry], e2: Iterable[FoundEntry]) -> list[FoundEntry]:
    merged = [*(e1 or ()), *(e2 or ())]
    return sorted(merged, key=lambda e: (e.name, e.found_in.repo_name))


@dataclass
class SearchResult:
    entries: list[FoundEntry] = field(default_factory=list)

    def merge(self, other: SearchResult) -> None:
        """Add the entries of another result, ordered by name, then repository."""
        self.entries = _merge_found_entries(self.entries, other.entries)


def _tmid_or_empty(tmid: str) -> TMID:
    try:
        return parse_tmid(tmid)
    except CatalogError:
        return TMID(name="", version=TMVersion())


def _compare_found_versions(a: FoundVersion, b: FoundVersion) -> int:
    ida = _tmid_or_empty(a.tmid)
    idb = _tmid_or_empty(b.tmid)
    return (
        _sign(ida.name, idb.name)
        or -ida.version.compare(idb.version)
        or _sign(a.found_in.repo_name, b.found_in.repo_name)
    )


def merge_found_versions(
    vs1: Optional[Iterable[FoundVersion]], vs2: Optional[Iterable[FoundVersion]]
) -> list[FoundVersion]:
    """Merge two version lists: by TM name, newest version first, then repository."""
    merged = [*(vs1 or ()), *(vs2 or ())]
    return sorted(merged, key=cmp_to_key(_compare_found_versions))


def to_search_params(
    author: Optional[str],
    manufacturer: Optional[str],
    mpn: Optional[str],
    protocol: Optional[str],
    name: Optional[str],
    query: Optional[str],
    opts: Optional[SearchOptions],
) -> Optional[SearchParams]:
    """Build search parameters from comma-separated filter strings.

    Returns None when no filter is given.
    """
    if not any((author, manufacturer, mpn, protocol, name, query)):
        return None
    search = SearchParams()
    if author:
        search.author = author.split(DEFAULT_LIST_SEPARATOR)
    if manufacturer:
        search.manufacturer = manufacturer.split(DEFAULT_LIST_SEPARATOR)
    if mpn:
        search.mpn = mpn.split(DEFAULT_LIST_SEPARATOR)
    if protocol:
        search.protocol = protocol.split(DEFAULT_LIST_SEPARATOR)
    if query:
        search.query = query
    if name:
        search.name = name
    if opts is not None:
        search.options = opts
    return search