"""The repository index of TM names, their versions and their attachments."""

from __future__ import annotations

import enum
import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from functools import cmp_to_key
from typing import Iterable, Optional

from tmcatalog.errors import (
    CatalogError,
    InvalidIdError,
    InvalidIdOrNameError,
    TMNameNotFoundError,
    TMNotFoundError,
)
from tmcatalog.id import TMVersion, find_link, parse_tmid, sanitize_name
from tmcatalog.search import (
    FilterType,
    FoundEntry,
    FoundSource,
    FoundVersion,
    SearchOptions,
    SearchParams,
    SearchResult,
)
from tmcatalog.thing import ThingModel, parse_fetch_name

ATTACHMENTS_DIR = ".attachments"


@dataclass
class Attachment:
    name: str
    media_type: str = ""


@dataclass
class AttachmentContainer:
    """Something that can carry file attachments."""

    attachments: list[Attachment] = field(default_factory=list)

    def find_attachment(self, name: str) -> Optional[Attachment]:
        """Return the attachment with the given name, or None."""
        return next((a for a in self.attachments if a.name == name), None)


class AttachmentContainerKind(enum.IntEnum):
    INVALID = 0
    TM_NAME = 1
    TM_ID = 2


@dataclass(frozen=True)
class AttachmentContainerRef:
    """Refers to a TM name or a TM id; exactly one of the two must be set."""

    tm_name: str = ""
    tmid: str = ""

    @classmethod
    def for_tmid(cls, tmid: str) -> AttachmentContainerRef:
        return cls(tmid=tmid)

    @classmethod
    def for_tm_name(cls, tm_name: str) -> AttachmentContainerRef:
        return cls(tm_name=tm_name)

    def kind(self) -> AttachmentContainerKind:
        if bool(self.tmid) == bool(self.tm_name):
            return AttachmentContainerKind.INVALID
        if self.tm_name:
            return AttachmentContainerKind.TM_NAME
        return AttachmentContainerKind.TM_ID

    def __str__(self) -> str:
        kind = self.kind()
        if kind is AttachmentContainerKind.TM_ID:
            return f"TMID={self.tmid}"
        if kind is AttachmentContainerKind.TM_NAME:
            return f"TMName={self.tm_name}"
        return f"invalid AttachmentContainerRef (TMID={self.tmid}, TMName={self.tm_name})"


@dataclass(kw_only=True)
class IndexVersion(AttachmentContainer):
    """One stored version of a TM."""

    description: str = ""
    version: str = ""
    links: dict[str, str] = field(default_factory=dict)
    tmid: str = ""
    digest: str = ""
    timestamp: str = ""
    external_id: str = ""
    protocols: list[str] = field(default_factory=list)


@dataclass(kw_only=True)
class IndexEntry(AttachmentContainer):
    """A TM name and all of its stored versions."""

    name: str = ""
    manufacturer: str = ""
    mpn: str = ""
    author: str = ""
    versions: list[IndexVersion] = field(default_factory=list)


@dataclass
class IndexMeta:
    created: Optional[datetime] = None


def _version_of(tmid: str) -> TMVersion:
    try:
        return parse_tmid(tmid).version
    except CatalogError:
        return TMVersion()


def _trimmed_lower(s: str) -> str:
    return s.strip().lower()


def _matches_name_filter(accepted: str, value: str, options: SearchOptions) -> bool:
    if not accepted:
        return True
    if options.name_filter_type == FilterType.FULL_MATCH:
        return value == accepted
    if options.name_filter_type == FilterType.PREFIX_MATCH:
        actual_parts = value.split("/")
        accepted_parts = accepted.strip("/").split("/")
        if len(accepted_parts) > len(actual_parts):
            return False
        return actual_parts[: len(accepted_parts)] == accepted_parts
    raise ValueError(f"unsupported name filter type: {options.name_filter_type}")


def _matches_filter(accepted: list[str], value: str) -> bool:
    return not accepted or sanitize_name(value) in accepted


def _matches_protocol_filter(protocols: list[str], entry: IndexEntry) -> bool:
    if not protocols:
        return True
    return any(p in v.protocols for v in entry.versions for p in protocols)


def _matches_query(query: str, entry: IndexEntry) -> bool:
    query = _trimmed_lower(query)
    fields = [entry.name, entry.author, entry.manufacturer, entry.mpn]
    for v in entry.versions:
        fields.extend((v.description, v.external_id))
    return any(query in _trimmed_lower(f) for f in fields)


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return posixpath.basename(stripped)


@dataclass
class Index:
    """The table of contents of a repository."""

    meta: IndexMeta = field(default_factory=IndexMeta)
    data: list[IndexEntry] = field(default_factory=list)
    _by_name: Optional[dict[str, IndexEntry]] = field(
        default=None, init=False, repr=False, compare=False
    )

    def _names(self) -> dict[str, IndexEntry]:
        if self._by_name is None:
            self._by_name = {e.name: e for e in self.data}
        return self._by_name

    def is_empty(self) -> bool:
        return not self.data

    def sort(self) -> None:
        """Sort entries by name and each entry's versions newest first."""
        if self.is_empty():
            return
        for entry in self.data:
            entry.versions.sort(
                key=cmp_to_key(
                    lambda a, b: -_version_of(a.tmid).compare(_version_of(b.tmid))
                )
            )
        self.data.sort(key=lambda e: e.name)

    def filter(self, search: Optional[SearchParams]) -> None:
        """Remove all entries that do not meet the search parameters."""
        if search is None:
            return
        search.sanitize()

        def keep(entry: IndexEntry) -> bool:
            return (
                _matches_name_filter(search.name, entry.name, search.options)
                and _matches_filter(search.author, entry.author)
                and _matches_filter(search.manufacturer, entry.manufacturer)
                and _matches_filter(search.mpn, entry.mpn)
                and _matches_protocol_filter(search.protocol, entry)
            )

        self.data = [e for e in self.data if keep(e)]
        if self.data and search.query:
            self.data = [e for e in self.data if _matches_query(search.query, e)]
        self._by_name = None

    def find_by_name(self, name: str) -> Optional[IndexEntry]:
        return self._names().get(name)

    def find_by_tmid(self, tmid: str) -> Optional[IndexVersion]:
        """Return the version with the given id, or None if it is invalid or absent."""
        try:
            parsed = parse_tmid(tmid)
        except CatalogError:
            return None
        entry = self.find_by_name(parsed.name)
        if entry is None:
            return None
        return next((v for v in entry.versions if v.tmid == tmid), None)

    def insert(self, tm: ThingModel) -> None:
        """Add a version from a TM, creating its entry if needed."""
        tmid = parse_tmid(tm.id)
        entry = self.find_by_name(tmid.name)
        if entry is None:
            entry = IndexEntry(
                name=tmid.name,
                manufacturer=tm.manufacturer,
                mpn=tm.mpn,
                author=tm.author,
            )
            self.data.append(entry)
            self._names()[entry.name] = entry
        original = find_link(tm.links, "original")
        version = IndexVersion(
            description=tm.description,
            timestamp=tmid.version.timestamp,
            version=str(tmid.version.base),
            tmid=tm.id,
            external_id=original.href if original is not None else "",
            digest=tmid.version.hash,
            protocols=list(tm.protocols),
            links={"content": str(tmid)},
        )
        for i, existing in enumerate(entry.versions):
            if existing.tmid == tm.id:
                entry.versions[i] = version
                break
        else:
            entry.versions.append(version)

    def insert_attachments(self, ref: AttachmentContainerRef, *args: Attachment) -> None:
        """Add attachments to a container, replacing those of the same name."""
        container, _ = self.find_attachment_container(ref)
        for att in args:
            new = Attachment(name=att.name, media_type=att.media_type)
            for i, existing in enumerate(container.attachments):
                if existing.name == att.name:
                    container.attachments[i] = new
                    break
            else:
                container.attachments.append(new)

    def delete(self, tmid: str) -> tuple[bool, str]:
        """Delete a version.

        Returns whether anything was deleted, and the TM name if no versions of it remain.
        """
        suffix = "/" + _base_name(tmid)
        if not tmid.endswith(suffix):
            raise InvalidIdError(tmid)
        name = tmid[: -len(suffix)]
        entry = self.find_by_name(name)
        if entry is None:
            return False, ""
        remaining = [v for v in entry.versions if v.tmid != tmid]
        updated = len(remaining) != len(entry.versions)
        entry.versions = remaining
        if not remaining:
            self.data = [e for e in self.data if e.name != name]
            self._names().pop(name, None)
            return updated, name
        return updated, ""

    def find_attachment_container(
        self, ref: AttachmentContainerRef
    ) -> tuple[AttachmentContainer, IndexEntry]:
        """Return the container the reference points to and its index entry."""
        kind = ref.kind()
        if kind is AttachmentContainerKind.INVALID:
            raise InvalidIdOrNameError(str(ref))
        if kind is AttachmentContainerKind.TM_ID:
            tm_name = parse_tmid(ref.tmid).name
        else:
            try:
                fetch_name = parse_fetch_name(ref.tm_name)
            except CatalogError:
                raise InvalidIdOrNameError(ref.tm_name) from None
            if fetch_name.semver:
                raise InvalidIdOrNameError(ref.tm_name)
            tm_name = ref.tm_name

        entry = self.find_by_name(tm_name)
        if entry is None:
            if kind is AttachmentContainerKind.TM_ID:
                raise TMNotFoundError(ref.tmid)
            raise TMNameNotFoundError(ref.tm_name)
        if kind is AttachmentContainerKind.TM_ID:
            for v in entry.versions:
                if v.tmid == ref.tmid:
                    return v, entry
            raise TMNotFoundError(ref.tmid)
        return entry, entry


def rel_attachments_dir(ref: AttachmentContainerRef) -> str:
    """Return the relative attachments directory of a container.

    E.g. 'author/manufacturer/mpn/.attachments' for a TM name and
    'author/manufacturer/mpn/.attachments/<version>' for a TM id.
    """
    kind = ref.kind()
    if kind is AttachmentContainerKind.INVALID:
        raise InvalidIdOrNameError(f"invalid attachment container reference: {ref}")
    if kind is AttachmentContainerKind.TM_ID:
        try:
            tmid = parse_tmid(ref.tmid)
        except CatalogError as exc:
            raise InvalidIdError(f"invalid attachment container reference: {ref}") from exc
        return f"{tmid.name}/{ATTACHMENTS_DIR}/{tmid.version}"
    return f"{ref.tm_name}/{ATTACHMENTS_DIR}"


class IndexToSearchResultMapper:
    """Turns index contents into search results found in a given source."""

    def __init__(self, found_in: FoundSource) -> None:
        self.found_in = found_in

    def to_search_result(self, index: Index) -> SearchResult:
        return SearchResult(entries=[self.to_found_entry(e) for e in index.data])

    def to_found_entry(self, entry: IndexEntry) -> FoundEntry:
        return FoundEntry(
            name=entry.name,
            manufacturer=entry.manufacturer,
            mpn=entry.mpn,
            author=entry.author,
            versions=self.to_found_versions(entry.versions),
            found_in=self.found_in,
            attachments=list(entry.attachments),
        )

    def to_found_versions(self, versions: Iterable[IndexVersion]) -> list[FoundVersion]:
        return [self.to_found_version(v) for v in versions]

    def to_found_version(self, version: IndexVersion) -> FoundVersion:
        return FoundVersion(index_version=version, found_in=self.found_in)