"""Thing Models, fetch names, repository specs and check results."""

from __future__ import annotations

import enum
import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union
from urllib.parse import urlsplit

from tmcatalog.errors import (
    CatalogError,
    InvalidFetchNameError,
    InvalidIdError,
    InvalidIdOrNameError,
    InvalidSpecError,
)
from tmcatalog.id import TMID, Link, parse_tmid
from tmcatalog.search import FoundSource
from tmcatalog.versioning import SemVer

ResourceFilter = Callable[[str], bool]

_PLACEHOLDERS_RE = re.compile(r"{{.+}}")
_SCHEME_RE = re.compile(r"([A-Za-z][A-Za-z0-9+\-.]*):")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_FETCH_NAME_RE = re.compile(r"([a-z\-0-9]+(/[\w\-0-9]+){2,})(:(.+))?", re.ASCII)


@dataclass
class ThingModel:
    """The parts of a Thing Model the catalog needs to accept it."""

    id: str = ""
    description: str = ""
    manufacturer: str = ""
    mpn: str = ""
    author: str = ""
    version: str = ""
    links: list[Link] = field(default_factory=list)
    protocols: list[str] = field(default_factory=list)


def _load_object(data: Union[bytes, str]) -> dict:
    obj = json.loads(data)
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ValueError(f"expected a JSON object, got {type(obj).__name__}")
    return obj


def _get_str(obj: dict, key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value


def _get_obj(obj: dict, key: str) -> dict:
    value = obj.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be an object")
    return value


def _get_links(obj: dict) -> list[Link]:
    value = obj.get("links")
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("'links' must be an array")
    links = []
    for item in value:
        if item is None:
            item = {}
        if not isinstance(item, dict):
            raise ValueError("each link must be an object")
        links.append(Link(rel=_get_str(item, "rel"), href=_get_str(item, "href")))
    return links


def parse_thing_model(data: Union[bytes, str]) -> ThingModel:
    """Parse a Thing Model document; raises ValueError if it is malformed."""
    obj = _load_object(data)
    try:
        protocols = collect_protocols(data)
    except ValueError:
        protocols = []
    return ThingModel(
        id=_get_str(obj, "id"),
        description=_get_str(obj, "description"),
        manufacturer=_get_str(_get_obj(obj, "schema:manufacturer"), "schema:name"),
        mpn=_get_str(obj, "schema:mpn"),
        author=_get_str(_get_obj(obj, "schema:author"), "schema:name"),
        version=_get_str(_get_obj(obj, "version"), "model"),
        links=_get_links(obj),
        protocols=protocols,
    )


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _forms_protocols(container: dict) -> list[str]:
    forms = container.get("forms")
    if not isinstance(forms, list):
        return []
    protos = (extract_protocol(_as_str(_as_dict(f).get("href"))) for f in forms)
    return [p for p in protos if p]


def collect_protocols(data: Union[bytes, str]) -> list[str]:
    """Return the sorted, distinct URL schemes used by a TM's base and forms."""
    tm = _load_object(data)
    protos = set()
    base_proto = extract_protocol(_as_str(tm.get("base")))
    if base_proto:
        protos.add(base_proto)
    protos.update(_forms_protocols(tm))
    for key in ("properties", "actions", "events"):
        for affordance in _as_dict(tm.get(key)).values():
            protos.update(_forms_protocols(_as_dict(affordance)))
    return sorted(protos)


def extract_protocol(uri: str) -> str:
    """Return the lower-case scheme of a URI, or '' if it has none or is unparsable."""
    if not uri:
        return ""
    # placeholders would make an otherwise valid URI unparsable
    uri = _PLACEHOLDERS_RE.sub("example.com", uri)
    if _CONTROL_RE.search(uri):
        return ""
    try:
        urlsplit(uri)
    except ValueError:
        return ""
    match = _SCHEME_RE.match(uri)
    return match.group(1).lower() if match else ""


@dataclass(frozen=True)
class FetchName:
    """A TM name, optionally with a semantic version to fetch."""

    name: str
    semver: str = ""


def parse_fetch_name(fetch_name: str) -> FetchName:
    """Parse 'NAME[:SEMVER]'."""
    match = _FETCH_NAME_RE.fullmatch(fetch_name)
    if match is None:
        raise InvalidFetchNameError(f"{fetch_name} - must be NAME[:SEMVER]")
    semver = match.group(4) or ""
    if semver:
        try:
            SemVer.parse(semver)
        except CatalogError:
            raise InvalidFetchNameError(f"{fetch_name} - invalid semantic version") from None
    return FetchName(name=match.group(1), semver=semver)


class _UnparsableIdOrName(InvalidIdOrNameError, InvalidIdError, InvalidFetchNameError):
    message = InvalidIdOrNameError.message

    def __init__(self, id_or_name: str, id_error: Exception, name_error: Exception) -> None:
        self.id_or_name = id_or_name
        self.id_error = id_error
        self.name_error = name_error
        super().__init__()

    def _describe(self) -> str:
        return (
            f"could not parse {self.id_or_name} as either TMID or fetch name: "
            f"{InvalidIdOrNameError.message}: {self.id_error}, {self.name_error}"
        )


def parse_as_tmid_or_fetch_name(id_or_name: str) -> tuple[Optional[TMID], Optional[FetchName]]:
    """Parse as a TMID, or failing that as a fetch name; exactly one result is not None."""
    try:
        return parse_tmid(id_or_name), None
    except CatalogError as exc:
        id_error = exc
    try:
        return None, parse_fetch_name(id_or_name)
    except CatalogError as exc:
        raise _UnparsableIdOrName(id_or_name, id_error, exc) from exc


@dataclass(frozen=True)
class RepoSpec:
    """Names the target of an operation: a configured repo, a local directory, or neither."""

    repo_name: str = ""
    directory: str = ""

    def __post_init__(self) -> None:
        if self.repo_name and self.directory:
            raise InvalidSpecError()

    @classmethod
    def from_found_source(cls, source: FoundSource) -> RepoSpec:
        return cls(repo_name=source.repo_name, directory=source.directory)

    def to_found_source(self) -> FoundSource:
        return FoundSource(directory=self.directory, repo_name=self.repo_name)

    def __str__(self) -> str:
        if not self.directory:
            if not self.repo_name:
                return "unspecified repo"
            return f"named repo <{self.repo_name}>"
        return f"local repo {self.directory}"


EMPTY_SPEC = RepoSpec()


@dataclass(frozen=True)
class RepoDescription:
    name: str
    type: str
    description: str = ""


class CheckResultType(enum.IntEnum):
    OK = 0
    ERR = 1

    def __str__(self) -> str:
        return "OK" if self is CheckResultType.OK else "error"


@dataclass(frozen=True)
class CheckResult:
    type: CheckResultType
    resource_name: str
    message: str = ""

    def __str__(self) -> str:
        return f"{self.type} \t{self.resource_name}: {self.message}"