"""Choosing which stored TM version to fetch, and restoring ids of fetched TMs."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from tmcatalog.errors import InvalidVersionError, TMNameNotFoundError, TMNotFoundError
from tmcatalog.jsonedit import ValueType, delete_value, get_value, set_value
from tmcatalog.search import FoundVersion
from tmcatalog.thing import FetchName, RepoSpec
from tmcatalog.versioning import SemVer, tilde_constraint

_log = logging.getLogger(__name__)


def _marshal(value: Any) -> bytes:
    text = json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
    for char, escaped in (("<", "\\u003c"), (">", "\\u003e"), ("&", "\\u0026"),
                          ("\u2028", "\\u2028"), ("\u2029", "\\u2029")):
        text = text.replace(char, escaped)
    return text.encode("utf-8")


def restore_external_id(raw: bytes) -> bytes:
    """Put an id recorded in an 'original' link back into 'id' and drop that link.

    The contents are returned unchanged if there is no such link or they cannot be edited.
    """
    try:
        links_value, links_type = get_value(raw, "links")
    except ValueError:
        return raw
    if links_type is not ValueType.ARRAY:
        return raw
    try:
        links = json.loads(links_value)
    except ValueError as exc:
        _log.error("error unmarshalling links: %s", exc)
        return raw
    if not all(item is None or isinstance(item, dict) for item in links):
        _log.error("error unmarshalling links: not all links are objects")
        return raw

    original_id = ""
    kept = []
    for link in links:
        rel = link.get("rel") if link else None
        href = link.get("href") if link else None
        if rel == "original" and isinstance(href, str):
            original_id = href
        else:
            kept.append(link)
    if len(kept) == len(links):
        return raw

    try:
        if kept:
            with_links = set_value(raw, "links", _marshal(kept))
        else:
            with_links = delete_value(raw, "links")
        return set_value(with_links, "id", _marshal(original_id))
    except ValueError as exc:
        _log.error("unexpected json set value error: %s", exc)
        return raw


def find_most_recent_version(versions: Iterable[FoundVersion]) -> tuple[str, RepoSpec]:
    """Return the id and source of the first version; versions come newest first."""
    versions = list(versions)
    if not versions:
        raise TMNameNotFoundError("no versions found")
    first = versions[0]
    return first.tmid, RepoSpec.from_found_source(first.found_in)


def _keep(version: FoundVersion, matches) -> bool:
    try:
        parsed = SemVer.parse(version.version)
    except InvalidVersionError as exc:
        _log.warning("%s", exc)
        return True
    return matches(parsed)


def find_most_recent_matching_version(
    versions: Iterable[FoundVersion], ver: str
) -> tuple[str, RepoSpec]:
    """Return the id and source of the first version matching ver.

    A full 'major.minor.patch' must match exactly; a shorter ver matches like a
    tilde range. Versions whose own version cannot be parsed are not filtered out.
    """
    ver = ver.removeprefix("v")
    if ver.count(".") == 2:
        wanted = SemVer.parse(ver)

        def matches(candidate: SemVer) -> bool:
            return candidate.compare(wanted) == 0

    else:
        matches = tilde_constraint(ver)

    remaining = [v for v in versions if _keep(v, matches)]
    if not remaining:
        raise TMNotFoundError(f"no version {ver} found")
    first = remaining[0]
    return first.tmid, RepoSpec.from_found_source(first.found_in)


def resolve_fetch_name(
    versions: Iterable[FoundVersion], fetch_name: FetchName
) -> tuple[str, RepoSpec]:
    """Pick the version a fetch name refers to from versions ordered newest first.

    Without a semantic version the most recent one is chosen.
    """
    versions = list(versions)
    if not fetch_name.semver:
        return find_most_recent_version(versions)
    SemVer.parse(fetch_name.semver)
    return find_most_recent_matching_version(versions, fetch_name.semver)