"""Preparing Thing Model files to be stored under a catalog id."""

from __future__ import annotations

import dataclasses
import json
import logging
import posixpath
import re
from datetime import datetime, timezone
from typing import Any, Callable

from tmcatalog.digest import calculate_file_digest, normalize_line_endings
from tmcatalog.errors import MAX_NAME_LENGTH, InvalidIdError, TMNameTooLongError
from tmcatalog.id import (
    PSEUDO_VERSION_TIMESTAMP_FORMAT,
    TMID,
    new_tmid,
    parse_tmid,
    sanitize_name,
    tmversion_from_original,
)
from tmcatalog.jsonedit import ValueType, get_value, set_value
from tmcatalog.thing import ThingModel

Now = Callable[[], datetime]

_log = logging.getLogger(__name__)
_LEADING_SLASHES = re.compile(r"^/+")


def _marshal(value: Any) -> bytes:
    text = json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False)
    for char, escaped in (("<", "\\u003c"), (">", "\\u003e"), ("&", "\\u0026"),
                          ("\u2028", "\\u2028"), ("\u2029", "\\u2029")):
        text = text.replace(char, escaped)
    return text.encode("utf-8")


def prepare_to_import(now: Now, tm: ThingModel, raw: bytes, opt_path: str) -> tuple[bytes, TMID]:
    """Give a TM file its catalog id.

    An id from the file is kept if it is a catalog id that still fits the content;
    a foreign id is moved to a link with rel 'original'. Returns the file contents
    to store and the id. Raises TMNameTooLongError if the TM name is too long and
    ValueError if the file is not a JSON object.
    """
    intermediate = bytes(raw)
    value, value_type = get_value(intermediate, "id")
    id_from_file = None
    if value_type is ValueType.STRING:
        original_id = value.decode("utf-8")
        try:
            id_from_file = parse_tmid(original_id)
        except InvalidIdError:
            intermediate = move_id_to_original_link(intermediate, original_id)

    generated, normalized = generate_new_id(now, tm, intermediate, opt_path)
    final_id = id_from_file
    if final_id is None or not generated.equals(final_id):
        final_id = generated
    if len(final_id.name) > MAX_NAME_LENGTH:
        raise TMNameTooLongError(final_id.name)
    final = set_value(normalized, "id", _marshal(str(final_id)))
    return final, final_id


def move_id_to_original_link(raw: bytes, tmid: str) -> bytes:
    """Record a foreign id as a link with rel 'original', unless such a link exists.

    The contents are returned unchanged if 'links' is missing a usable form.
    """
    try:
        links_value, links_type = get_value(raw, "links")
    except ValueError:
        return raw

    link = {"href": tmid, "rel": "original"}
    if links_type is ValueType.NOT_EXIST:
        links = [link]
    elif links_type is ValueType.ARRAY:
        try:
            links = json.loads(links_value)
        except ValueError as exc:
            _log.debug("error unmarshalling links: %s", exc)
            return raw
        if not all(item is None or isinstance(item, dict) for item in links):
            _log.debug("links are not all objects")
            return raw
        if any(isinstance(item, dict) and item.get("rel") == "original" for item in links):
            return raw
        links.append(link)
    else:
        _log.debug("unexpected type of links %s", links_type.value)
        return raw

    try:
        return set_value(raw, "links", _marshal(links))
    except ValueError as exc:
        _log.error("failed to set links: %s", exc)
        return raw


def generate_new_id(now: Now, tm: ThingModel, raw: bytes, opt_path: str) -> tuple[TMID, bytes]:
    """Generate an id for a TM from its content and the current time.

    Returns the id and the normalized contents it was generated for, in which
    'id' is an empty string.
    """
    try:
        hash_str, normalized = calculate_file_digest(raw)
    except ValueError:
        hash_str, normalized = "", normalize_line_endings(raw)
    timestamp = now().astimezone(timezone.utc).strftime(PSEUDO_VERSION_TIMESTAMP_FORMAT)
    version = dataclasses.replace(
        tmversion_from_original(tm.version), hash=hash_str, timestamp=timestamp
    )
    tmid = new_tmid(tm.author, tm.manufacturer, tm.mpn, sanitize_path_for_id(opt_path), version)
    return tmid, normalized


def sanitize_path_for_id(path: str) -> str:
    """Turn an optional sub-path into sanitized, slash-separated name parts."""
    if not path:
        return path
    path = posixpath.normpath(path.replace("\\", "/"))
    path = _LEADING_SLASHES.sub("/", path)
    path = path.removeprefix("/").removesuffix("/")
    return "/".join(sanitize_name(part) for part in path.split("/"))