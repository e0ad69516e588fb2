"""Reading and editing top-level members of a JSON object without reformatting it."""

from __future__ import annotations

import enum
import json
import re
from dataclasses import dataclass
from typing import Optional, Union

_WHITESPACE = b" \t\r\n"
_STRING_RE = re.compile(rb'"(?:[^"\\]|\\.)*"', re.DOTALL)
_LITERAL_RE = re.compile(rb"[^\s,\]}]+")
_NUMBER_RE = re.compile(rb"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_OPENERS = {ord("{"): ord("}"), ord("["): ord("]")}
_CLOSERS = {ord("}"), ord("]")}
_QUOTE = ord('"')


class ValueType(enum.Enum):
    """The kind of a JSON value."""

    NOT_EXIST = "not exist"
    STRING = "string"
    NUMBER = "number"
    OBJECT = "object"
    ARRAY = "array"
    BOOLEAN = "boolean"
    NULL = "null"


@dataclass(frozen=True)
class _Member:
    key: str
    start: int
    value_start: int
    value_end: int
    type: ValueType


@dataclass(frozen=True)
class _Object:
    members: tuple[_Member, ...]
    close: int

    def find(self, key: str) -> Optional[_Member]:
        return next((m for m in self.members if m.key == key), None)


def _as_bytes(raw: Union[bytes, bytearray, str]) -> bytes:
    if isinstance(raw, str):
        return raw.encode("utf-8")
    return bytes(raw)


def _skip_ws(raw: bytes, pos: int) -> int:
    while pos < len(raw) and raw[pos] in _WHITESPACE:
        pos += 1
    return pos


def _expect(raw: bytes, pos: int, char: bytes) -> None:
    if raw[pos : pos + 1] != char:
        raise ValueError(f"malformed JSON: expected {char.decode()!r} at offset {pos}")


def _scan_string(raw: bytes, pos: int) -> int:
    match = _STRING_RE.match(raw, pos)
    if match is None:
        raise ValueError(f"malformed JSON: unterminated string at offset {pos}")
    return match.end()


def _scan_container(raw: bytes, pos: int) -> int:
    stack: list[int] = []
    while pos < len(raw):
        char = raw[pos]
        if char == _QUOTE:
            pos = _scan_string(raw, pos)
            continue
        if char in _OPENERS:
            stack.append(_OPENERS[char])
        elif char in _CLOSERS:
            if not stack or stack.pop() != char:
                raise ValueError(f"malformed JSON: unexpected {chr(char)!r} at offset {pos}")
            if not stack:
                return pos + 1
        pos += 1
    raise ValueError("malformed JSON: unterminated object or array")


def _scan_value(raw: bytes, pos: int) -> tuple[int, ValueType]:
    first = raw[pos : pos + 1]
    if first == b'"':
        return _scan_string(raw, pos), ValueType.STRING
    if first == b"{":
        return _scan_container(raw, pos), ValueType.OBJECT
    if first == b"[":
        return _scan_container(raw, pos), ValueType.ARRAY
    match = _LITERAL_RE.match(raw, pos)
    if match is None:
        raise ValueError(f"malformed JSON: missing value at offset {pos}")
    token = match.group()
    if token in (b"true", b"false"):
        return match.end(), ValueType.BOOLEAN
    if token == b"null":
        return match.end(), ValueType.NULL
    if _NUMBER_RE.fullmatch(token):
        return match.end(), ValueType.NUMBER
    raise ValueError(f"malformed JSON: unknown value {token!r} at offset {pos}")


def _parse_object(raw: bytes) -> _Object:
    pos = _skip_ws(raw, 0)
    _expect(raw, pos, b"{")
    pos = _skip_ws(raw, pos + 1)
    members: list[_Member] = []
    if raw[pos : pos + 1] == b"}":
        close = pos
    else:
        while True:
            _expect(raw, pos, b'"')
            key_end = _scan_string(raw, pos)
            key = json.loads(raw[pos:key_end])
            colon = _skip_ws(raw, key_end)
            _expect(raw, colon, b":")
            value_start = _skip_ws(raw, colon + 1)
            value_end, value_type = _scan_value(raw, value_start)
            members.append(_Member(key, pos, value_start, value_end, value_type))
            pos = _skip_ws(raw, value_end)
            if raw[pos : pos + 1] == b",":
                pos = _skip_ws(raw, pos + 1)
                continue
            _expect(raw, pos, b"}")
            close = pos
            break
    if _skip_ws(raw, close + 1) != len(raw):
        raise ValueError("malformed JSON: unexpected data after the object")
    return _Object(tuple(members), close)


def get_value(raw: Union[bytes, str], key: str) -> tuple[Optional[bytes], ValueType]:
    """Return the raw bytes and type of a top-level member.

    String values come without their quotes and with escapes left as they are.
    A missing member gives (None, ValueType.NOT_EXIST). Raises ValueError if the
    document is not a well-formed JSON object.
    """
    raw = _as_bytes(raw)
    member = _parse_object(raw).find(key)
    if member is None:
        return None, ValueType.NOT_EXIST
    value = raw[member.value_start : member.value_end]
    if member.type is ValueType.STRING:
        value = value[1:-1]
    return value, member.type


def set_value(raw: Union[bytes, str], key: str, value: bytes) -> bytes:
    """Set a top-level member to the given raw JSON value.

    An existing value is replaced in place; a new member is appended just before
    the closing brace. Raises ValueError if the document is not a JSON object.
    """
    raw = _as_bytes(raw)
    obj = _parse_object(raw)
    member = obj.find(key)
    if member is not None:
        return raw[: member.value_start] + value + raw[member.value_end :]
    separator = b"," if obj.members else b""
    insert = separator + json.dumps(key).encode("utf-8") + b":" + value
    return raw[: obj.close] + insert + raw[obj.close :]


def delete_value(raw: Union[bytes, str], key: str) -> bytes:
    """Remove a top-level member and its separating comma; unchanged if absent."""
    raw = _as_bytes(raw)
    member = _parse_object(raw).find(key)
    if member is None:
        return raw
    start, end = member.start, member.value_end
    after = _skip_ws(raw, end)
    if raw[after : after + 1] == b",":
        end = after + 1
    else:
        before = start - 1
        while before >= 0 and raw[before] in _WHITESPACE:
            before -= 1
        if before >= 0 and raw[before : before + 1] == b",":
            start = before
    return raw[:start] + raw[end:]