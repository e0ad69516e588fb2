import json

import pytest

from tmcatalog.jsonedit import ValueType, delete_value, get_value, set_value

DOC = (
    b'{\n"title":"test",\n"id":"some-id",\n"links":[{"rel":"a"}],\n"count": 3,\n'
    b'"meta": {"id": "inner"},\n"ok": true,\n"none": null\n}'
)


@pytest.mark.parametrize(
    "key, expected",
    [
        ("title", (b"test", ValueType.STRING)),
        ("id", (b"some-id", ValueType.STRING)),
        ("links", (b'[{"rel":"a"}]', ValueType.ARRAY)),
        ("count", (b"3", ValueType.NUMBER)),
        ("meta", (b'{"id": "inner"}', ValueType.OBJECT)),
        ("ok", (b"true", ValueType.BOOLEAN)),
        ("none", (b"null", ValueType.NULL)),
    ],
)
def test_get_value_reports_value_and_type(key, expected):
    assert get_value(DOC, key) == expected


def test_get_value_missing_key():
    assert get_value(DOC, "missing") == (None, ValueType.NOT_EXIST)


def test_get_value_keeps_escapes():
    assert get_value(b'{"id":"a\\"b}"}', "id") == (b'a\\"b}', ValueType.STRING)


def test_set_value_replaces_existing_in_place():
    raw = b'{\n"id":"author/omnicorp/senseall/opt/dir/v3.2.1-20231110123243-863e9f0f950a.tm.json",\n"title":"test"\n}'
    assert set_value(raw, "id", b'""') == b'{\n"id":"",\n"title":"test"\n}'


def test_set_value_appends_missing_before_closing_brace():
    raw = b'{\n"title":"test"\n}'
    assert set_value(raw, "id", b'""') == b'{\n"title":"test"\n,"id":""}'


def test_set_value_into_empty_object():
    assert json.loads(set_value(b"{ }", "id", b'"x"')) == {"id": "x"}


def test_set_value_round_trip_keeps_other_members():
    result = set_value(DOC, "count", b"[1,2]")
    assert get_value(result, "count") == (b"[1,2]", ValueType.ARRAY)
    before = json.loads(DOC)
    after = json.loads(result)
    before.pop("count")
    after.pop("count")
    assert after == before


def test_set_value_does_not_touch_nested_members():
    result = set_value(DOC, "id", b'"new"')
    parsed = json.loads(result)
    assert parsed["id"] == "new"
    assert parsed["meta"] == json.loads(DOC)["meta"]


@pytest.mark.parametrize("key", ["title", "id", "links", "count", "meta", "ok", "none"])
def test_delete_value_removes_only_that_member(key):
    expected = json.loads(DOC)
    del expected[key]
    assert json.loads(delete_value(DOC, key)) == expected


def test_delete_value_only_member():
    assert json.loads(delete_value(b'{"links": []}', "links")) == {}


def test_delete_value_missing_key_returns_input():
    assert delete_value(DOC, "missing") == DOC


@pytest.mark.parametrize(
    "raw",
    [
        b"",
        b"[1,2]",
        b'{"a":1',
        b'{"a" 1}',
        b'{"a":tru}',
        b'\n"id":"asdf",\n"title":"test"\n}',
        b'{"a":1} x',
    ],
)
def test_malformed_documents_raise(raw):
    with pytest.raises(ValueError):
        get_value(raw, "a")
    with pytest.raises(ValueError):
        set_value(raw, "a", b"1")