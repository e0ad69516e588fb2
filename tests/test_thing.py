import json

import pytest

from tmcatalog.errors import (
    InvalidFetchNameError,
    InvalidIdOrNameError,
    InvalidSpecError,
)
from tmcatalog.id import Link
from tmcatalog.search import FoundSource
from tmcatalog.thing import (
    EMPTY_SPEC,
    CheckResult,
    CheckResultType,
    FetchName,
    RepoDescription,
    RepoSpec,
    collect_protocols,
    extract_protocol,
    parse_as_tmid_or_fetch_name,
    parse_fetch_name,
    parse_thing_model,
)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "manufacturer",
        "manufacturer\\mpn",
        "manu-facturer/mpn",
        "manufacturer/mpn:1.2.3",
        "manufacturer/mpn:1.2.",
        "manufacturer/mpn:1.2",
        "manufacturer/mpn:v1.2.3",
        "manufacturer/mpn:43748209adcb",
    ],
)
def test_parse_fetch_name_errors(text):
    with pytest.raises(InvalidFetchNameError):
        parse_fetch_name(text)


@pytest.mark.parametrize(
    "text, name, semver",
    [
        ("author/manu-facturer/mpn:1.2.3", "author/manu-facturer/mpn", "1.2.3"),
        ("author/manufacturer/mpn:v1.2.3", "author/manufacturer/mpn", "v1.2.3"),
        (
            "author/manufacturer/mpn/folder/structure:1.2.3",
            "author/manufacturer/mpn/folder/structure",
            "1.2.3",
        ),
        (
            "author/manufacturer/mpn/folder/structure:v1.2.3-alpha1",
            "author/manufacturer/mpn/folder/structure",
            "v1.2.3-alpha1",
        ),
    ],
)
def test_parse_fetch_name(text, name, semver):
    assert parse_fetch_name(text) == FetchName(name, semver)


def test_parse_fetch_name_invalid_semver_message():
    with pytest.raises(InvalidFetchNameError, match="invalid semantic version"):
        parse_fetch_name("author/manufacturer/mpn:1.a.0")


TM_WITH_PROTOCOLS = {
    "base": "https://example.com",
    "forms": [{"href": "coaps://example.com/all"}],
    "properties": {
        "a": {"forms": [{"href": "modbus+tcp://{{host}}:502/1"}, {"href": "COAP://h/p"}]}
    },
    "actions": {"b": {"forms": [{"href": "opcua+tcp://h"}, {"href": "relative/path"}]}},
    "events": {
        "c": {
            "forms": [
                {"href": "opcua+tls://h"},
                {"href": "modbus+tls://h"},
                {"href": "https://dup"},
            ]
        }
    },
}


def test_collect_protocols():
    protos = collect_protocols(json.dumps(TM_WITH_PROTOCOLS).encode())
    assert protos == ["coap", "coaps", "https", "modbus+tcp", "modbus+tls", "opcua+tcp", "opcua+tls"]


def test_collect_protocols_invalid_json():
    with pytest.raises(ValueError):
        collect_protocols(b"{not json")


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("", ""),
        ("HTTPS://example.com", "https"),
        ("modbus+tcp://{{host}}:502", "modbus+tcp"),
        ("{{base}}/path", ""),
        ("relative/path", ""),
        ("http://[broken", ""),
    ],
)
def test_extract_protocol(uri, expected):
    assert extract_protocol(uri) == expected


def test_parse_thing_model():
    doc = {
        "id": "ext-id",
        "description": "a lamp",
        "schema:manufacturer": {"schema:name": "omnicorp"},
        "schema:mpn": "lightall",
        "schema:author": {"schema:name": "someone"},
        "version": {"model": "v1.0.1"},
        "links": [{"rel": "original", "href": "orig"}],
        "base": "coap://example.com",
    }
    tm = parse_thing_model(json.dumps(doc))
    assert tm.id == "ext-id"
    assert tm.description == "a lamp"
    assert (tm.manufacturer, tm.mpn, tm.author) == ("omnicorp", "lightall", "someone")
    assert tm.version == "v1.0.1"
    assert tm.links == [Link(rel="original", href="orig")]
    assert tm.protocols == ["coap"]


def test_parse_thing_model_wrong_type():
    with pytest.raises(ValueError):
        parse_thing_model('{"schema:manufacturer": "omnicorp"}')


def test_parse_as_tmid_or_fetch_name_returns_tmid():
    tmid, fn = parse_as_tmid_or_fetch_name(
        "author/manufacturer/mpn/v1.0.0-20231205123243-c49617d2e4fc.tm.json"
    )
    assert fn is None
    assert tmid.name == "author/manufacturer/mpn"


def test_parse_as_tmid_or_fetch_name_returns_fetch_name():
    tmid, fn = parse_as_tmid_or_fetch_name("author/manufacturer/mpn:v1.0")
    assert tmid is None
    assert fn == FetchName("author/manufacturer/mpn", "v1.0")


@pytest.mark.parametrize("text", ["", "manufacturer", "manufacturer/mpn"])
def test_parse_as_tmid_or_fetch_name_error(text):
    with pytest.raises(InvalidIdOrNameError, match="id or name invalid"):
        parse_as_tmid_or_fetch_name(text)


def test_parse_as_tmid_or_fetch_name_error_carries_fetch_name_error():
    with pytest.raises(InvalidFetchNameError, match=r"must be NAME\[:SEMVER\]"):
        parse_as_tmid_or_fetch_name("manufacturer/mpn:v1.0.0")


def test_repo_spec_rejects_both():
    with pytest.raises(InvalidSpecError):
        RepoSpec(repo_name="r1", directory="/tmp")


def test_repo_spec_str():
    assert str(EMPTY_SPEC) == "unspecified repo"
    assert str(RepoSpec(repo_name="r1")) == "named repo <r1>"
    assert str(RepoSpec(directory="/data")) == "local repo /data"


def test_repo_spec_found_source_round_trip():
    src = FoundSource(repo_name="r2")
    spec = RepoSpec.from_found_source(src)
    assert spec == RepoSpec(repo_name="r2")
    assert spec.to_found_source() == src


def test_check_result_str():
    assert str(CheckResult(CheckResultType.OK, "a/b", "fine")) == "OK \ta/b: fine"
    assert str(CheckResult(CheckResultType.ERR, "x", "bad")) == "error \tx: bad"


def test_repo_description_fields():
    d = RepoDescription(name="r1", type="file", description="local")
    assert (d.name, d.type, d.description) == ("r1", "file", "local")