import pytest

from tmcatalog.digest import calculate_file_digest, normalize_line_endings


@pytest.mark.parametrize(
    "raw, want_hash, want_bytes",
    [
        (b'{\n"title":"test"\n}', "7ae21a619c71", b'{\n"title":"test"\n,"id":""}'),
        (b'{\n"title":"test"\n,"id":""}', "7ae21a619c71", b'{\n"title":"test"\n,"id":""}'),
        (
            b'{\n"title":"test"\n,"id":"author/omnicorp/senseall/opt/dir/v3.2.1-20231110123243-863e9f0f950a.tm.json"}',
            "7ae21a619c71",
            b'{\n"title":"test"\n,"id":""}',
        ),
        (b'{\n"id":"",\n"title":"test"\n}', "60d900490eb6", b'{\n"id":"",\n"title":"test"\n}'),
        (
            b'{\n"id":"author/omnicorp/senseall/opt/dir/v3.2.1-20231110123243-863e9f0f950a.tm.json",\n"title":"test"\n}',
            "60d900490eb6",
            b'{\n"id":"",\n"title":"test"\n}',
        ),
        (b'{\r\n"title":"test"\r\n}', "7ae21a619c71", b'{\n"title":"test"\n,"id":""}'),
        (b'{\r\n"title":"test"\r\n,"id":""}', "7ae21a619c71", b'{\n"title":"test"\n,"id":""}'),
        (b'{\r\n"id":"",\r\n"title":"test"\r\n}', "60d900490eb6", b'{\n"id":"",\n"title":"test"\n}'),
        (
            b'{\r\n"id":"author/omnicorp/senseall/v3.2.1-20231110123243-863e9f0f950a.tm.json",\r\n"title":"test"\r\n}',
            "60d900490eb6",
            b'{\n"id":"",\n"title":"test"\n}',
        ),
    ],
    ids=[
        "linux no id",
        "linux empty id",
        "linux our inserted id",
        "linux pre-existing empty id",
        "linux pre-existing id",
        "windows no id",
        "windows empty id",
        "windows pre-existing empty id",
        "windows pre-existing id",
    ],
)
def test_calculate_file_digest(raw, want_hash, want_bytes):
    assert calculate_file_digest(raw) == (want_hash, want_bytes)


def test_calculate_file_digest_broken_json():
    with pytest.raises(ValueError):
        calculate_file_digest(b'\r\n"id":"asdf",\r\n"title":"test"\r\n}')


def test_normalize_line_endings():
    assert normalize_line_endings(b"a\r\nb\rc\nd") == b"a\nb\nc\nd"


def test_digest_is_idempotent():
    digest, hashed = calculate_file_digest(b'{\r\n"title":"test"\r\n}')
    assert calculate_file_digest(hashed) == (digest, hashed)