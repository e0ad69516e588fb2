from types import SimpleNamespace

from tmcatalog.search import (
    FilterType,
    FoundAttachment,
    FoundEntry,
    FoundSource,
    FoundVersion,
    SearchOptions,
    SearchParams,
    SearchResult,
    merge_found_versions,
    to_search_params,
)


def _fv(tmid, repo):
    return FoundVersion(SimpleNamespace(tmid=tmid), FoundSource(repo_name=repo))


def _entry(name, repo=""):
    return FoundEntry(
        name=name,
        manufacturer="omnicorp",
        mpn=name.split("/")[-1],
        author="omnicorp",
        found_in=FoundSource(repo_name=repo),
    )


def test_merge_found_versions_from_two_repos():
    r1 = [
        _fv("murphy/omnicorp/senseall/v0.36.0-20231231153548-243d1b462ccc.tm.json", "r1"),
        _fv("murphy/omnicorp/senseall/v0.35.0-20231230153548-243d1b462bbb.tm.json", "r1"),
    ]
    r2 = [
        _fv("murphy/omnicorp/senseall/v0.34.0-20231130153548-243d1b462aaa.tm.json", "r2"),
        _fv("murphy/omnicorp/senseall/v0.35.0-20231230173548-243d1b462bbb.tm.json", "r2"),
    ]
    res = merge_found_versions(r1, r2)
    assert [(v.tmid, v.found_in.repo_name) for v in res] == [
        ("murphy/omnicorp/senseall/v0.36.0-20231231153548-243d1b462ccc.tm.json", "r1"),
        ("murphy/omnicorp/senseall/v0.35.0-20231230173548-243d1b462bbb.tm.json", "r2"),
        ("murphy/omnicorp/senseall/v0.35.0-20231230153548-243d1b462bbb.tm.json", "r1"),
        ("murphy/omnicorp/senseall/v0.34.0-20231130153548-243d1b462aaa.tm.json", "r2"),
    ]


def test_merge_found_versions_with_one_side_missing():
    r1 = [
        _fv("murphy/omnicorp/senseall/v0.36.0-20231231153548-243d1b462ccc.tm.json", "r1"),
        _fv("murphy/omnicorp/senseall/v0.35.0-20231230153548-243d1b462bbb.tm.json", "r1"),
    ]
    res = merge_found_versions(r1, None)
    assert res == r1


def test_merge_found_versions_orders_by_name_first():
    a = _fv("b/c/d/v1.0.0-20231231153548-243d1b462ccc.tm.json", "r1")
    b = _fv("a/c/d/v0.1.0-20231231153548-243d1b462ccc.tm.json", "r2")
    assert merge_found_versions([a], [b]) == [b, a]


def test_found_version_delegates_to_index_version():
    fv = _fv("x/y/z/v1.0.0-20231231153548-243d1b462ccc.tm.json", "r1")
    assert fv.tmid == "x/y/z/v1.0.0-20231231153548-243d1b462ccc.tm.json"
    assert fv.found_in.repo_name == "r1"


def test_search_result_merge_sorts_by_name_then_repo():
    res = SearchResult([_entry("omnicorp/senseall", "r1"), _entry("omnicorp/lightall", "r1")])
    res.merge(SearchResult([_entry("omnicorp/senseall", "r2"), _entry("omnicorp/actall", "r2")]))
    assert [(e.name, e.found_in.repo_name) for e in res.entries] == [
        ("omnicorp/actall", "r2"),
        ("omnicorp/lightall", "r1"),
        ("omnicorp/senseall", "r1"),
        ("omnicorp/senseall", "r2"),
    ]


def test_search_result_merge_with_empty_result():
    res = SearchResult([_entry("omnicorp/senseall"), _entry("omnicorp/lightall")])
    res.merge(SearchResult())
    assert [e.name for e in res.entries] == ["omnicorp/lightall", "omnicorp/senseall"]


def test_found_source_str():
    assert str(FoundSource(directory="/tmp/repo")) == "</tmp/repo>"
    assert str(FoundSource(repo_name="r1")) == "r1"
    assert str(FoundSource(directory="d", repo_name="r1")) == "<d>"


def test_to_search_params_none_when_nothing_set():
    assert to_search_params(None, "", None, None, "", None, SearchOptions()) is None


def test_to_search_params_splits_lists():
    opts = SearchOptions(name_filter_type=FilterType.PREFIX_MATCH)
    p = to_search_params("a,b", "m", None, "http,coap", "x/y", "q", opts)
    assert p == SearchParams(
        author=["a", "b"],
        manufacturer=["m"],
        mpn=[],
        protocol=["http", "coap"],
        name="x/y",
        query="q",
        options=opts,
    )


def test_sanitize_search_params():
    p = to_search_params("aut^hor", "Man&ufacturer", "M/PN", None, None, None, None)
    p.sanitize()
    assert p.author == ["aut-hor"]
    assert p.manufacturer == ["man-ufacturer"]
    assert p.mpn == ["m-pn"]


def test_found_attachment_defaults():
    att = FoundAttachment(name="README.md")
    assert (att.name, att.media_type, str(att.found_in)) == ("README.md", "", "")