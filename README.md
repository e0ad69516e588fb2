# tmcatalog

Building blocks for a catalog of Web of Things Thing Models (TMs). The package has
no dependencies beyond the standard library.

## Modules

- `tmcatalog.id`: TM identifiers and pseudo-versions. `parse_tmid`,
  `parse_tmversion`, `new_tmid`, `tmversion_from_original`, `sanitize_name`,
  `join_skipping_empty`, the `TMID` and `TMVersion` classes, and `Link` with
  `find_link`.
- `tmcatalog.versioning`: semantic versions (`SemVer` with `parse` and
  `compare`) and `tilde_constraint`, which returns a predicate for `~version`.
- `tmcatalog.thing`: `parse_thing_model`, `collect_protocols` (sorted, distinct
  URL schemes from `base` and all forms), `extract_protocol`,
  `parse_fetch_name` for `NAME[:SEMVER]`, `parse_as_tmid_or_fetch_name`,
  `RepoSpec` (a repo name or a directory, never both), `CheckResult`.
- `tmcatalog.search`: `SearchParams`, `SearchOptions` with `FilterType`
  (`FULL_MATCH` or `PREFIX_MATCH`), `to_search_params` for comma-separated
  filters, `SearchResult.merge` and `merge_found_versions`, which order results
  by TM name, newest version first, then repository name.
- `tmcatalog.index`: the `Index` of TM names and versions, with `insert`,
  `filter`, `sort`, `delete`, `find_by_name`, `find_by_tmid`,
  `insert_attachments` and `find_attachment_container`;
  `AttachmentContainerRef`, `rel_attachments_dir`, and
  `IndexToSearchResultMapper`.
- `tmcatalog.jsonedit`: `get_value`, `set_value` and `delete_value` read and
  edit top-level members of a JSON object without reformatting the rest.
- `tmcatalog.digest`: `calculate_file_digest` returns a 12-character SHA-1
  prefix of a TM with normalized line endings and `id` set to `""`, together
  with the bytes that were hashed.
- `tmcatalog.importing`: `prepare_to_import` gives a TM file its catalog id;
  a matching catalog id already in the file is kept, a foreign id is moved to a
  link with rel `original`. Names longer than 255 characters raise
  `TMNameTooLongError`.
- `tmcatalog.fetching`: `resolve_fetch_name` picks the version a fetch name
  refers to from a list ordered newest first (`v1.2.3` matches exactly, `v1.2`
  or `v1` match like `~1.2` or `~1`); `restore_external_id` puts an id kept in
  an `original` link back into `id`.
- `tmcatalog.config`: `Settings`, looked up case-insensitively from in-memory
  values, environment variables named `TMC_<KEY>` (e.g. `TMC_LOGLEVEL`), a
  JSON config file (`config.json` in `~/.tm-catalog` unless `config` says
  otherwise) and defaults. `save` and `delete` change one key in the file and
  leave the others as they are.
- `tmcatalog.logsetup`: `init_logging` attaches a handler to the `tmcatalog`
  logger: a `DiscardLogHandler` when the log level is empty or `off`,
  otherwise a `DefaultLogHandler` writing to standard error at `debug`,
  `info`, `warn` or `error` (unknown levels mean `info`).

Errors are raised as subclasses of `tmcatalog.errors.CatalogError`, e.g.
`InvalidIdError`, `TMNotFoundError`, `InvalidFetchNameError`.
`TMIDConflictError.code()` and `parse_tmid_conflict` turn an id conflict into a
string and back.

## Example

```python
from tmcatalog.id import parse_tmid
from tmcatalog.digest import calculate_file_digest
from tmcatalog.thing import parse_fetch_name

tmid = parse_tmid("author/manufacturer/mpn/v1.2.3-20231109150513-e86784632bf6.tm.json")
print(tmid.name)            # author/manufacturer/mpn
print(tmid.version.hash)    # e86784632bf6

digest, hashed = calculate_file_digest(b'{\n"title":"test"\n}')
print(digest)               # 7ae21a619c71

fn = parse_fetch_name("author/manufacturer/mpn:v1.2")
print(fn.name, fn.semver)   # author/manufacturer/mpn v1.2
```

## What the package does not do

It holds no repositories: there is no storage of TM files or attachments, no
fetching from or listing across repositories, no command-line tool and no HTTP
server. `prepare_to_import` returns the contents and id to store but stores
nothing. Thing Models are not checked against a JSON schema.

## Installation

```
pip install .
```

## Tests

```
pip install .[test]
pytest
```