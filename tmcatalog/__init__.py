"""Thing Model catalog core: ids, versions, index, search, digests, import preparation and settings."""

__version__ = "0.1.0"