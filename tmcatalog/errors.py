"""Errors raised by the catalog."""

from __future__ import annotations

import enum
import re

MAX_NAME_LENGTH = 255


class CatalogError(Exception):
    """Base class of all catalog errors."""

    message = "catalog error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class NotFoundError(CatalogError):
    """Something looked up by the catalog does not exist."""

    subject = ""

    def __init__(self, detail: str | None = None, *, subject: str | None = None) -> None:
        if subject is not None:
            self.subject = subject
        self.message = f"{self.subject} not found".strip()
        super().__init__(detail)

    def code(self) -> str:
        """Return a machine-readable code naming what was not found."""
        return self.subject


class TMNotFoundError(NotFoundError):
    subject = "TM"


class TMNameNotFoundError(NotFoundError):
    subject = "TM name"


class AttachmentNotFoundError(NotFoundError):
    subject = "attachment"


class InvalidVersionError(CatalogError):
    message = "invalid version string"


class InvalidPseudoVersionError(CatalogError):
    message = "no valid pseudo-version found"


class InvalidIdError(CatalogError):
    message = "TM id invalid"


class InvalidIdOrNameError(CatalogError):
    message = "id or name invalid"


class InvalidFetchNameError(CatalogError):
    message = "invalid fetch name"


class InvalidSpecError(CatalogError):
    message = "illegal repo spec: both local directory and repo name given"


class InvalidErrorCodeError(CatalogError):
    message = "invalid error code"


class TMNameTooLongError(CatalogError):
    message = f"TM name too long (max {MAX_NAME_LENGTH} allowed)"


class IdConflictType(enum.IntEnum):
    """The reason why an imported TM clashes with one already stored."""

    SAME_CONTENT = 1
    SAME_TIMESTAMP = 2

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")


class TMIDConflictError(CatalogError):
    """The repository already holds a TM that conflicts with the imported one."""

    def __init__(self, conflict_type: IdConflictType | int, existing_id: str) -> None:
        self.type = IdConflictType(conflict_type)
        self.existing_id = existing_id
        super().__init__()

    def _describe(self) -> str:
        return f"Thing Model id conflict. Type: {self.type}, existing id: {self.existing_id}"

    def code(self) -> str:
        """Return a code that parse_tmid_conflict turns back into this error."""
        return f"{int(self.type)}:{self.existing_id}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TMIDConflictError):
            return NotImplemented
        return self.type == other.type and self.existing_id == other.existing_id

    def __hash__(self) -> int:
        return hash((self.type, self.existing_id))


_CONFLICT_CODE_RE = re.compile(r"([12]):(.+?)")


def parse_tmid_conflict(error_code: str) -> TMIDConflictError:
    """Rebuild a TMIDConflictError from the string returned by its code()."""
    match = _CONFLICT_CODE_RE.fullmatch(error_code)
    if match is None:
        raise InvalidErrorCodeError(error_code)
    return TMIDConflictError(IdConflictType(int(match.group(1))), match.group(2))