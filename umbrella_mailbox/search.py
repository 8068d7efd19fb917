"""Search filter model and its translation into IMAP SEARCH keys."""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# (field name, key when True, key when False)
_FLAG_KEYS: tuple[tuple[str, str, str], ...] = (
    ("seen", "SEEN", "UNSEEN"),
    ("answered", "ANSWERED", "UNANSWERED"),
    ("flagged", "FLAGGED", "UNFLAGGED"),
    ("deleted", "DELETED", "UNDELETED"),
)

# (field name, IMAP key) for string-valued criteria
_TEXT_KEYS: tuple[tuple[str, str], ...] = (
    ("from_", "FROM"),
    ("to", "TO"),
    ("cc", "CC"),
    ("subject", "SUBJECT"),
    ("body", "BODY"),
    ("text", "TEXT"),
)


class SearchCriteria(BaseModel):
    """User-facing search filter.

    Every field is optional; unset fields do not constrain the search.
    Flag fields are tri-state: ``True`` matches messages with the flag,
    ``False`` matches messages without it.
    """

    model_config = ConfigDict(populate_by_name=True)

    since: date | None = Field(default=None, description="Internal date on or after")
    before: date | None = Field(default=None, description="Internal date strictly before")
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    cc: str | None = None
    subject: str | None = None
    body: str | None = None
    text: str | None = Field(default=None, description="Match headers or body")
    seen: bool | None = None
    answered: bool | None = None
    flagged: bool | None = None
    deleted: bool | None = None
    larger: int | None = Field(default=None, ge=0, description="Size in bytes")
    smaller: int | None = Field(default=None, ge=0, description="Size in bytes")
    uid: str | None = Field(default=None, description='UID set, e.g. "100:*"')

    def to_imap(self) -> list[Any]:
        """Return the criteria as a flat list accepted by ``IMAPClient.search``.

        IMAP date search is day-granular, so ``since``/``before`` are dates.
        """
        keys: list[Any] = []
        if self.since is not None:
            keys += ["SINCE", self.since]
        if self.before is not None:
            keys += ["BEFORE", self.before]
        for field_name, key in _TEXT_KEYS:
            value = getattr(self, field_name)
            if value:
                keys += [key, value]
        for field_name, on_key, off_key in _FLAG_KEYS:
            value = getattr(self, field_name)
            if value is not None:
                keys.append(on_key if value else off_key)
        if self.larger is not None:
            keys += ["LARGER", self.larger]
        if self.smaller is not None:
            keys += ["SMALLER", self.smaller]
        if self.uid:
            keys += ["UID", self.uid]
        return keys or ["ALL"]
