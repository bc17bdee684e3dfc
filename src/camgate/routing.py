"""Request path classification for camgate.

Paths are matched segment by segment against ordered arms:

    /                          -> Root
    /YYYY/MM/DD  or  /YYYY/MM/DD/  -> DateListing
    /YYYY/MM/DD/<filename>     -> DateObject
    anything else              -> Unmatched

Dates are format-checked (year ``20xx``, month 01-12, day 01-31) but not
checked against the calendar, so ``/2024/02/31`` is a valid listing path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_YEAR_RE = re.compile(r"20[0-9]{2}")
_TWO_DIGITS_RE = re.compile(r"[0-9]{2}")
_FILENAME_RE = re.compile(r"[-.a-z0-9]+")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateKey:
    """A day partition of the bucket.

    Attributes:
        year: Four-digit year, always starting with ``20``.
        month: Two-digit month, ``01`` to ``12``.
        day: Two-digit day, ``01`` to ``31``.
    """

    year: str
    month: str
    day: str

    @classmethod
    def parse(cls, year: str, month: str, day: str) -> DateKey | None:
        """Build a DateKey from path segments, or None if they are malformed."""
        if not _YEAR_RE.fullmatch(year):
            return None
        if not (_TWO_DIGITS_RE.fullmatch(month) and _TWO_DIGITS_RE.fullmatch(day)):
            return None
        if not 1 <= int(month) <= 12 or not 1 <= int(day) <= 31:
            return None
        return cls(year, month, day)

    @classmethod
    def from_date(cls, value: date) -> DateKey:
        return cls(f"{value.year:04d}", f"{value.month:02d}", f"{value.day:02d}")

    @classmethod
    def today(cls) -> DateKey:
        """Today's partition in the server's local time zone."""
        return cls.from_date(date.today())

    @property
    def label(self) -> str:
        """``YYYY/MM/DD``"""
        return f"{self.year}/{self.month}/{self.day}"

    @property
    def prefix(self) -> str:
        """Store key prefix shared by every object of this day."""
        return f"{self.label}/"

    @property
    def path(self) -> str:
        """URL path of this day's listing page."""
        return f"/{self.label}"


@dataclass(frozen=True)
class Root:
    pass


@dataclass(frozen=True)
class DateListing:
    date: DateKey


@dataclass(frozen=True)
class DateObject:
    date: DateKey
    filename: str

    @property
    def key(self) -> str:
        """Full object key in the store."""
        return f"{self.date.prefix}{self.filename}"


@dataclass(frozen=True)
class Unmatched:
    path: str


Route = Root | DateListing | DateObject | Unmatched


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify(path: str) -> Route:
    """Classify a URL path (without query string) into a Route.

    Args:
        path: The request path, e.g. ``/2024/05/01/a.jpg``.

    Returns:
        Exactly one of Root, DateListing, DateObject or Unmatched.
    """
    if path == "/":
        return Root()
    if not path.startswith("/"):
        return Unmatched(path)

    segments = path[1:].split("/")

    # A single trailing slash after the day is allowed.
    if len(segments) == 4 and segments[3] == "":
        segments = segments[:3]

    if len(segments) not in (3, 4):
        return Unmatched(path)

    date_key = DateKey.parse(*segments[:3])
    if date_key is None:
        return Unmatched(path)

    if len(segments) == 3:
        return DateListing(date_key)

    filename = segments[3]
    if not _FILENAME_RE.fullmatch(filename):
        return Unmatched(path)
    return DateObject(date_key, filename)
