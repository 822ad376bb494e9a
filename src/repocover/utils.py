"""Formatting helpers shared by the metadata generators, plus small filesystem checks."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable
from uuid import uuid4

from repocover.models import Person, PublishedDate

INITIAL_PATTERN = re.compile(r"(\w)\w+")
MISSING_PERIOD_PATTERN = re.compile(r"(\w)(?!\.)")


def extended_date_string(date: PublishedDate | None) -> str | None:
    """Format a date according to level 0 of the Extended Date/Time Format (EDTF).

    Only the known components are emitted, so the result has year, month or
    day precision, e.g. ``2021``, ``2021-12`` or ``2021-12-31``.
    """
    if date is None or not date.year:
        return None
    parts = [str(date.year)]
    # Day precision requires a month.
    if date.month:
        parts.append(f"{date.month:02d}")
        if date.day:
            parts.append(f"{date.day:02d}")
    return "-".join(parts)


def persons_string(persons: Iterable[Person], shorten_first_names: bool = False) -> str:
    """Return ``"First Last, First Last"`` for the given persons.

    With ``shorten_first_names`` the first names are reduced to initials
    followed by a period (``"Jane Ann"`` becomes ``"J. A."``).
    """
    names: list[str] = []
    for person in persons:
        first_names = person.first_name or ""
        if shorten_first_names:
            first_names = INITIAL_PATTERN.sub(r"\1", first_names)
            first_names = MISSING_PERIOD_PATTERN.sub(r"\1.", first_names)
        names.append(" ".join(part for part in (first_names, person.last_name) if part))
    return ", ".join(name for name in names if name)


def unique_suffix() -> str:
    return uuid4().hex[:13]


def default_temp_name(document_id: int) -> str:
    return f"{document_id}-{unique_suffix()}"


def is_writable_dir(path: Path) -> bool:
    return path.is_dir() and os.access(path, os.W_OK)
