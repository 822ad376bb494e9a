"""Core data models describing repository documents and their files."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field


class Person(BaseModel):
    """Represents an author or editor of a document."""

    first_name: str = ""
    last_name: str = ""
    academic_title: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Licence(BaseModel):
    """Licence attached to a document."""

    name: str | None = None
    long_name: str | None = None
    link_licence: str | None = None
    link_logo: str | None = None


class Collection(BaseModel):
    """Node of the collection tree; `parent_id` is None for a root."""

    id: int
    parent_id: int | None = None
    name: str | None = None


class Identifier(BaseModel):
    type: str
    value: str


class Institute(BaseModel):
    """Thesis-granting institution."""

    name: str
    city: str | None = None


class PublishedDate(BaseModel):
    """Calendar date with year, month or day precision."""

    year: int | None = None
    month: int | None = None
    day: int | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(BaseModel):
    """Read-only view of a repository document's bibliographic metadata."""

    id: int
    type: str | None = None
    language: str | None = None
    main_title: str | None = None
    main_abstract: str | None = None
    published_date: PublishedDate | None = None
    published_year: int | None = None
    publication_state: str | None = None
    authors: list[Person] = Field(default_factory=list)
    editors: list[Person] = Field(default_factory=list)
    publisher_name: str | None = None
    publisher_place: str | None = None
    thesis_publishers: list[Institute] = Field(default_factory=list)
    parent_titles: list[str] = Field(default_factory=list)
    edition: str | None = None
    volume: str | None = None
    issue: str | None = None
    page_first: int | str | None = None
    page_last: int | str | None = None
    page_number: int | str | None = None
    identifiers: list[Identifier] = Field(default_factory=list)
    licences: list[Licence] = Field(default_factory=list)
    collections: list[Collection] = Field(default_factory=list)
    server_date_modified: datetime = Field(default_factory=_utcnow)

    def identifiers_of(self, identifier_type: str) -> list[str]:
        return [item.value for item in self.identifiers if item.type == identifier_type and item.value]

    @property
    def main_licence(self) -> Licence | None:
        # First licence in document order; there is no rule for picking among several.
        return self.licences[0] if self.licences else None


class DocumentFile(BaseModel):
    """A file belonging to a document, e.g. the full-text PDF."""

    document_id: int
    path_name: str
    path: Path
