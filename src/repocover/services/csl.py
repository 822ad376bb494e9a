"""Citation metadata in CSL JSON format.

See https://github.com/citation-style-language/schema#csl-json-schema and
https://citeproc-js.readthedocs.io/en/latest/csl-json/markup.html
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

from repocover.models import Document, Person
from repocover.utils import default_temp_name, extended_date_string, is_writable_dir

logger = structlog.get_logger(__name__)

# Some document type -> CSL type mappings are only approximate.
CSL_TYPES: dict[str, str] = {
    "article": "article-journal",
    "bachelorthesis": "thesis",
    "book": "book",
    "bookpart": "chapter",
    "conferenceobject": "paper-conference",
    "contributiontoperiodical": "article",
    "coursematerial": "document",
    "diplom": "thesis",
    "doctoralthesis": "thesis",
    "examen": "thesis",
    "habilitation": "thesis",
    "image": "graphic",
    "lecture": "speech",
    "magister": "thesis",
    "masterthesis": "thesis",
    "movingimage": "motion_picture",
    "other": "document",
    "periodical": "periodical",
    "periodicalpart": "collection",
    "preprint": "manuscript",
    "report": "report",
    "review": "review",
    "sound": "song",
    "studythesis": "thesis",
    "workingpaper": "article",
}

# Types describing a part within a container (journal, book, proceedings).
CONTAINER_TYPES = frozenset(
    {
        "article",
        "bookpart",
        "conferenceobject",
        "contributiontoperiodical",
        "review",
        "workingpaper",
    }
)


class CslName(BaseModel):
    given: str | None = None
    family: str | None = None


class CslDate(BaseModel):
    raw: str


class CslRecord(BaseModel):
    """One CSL JSON item; serialized with hyphenated keys and without empty fields."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    type: str | None = None
    language: str | None = None
    title: str | None = None
    abstract: str | None = None
    author: list[CslName] | None = None
    editor: list[CslName] | None = None
    issued: CslDate | None = None
    status: str | None = None
    publisher: str | None = None
    publisher_place: str | None = Field(default=None, alias="publisher-place")
    container_title: str | None = Field(default=None, alias="container-title")
    collection_title: str | None = Field(default=None, alias="collection-title")
    edition: str | None = None
    volume: str | None = None
    issue: str | None = None
    page: str | None = None
    page_first: int | str | None = Field(default=None, alias="page-first")
    number_of_pages: int | str | None = Field(default=None, alias="number-of-pages")
    DOI: str | None = None
    URL: str | None = None
    ISBN: str | None = None
    ISSN: str | None = None

    def to_csl(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def csl_type(document_type: str | None) -> str | None:
    if not document_type:
        return None
    return CSL_TYPES.get(document_type)


def csl_names(persons: list[Person]) -> list[CslName] | None:
    # The academic title is left out since it is not wanted in formatted citations.
    names = [CslName(given=person.first_name or None, family=person.last_name or None) for person in persons]
    return names or None


class CslMetadataGenerator:
    """Maps a document to a single-item CSL JSON array."""

    def __init__(self, temp_dir: Path) -> None:
        self._temp_dir = temp_dir

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    def record(self, document: Document) -> CslRecord:
        # Contributors are not mapped yet.
        record = CslRecord(
            id=str(document.id),
            type=csl_type(document.type),
            language=document.language or None,
            title=document.main_title or None,
            abstract=document.main_abstract or None,
            author=csl_names(document.authors),
            editor=csl_names(document.editors),
            status=document.publication_state or None,
            edition=document.edition or None,
            volume=document.volume or None,
            issue=document.issue or None,
            number_of_pages=document.page_number or None,
        )

        issued = extended_date_string(document.published_date)
        if issued is None and document.published_year:
            issued = str(document.published_year)
        if issued is not None:
            record.issued = CslDate(raw=issued)

        publisher_name = document.publisher_name
        publisher_place = document.publisher_place
        if not publisher_name and document.thesis_publishers:
            institute = document.thesis_publishers[0]
            publisher_name = institute.name
            publisher_place = institute.city
        record.publisher = publisher_name or None
        record.publisher_place = publisher_place or None

        if document.parent_titles:
            if document.type in CONTAINER_TYPES:
                record.container_title = document.parent_titles[0]
            else:
                record.collection_title = document.parent_titles[0]

        if document.page_first:
            pages = [document.page_first]
            if document.page_last:
                pages.append(document.page_last)
            record.page = "-".join(str(page) for page in pages)
            record.page_first = document.page_first

        for identifier_type, attribute in (("doi", "DOI"), ("url", "URL"), ("isbn", "ISBN"), ("issn", "ISSN")):
            values = document.identifiers_of(identifier_type)
            if values:
                setattr(record, attribute, values[0])

        return record

    def generate(self, document: Document) -> str:
        """Return the CSL JSON array for the document as a string."""
        return json.dumps([self.record(document).to_csl()], ensure_ascii=False)

    def generate_file(self, document: Document, temp_filename: str = "") -> Path | None:
        """Write the CSL JSON to ``{temp_dir}/{temp_filename}-csl.json``; None on failure."""
        if not is_writable_dir(self._temp_dir):
            logger.warning("csl.temp_dir_unwritable", temp_dir=str(self._temp_dir))
            return None
        temp_filename = temp_filename or default_temp_name(document.id)
        target = self._temp_dir / f"{temp_filename}-csl.json"
        try:
            target.write_text(self.generate(document), encoding="utf-8")
        except OSError as exc:
            logger.warning("csl.write_failed", path=str(target), error=str(exc))
            return None
        return target
