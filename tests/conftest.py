from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Sequence

import pytest
from pypdf import PdfWriter

from repocover.models import (
    Collection,
    Document,
    DocumentFile,
    Identifier,
    Licence,
    Person,
    PublishedDate,
)
from repocover.settings import Settings


def write_pdf(path: Path, pages: int = 1) -> Path:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        writer.write(handle)
    return path


class StubEngine:
    """Records conversions; writes markdown text or a one-page PDF as output."""

    def __init__(self, fail_on: str | None = None, raise_on: str | None = None) -> None:
        self.calls: list[tuple[Path, str, Path, list[str]]] = []
        self._fail_on = fail_on
        self._raise_on = raise_on

    def convert(self, source: Path, *, to: str, output: Path, extra_args: Sequence[str] = ()) -> bool:
        self.calls.append((source, to, output, list(extra_args)))
        if to == self._raise_on:
            raise RuntimeError("engine crashed")
        if to == self._fail_on:
            return False
        if to == "pdf":
            write_pdf(output)
        else:
            output.write_text("# Cover\n", encoding="utf-8")
        return True

    def calls_to(self, target: str) -> list[tuple[Path, str, Path, list[str]]]:
        return [call for call in self.calls if call[1] == target]


class StubCollections:
    def __init__(self, collections: Sequence[Collection]) -> None:
        self._by_id = {collection.id: collection for collection in collections}

    def get_by_id(self, collection_id: int) -> Collection | None:
        return self._by_id.get(collection_id)


def sample_document(**overrides) -> Document:
    values = dict(
        id=146,
        type="article",
        language="eng",
        main_title="Cover pages for everyone",
        main_abstract="An abstract.",
        published_date=PublishedDate(year=2008, month=8, day=14),
        authors=[Person(first_name="John", last_name="Doe"), Person(first_name="Jane", last_name="Roe")],
        parent_titles=["Journal of X"],
        volume="11",
        issue="2",
        page_first=3,
        page_last=4,
        identifiers=[
            Identifier(type="doi", value="10.1000/182"),
            Identifier(type="url", value="https://example.org/146"),
            Identifier(type="issn", value="1234-5679"),
        ],
        licences=[
            Licence(
                name="CC BY-NC-ND 4.0",
                long_name="Creative Commons Attribution-NonCommercial-NoDerivatives 4.0",
                link_licence="https://creativecommons.org/licenses/by-nc-nd/4.0/",
                link_logo="https://licensebuttons.net/l/by-nc-nd/4.0/88x31.png",
            )
        ],
        server_date_modified=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    values.update(overrides)
    return Document(**values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    templates_dir = tmp_path / "covers"
    templates_dir.mkdir()
    (templates_dir / "default.md").write_text("$title$\n", encoding="utf-8")
    settings = Settings(
        workspace_dir=tmp_path / "workspace",
        templates_dir=templates_dir,
        default_template="default.md",
    )
    settings.ensure_directories()
    return settings


@pytest.fixture
def engine() -> StubEngine:
    return StubEngine()


@pytest.fixture
def document() -> Document:
    return sample_document()


@pytest.fixture
def original_file(tmp_path: Path) -> DocumentFile:
    path = write_pdf(tmp_path / "files" / "article.pdf", pages=2)
    return DocumentFile(document_id=146, path_name="article.pdf", path=path)
