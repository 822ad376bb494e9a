from pathlib import Path

from conftest import StubEngine, write_pdf
from fastapi.testclient import TestClient
from pypdf import PdfReader

from repocover.catalog import Catalog
from repocover.settings import Settings
from repocover.web.app import create_app


def _settings(tmp_path: Path, *, with_template: bool) -> Settings:
    templates_dir = tmp_path / "covers"
    templates_dir.mkdir()
    if with_template:
        (templates_dir / "demo-cover.md").write_text("# $title$\n")
    settings = Settings(
        workspace_dir=tmp_path / "ws",
        templates_dir=templates_dir,
        default_template="demo-cover.md",
    )
    settings.ensure_directories()
    write_pdf(tmp_path / "article.pdf", pages=2)
    Catalog(settings).import_payload(
        {
            "documents": [
                {
                    "id": 5,
                    "type": "article",
                    "main_title": "Web Article",
                    "server_date_modified": "2020-01-01T00:00:00+00:00",
                    "files": [{"path_name": "article.pdf", "path": str(tmp_path / "article.pdf")}],
                }
            ]
        }
    )
    return settings


def test_health(tmp_path: Path) -> None:
    client = TestClient(create_app(_settings(tmp_path, with_template=False), engine=StubEngine()))
    assert client.get("/health").json() == {"status": "ok"}


def test_download_serves_file_with_cover(tmp_path: Path) -> None:
    settings = _settings(tmp_path, with_template=True)
    client = TestClient(create_app(settings, engine=StubEngine()))

    response = client.get("/documents/5/files/article.pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    served = tmp_path / "served.pdf"
    served.write_bytes(response.content)
    assert len(PdfReader(str(served)).pages) == 3
    assert (settings.filecache_dir / "5-article.pdf").is_file()


def test_download_without_template_serves_original(tmp_path: Path) -> None:
    client = TestClient(create_app(_settings(tmp_path, with_template=False), engine=StubEngine()))

    response = client.get("/documents/5/files/article.pdf")

    assert response.status_code == 200
    assert response.content == (tmp_path / "article.pdf").read_bytes()


def test_unknown_document_or_file(tmp_path: Path) -> None:
    client = TestClient(create_app(_settings(tmp_path, with_template=False), engine=StubEngine()))

    assert client.get("/documents/6/files/article.pdf").status_code == 404
    assert client.get("/documents/5/files/other.pdf").status_code == 404
