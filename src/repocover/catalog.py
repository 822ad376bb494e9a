"""SQLite-backed stand-in for the host repository's documents, collections and files."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

import structlog
from sqlmodel import Field, Session, SQLModel, create_engine, select

from repocover.models import Collection, Document, DocumentFile
from repocover.settings import Settings

logger = structlog.get_logger(__name__)


class DocumentNotFound(LookupError):
    """Raised for unknown document ids."""


class FileNotInCatalog(LookupError):
    """Raised when a document has no file with the requested name."""


class DocumentRecord(SQLModel, table=True):
    """Document metadata stored as a JSON payload."""

    id: int = Field(primary_key=True)
    payload_json: str = Field(default="{}")
    collection_ids_json: str = Field(default="[]")
    server_date_modified: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CollectionRecord(SQLModel, table=True):
    id: int = Field(primary_key=True)
    parent_id: int | None = None
    name: str | None = None


class FileRecord(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    document_id: int = Field(index=True)
    path_name: str
    path: str


def create_engine_for_path(db_path: Path):
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)


@lru_cache(maxsize=4)
def get_engine(path_str: str):
    engine = create_engine_for_path(Path(path_str))
    init_db(engine)
    return engine


class Catalog:
    """Read access for cover generation plus a JSON fixture importer."""

    def __init__(self, settings: Settings) -> None:
        self._engine = get_engine(str(settings.db_path))

    def get_by_id(self, collection_id: int) -> Collection | None:
        with Session(self._engine) as session:
            record = session.get(CollectionRecord, collection_id)
            if record is None:
                return None
            return Collection(id=record.id, parent_id=record.parent_id, name=record.name)

    def get_document(self, document_id: int) -> Document:
        with Session(self._engine) as session:
            record = session.get(DocumentRecord, document_id)
            if record is None:
                raise DocumentNotFound(f"Document {document_id} does not exist.")
            payload = json.loads(record.payload_json or "{}")
            collection_ids = json.loads(record.collection_ids_json or "[]")
        collections = [self.get_by_id(collection_id) for collection_id in collection_ids]
        payload["collections"] = [collection for collection in collections if collection is not None]
        return Document.model_validate(payload)

    def list_documents(self) -> list[Document]:
        with Session(self._engine) as session:
            ids = session.exec(select(DocumentRecord.id).order_by(DocumentRecord.id)).all()
        return [self.get_document(document_id) for document_id in ids]

    def get_file(self, document_id: int, path_name: str) -> DocumentFile:
        with Session(self._engine) as session:
            statement = select(FileRecord).where(
                FileRecord.document_id == document_id, FileRecord.path_name == path_name
            )
            record = session.exec(statement).first()
        if record is None:
            raise FileNotInCatalog(f"Document {document_id} has no file named {path_name}.")
        return DocumentFile(document_id=record.document_id, path_name=record.path_name, path=Path(record.path))

    def files_for(self, document_id: int) -> list[DocumentFile]:
        with Session(self._engine) as session:
            records = session.exec(select(FileRecord).where(FileRecord.document_id == document_id)).all()
        return [
            DocumentFile(document_id=record.document_id, path_name=record.path_name, path=Path(record.path))
            for record in records
        ]

    def import_file(self, path: Path) -> tuple[int, int, int]:
        """Load a JSON fixture; relative file paths are taken relative to the fixture."""
        payload = json.loads(path.read_text(encoding="utf-8"))
        return self.import_payload(payload, base_dir=path.parent)

    def import_payload(self, payload: dict[str, Any], *, base_dir: Path | None = None) -> tuple[int, int, int]:
        """Upsert collections, documents and files; returns the three counts."""
        base_dir = base_dir or Path.cwd()
        collections = payload.get("collections") or []
        documents = payload.get("documents") or []
        file_count = 0
        with Session(self._engine) as session:
            for item in collections:
                collection = Collection.model_validate(item)
                record = session.get(CollectionRecord, collection.id) or CollectionRecord(id=collection.id)
                record.parent_id = collection.parent_id
                record.name = collection.name
                session.add(record)

            for item in documents:
                item = dict(item)
                files = item.pop("files", None) or []
                collection_ids = [
                    entry["id"] if isinstance(entry, dict) else int(entry)
                    for entry in item.pop("collections", None) or []
                ]
                document = Document.model_validate(item)
                record = session.get(DocumentRecord, document.id) or DocumentRecord(id=document.id)
                record.payload_json = document.model_dump_json(exclude={"collections"})
                record.collection_ids_json = json.dumps(collection_ids)
                record.server_date_modified = document.server_date_modified
                session.add(record)

                existing = session.exec(select(FileRecord).where(FileRecord.document_id == document.id)).all()
                for old in existing:
                    session.delete(old)
                for entry in files:
                    file_path = Path(entry["path"])
                    if not file_path.is_absolute():
                        file_path = (base_dir / file_path).resolve()
                    session.add(
                        FileRecord(
                            document_id=document.id,
                            path_name=entry.get("path_name") or file_path.name,
                            path=str(file_path),
                        )
                    )
                    file_count += 1
            session.commit()
        logger.info(
            "catalog.imported",
            collections=len(collections),
            documents=len(documents),
            files=file_count,
        )
        return len(collections), len(documents), file_count
