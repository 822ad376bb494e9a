"""FastAPI delivery endpoint that serves document files with covers."""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.responses import FileResponse

from repocover.catalog import Catalog, DocumentNotFound, FileNotInCatalog
from repocover.services import ConversionEngine, CoverGenerator
from repocover.settings import Settings, get_settings


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[ConversionEngine] = None,
) -> FastAPI:
    """Factory used by uvicorn."""
    settings = settings or get_settings()
    settings.ensure_directories()
    app = FastAPI(title="repocover")
    catalog = Catalog(settings)
    covers = CoverGenerator(settings, collections=catalog, engine=engine)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/documents/{document_id}/files/{path_name}")
    async def download(document_id: int, path_name: str) -> FileResponse:
        try:
            document = await asyncio.to_thread(catalog.get_document, document_id)
            file = await asyncio.to_thread(catalog.get_file, document_id, path_name)
        except (DocumentNotFound, FileNotInCatalog) as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        if not file.path.is_file():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File is missing.")
        served = await asyncio.to_thread(covers.process_file, document, file)
        return FileResponse(served, media_type="application/pdf", filename=file.path_name)

    return app
