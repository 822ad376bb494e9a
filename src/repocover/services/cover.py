"""Cover generation for document files, with a file cache of merged PDFs."""

from __future__ import annotations

import threading
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Callable, Iterator
from uuid import uuid4

import structlog

from repocover.models import Document, DocumentFile
from repocover.settings import Settings
from .merge import MergeError, merge_pdfs
from .pandoc import ConversionEngine
from .pdf_generator import PdfGenerator, PdfGeneratorFactory
from .templates import CollectionLookup, TemplateResolver

logger = structlog.get_logger(__name__)

Merger = Callable[[Path, Path], bytes]


class CoverGenerator:
    """Produces PDF copies of document files with a generated cover page.

    Merged copies live in the filecache directory as
    ``{document_id}-{file name}`` and are served until the document is
    modified after the copy was written. Whenever a cover cannot be
    produced, ``process_file`` returns the original file's path.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        collections: CollectionLookup | None = None,
        engine: ConversionEngine | None = None,
        resolver: TemplateResolver | None = None,
        factory: PdfGeneratorFactory | None = None,
        merger: Merger = merge_pdfs,
    ) -> None:
        self._settings = settings
        self._resolver = resolver or TemplateResolver(
            settings.resolved_templates_dir,
            settings.collection_templates,
            collections=collections,
            default_template=settings.default_template,
        )
        self._factory = factory or PdfGeneratorFactory(settings, engine=engine)
        self._merger = merger
        # Cache path -> (lock, number of callers holding or waiting for it).
        self._locks: dict[Path, tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    @property
    def filecache_dir(self) -> Path:
        return self._settings.filecache_dir

    def cached_filename(self, file: DocumentFile) -> str:
        return f"{file.document_id}-{file.path_name}"

    def cached_file_path(self, file: DocumentFile) -> Path:
        return self.filecache_dir / self.cached_filename(file)

    def is_cache_valid(self, document: Document, cached_path: Path) -> bool:
        """True if the cached copy was written no earlier than the document's last change."""
        try:
            cached_mtime = cached_path.stat().st_mtime
        except OSError:
            return False
        return cached_mtime >= document.server_date_modified.timestamp()

    def process_file(self, document: Document, file: DocumentFile) -> Path:
        """Return the path of a cached copy of ``file`` with a cover, or the original path."""
        cached_path = self.cached_file_path(file)
        if self.is_cache_valid(document, cached_path):
            logger.debug("cover.cache_hit", document_id=document.id, path=str(cached_path))
            return cached_path

        with self._locked(cached_path):
            # Another request may have rendered this copy while we waited.
            if self.is_cache_valid(document, cached_path):
                logger.debug("cover.cache_hit", document_id=document.id, path=str(cached_path))
                return cached_path
            return self._render_cached_copy(document, file, cached_path)

    def process_document(self, document: Document, template: str | Path | None = None) -> Path | None:
        """Render only the cover for ``document``; None if that fails."""
        generator = self.pdf_generator(document, template)
        if generator is None:
            return None
        return generator.generate_file(document, str(document.id))

    def pdf_generator(self, document: Document, template: str | Path | None = None) -> PdfGenerator | None:
        template_path = self._resolver.resolve(document, template)
        if template_path is None:
            return None
        return self._factory.create(template_path)

    def _render_cached_copy(self, document: Document, file: DocumentFile, cached_path: Path) -> Path:
        original = file.path
        log = logger.bind(document_id=document.id, file=file.path_name)

        generator = self.pdf_generator(document)
        if generator is None:
            log.info("cover.skipped", reason="no_template")
            return original

        cover_path = generator.generate_file(document, Path(self.cached_filename(file)).stem)
        if cover_path is None:
            log.warning("cover.render_failed")
            return original

        try:
            try:
                merged = self._merger(cover_path, original)
            except MergeError as exc:
                log.warning("cover.merge_failed", error=str(exc))
                return original
            if not self._write_atomic(merged, cached_path):
                return original
        finally:
            self._discard(cover_path)

        log.info("cover.cached", path=str(cached_path))
        return cached_path

    def _write_atomic(self, data: bytes, target: Path) -> bool:
        partial = target.with_name(f".{target.name}.{uuid4().hex}.part")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            partial.write_bytes(data)
            partial.replace(target)
        except OSError as exc:
            logger.warning("cover.cache_write_failed", path=str(target), error=str(exc))
            with suppress(OSError):
                partial.unlink(missing_ok=True)
            return False
        return True

    def _discard(self, cover_path: Path) -> None:
        if self._settings.keep_temp_files:
            return
        try:
            cover_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("cover.cleanup_failed", path=str(cover_path), error=str(exc))

    @contextmanager
    def _locked(self, key: Path) -> Iterator[None]:
        with self._locks_guard:
            lock, holders = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, holders + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                lock, holders = self._locks[key]
                if holders == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, holders - 1)
