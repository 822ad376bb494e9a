"""Resolution of the cover template that applies to a document."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import structlog

from repocover.models import Collection, Document

logger = structlog.get_logger(__name__)

MAX_COLLECTION_DEPTH = 64


class CollectionLookup(Protocol):
    """Read-only access to the collection tree."""

    def get_by_id(self, collection_id: int) -> Collection | None:
        ...


class TemplateResolver:
    """Finds the template file for a document.

    Precedence: an explicitly requested template (absolute path, then a name
    relative to the templates directory), the template configured for the
    first of the document's collections that has one (walking up to the
    root), and finally the default template. Template ids are plain names or
    paths relative to the templates directory.
    """

    def __init__(
        self,
        templates_dir: Path,
        collection_templates: Mapping[int, str],
        collections: CollectionLookup | None = None,
        default_template: str | None = None,
    ) -> None:
        self._templates_dir = templates_dir
        self._collection_templates = dict(collection_templates)
        self._collections = collections
        self._default_template = default_template

    @property
    def templates_dir(self) -> Path:
        return self._templates_dir

    def resolve(self, document: Document, requested: str | Path | None = None) -> Path | None:
        """Return the absolute path of an existing template file, or None."""
        if requested:
            path = self._requested_template_path(requested)
            if path is not None:
                return path
            logger.info("template.requested_missing", document_id=document.id, template=str(requested))

        name = self.template_name(document)
        if name is not None:
            path = self._existing_path(name)
            if path is not None:
                return path
            logger.warning("template.collection_template_missing", document_id=document.id, template=name)

        if self._default_template:
            path = self._existing_path(self._default_template)
            if path is not None:
                return path
            logger.warning("template.default_missing", template=self._default_template)

        logger.info("template.none", document_id=document.id)
        return None

    def template_name(self, document: Document) -> str | None:
        """Return the template configured for the document's collections, if any."""
        for collection in document.collections:
            name = self.template_name_for_collection(collection)
            if name is not None:
                return name
        return None

    def template_name_for_collection(self, collection: Collection) -> str | None:
        """Walk from the collection up to its root and return the first configured template."""
        current: Collection | None = collection
        visited: set[int] = set()
        depth = 0
        while current is not None:
            if current.id in visited or depth >= MAX_COLLECTION_DEPTH:
                logger.warning("template.collection_cycle", collection_id=collection.id, depth=depth)
                return None
            visited.add(current.id)
            template = self._collection_templates.get(current.id)
            if template:
                return template
            if current.parent_id is None or self._collections is None:
                return None
            current = self._collections.get_by_id(current.parent_id)
            depth += 1
        return None

    def _requested_template_path(self, requested: str | Path) -> Path | None:
        candidate = Path(requested)
        if candidate.is_absolute() and candidate.is_file():
            return candidate
        return self._existing_path(str(requested))

    def _existing_path(self, name: str) -> Path | None:
        path = self._templates_dir / name
        if path.is_file():
            return path.resolve()
        return None
