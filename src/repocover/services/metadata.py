"""General (non-citation) template metadata for a document."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from urllib.parse import urlparse

import structlog

from repocover.models import Document, Licence
from repocover.settings import DEFAULT_REPOSITORY_OPTIONS, RepositoryConfig
from repocover.utils import default_temp_name, extended_date_string, is_writable_dir, persons_string

logger = structlog.get_logger(__name__)


class GeneralMetadataGenerator:
    """Builds the flat key/value map used to fill template placeholders."""

    def __init__(
        self,
        temp_dir: Path,
        config: RepositoryConfig | None = None,
        licence_logos_dir: Path | None = None,
        config_options: Sequence[str] = DEFAULT_REPOSITORY_OPTIONS,
    ) -> None:
        self._temp_dir = temp_dir
        self._config = config or RepositoryConfig()
        self._licence_logos_dir = licence_logos_dir
        self._config_options = tuple(config_options)

    def metadata(self, document: Document) -> dict[str, str]:
        values: dict[str, str] = {}

        for option in self._config_options:
            value = self._config.get(option)
            if value in (None, ""):
                continue
            values[f"config-{option.replace('.', '-')}"] = str(value)

        date_string = extended_date_string(document.published_date)
        if date_string is not None:
            values["date-meta"] = date_string

        persons = document.authors or document.editors
        names = persons_string(persons)
        if names:
            values["author-meta"] = names

        if document.main_title:
            values["title"] = document.main_title
        if document.main_abstract:
            values["abstract"] = document.main_abstract
        if document.language:
            values["lang"] = document.language

        licence = document.main_licence
        if licence is not None:
            values.update(self.licence_metadata(licence))

        return values

    def licence_metadata(self, licence: Licence) -> dict[str, str]:
        values: dict[str, str] = {}
        if licence.name:
            values["licence-title"] = licence.name
        if licence.long_name:
            values["licence-text"] = licence.long_name
        if licence.link_licence:
            values["licence-url"] = licence.link_licence
        logo_name = self.licence_logo_name(licence)
        if logo_name:
            values["licence-logo-name"] = logo_name
        return values

    def licence_logo_name(self, licence: Licence) -> str | None:
        """Return the logo's path below the licence logos directory if that file exists."""
        if not licence.link_logo:
            return None
        name = urlparse(licence.link_logo).path.lstrip("/")
        if not name:
            return None
        if self._licence_logos_dir is None:
            logger.info("metadata.licence_logos_dir_unset", logo=name)
            return None
        if not (self._licence_logos_dir / name).is_file():
            logger.warning("metadata.licence_logo_missing", logo=name, directory=str(self._licence_logos_dir))
            return None
        return name

    def generate_file(self, document: Document, temp_filename: str = "") -> Path | None:
        """Write the metadata to ``{temp_dir}/{temp_filename}-meta.json``; None on failure."""
        if not is_writable_dir(self._temp_dir):
            logger.warning("metadata.temp_dir_unwritable", temp_dir=str(self._temp_dir))
            return None
        temp_filename = temp_filename or default_temp_name(document.id)
        target = self._temp_dir / f"{temp_filename}-meta.json"
        try:
            target.write_text(json.dumps(self.metadata(document), ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            logger.warning("metadata.write_failed", path=str(target), error=str(exc))
            return None
        return target
