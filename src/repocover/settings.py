"""Configuration helpers for repocover."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_WORKSPACE_ROOT = Path.home() / "repocover-workspace"
DEFAULT_REPOSITORY_OPTIONS = ("name", "url")

logger = structlog.get_logger(__name__)


class RepositoryConfig(BaseModel):
    """Nested repository configuration addressed by dotted keys."""

    tree: dict[str, Any] = Field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at a dotted path such as ``pdf.covers.default``."""
        node: Any = self.tree
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def collection_templates(self) -> dict[int, str]:
        """Parse ``collection.<id>.cover`` entries into an id -> template name map."""
        mapping: dict[int, str] = {}
        collections = self.tree.get("collection") or {}
        if not isinstance(collections, dict):
            return mapping
        for key, entry in collections.items():
            if not isinstance(entry, dict) or not entry.get("cover"):
                continue
            try:
                mapping[int(key)] = str(entry["cover"])
            except ValueError:
                logger.warning("config.collection_id_invalid", collection=key)
        return mapping

    @classmethod
    def from_file(cls, path: Path) -> "RepositoryConfig":
        return cls(tree=json.loads(path.read_text(encoding="utf-8")))


class Settings(BaseModel):
    """Runtime configuration loaded from env vars and a JSON config file."""

    workspace_dir: Path = Field(default_factory=lambda: DEFAULT_WORKSPACE_ROOT)
    templates_dir: Path | None = None
    licence_logos_dir: Path | None = None
    default_template: str | None = None
    collection_templates: dict[int, str] = Field(default_factory=dict)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    db_filename: str = "catalog.sqlite3"
    log_level: str = "INFO"
    keep_temp_files: bool = False

    @property
    def filecache_dir(self) -> Path:
        return self.workspace_dir / "filecache"

    @property
    def temp_dir(self) -> Path:
        return self.workspace_dir / "tmp"

    @property
    def db_path(self) -> Path:
        return self.workspace_dir / self.db_filename

    @property
    def resolved_templates_dir(self) -> Path:
        return self.templates_dir or self.workspace_dir / "covers"

    def ensure_directories(self) -> None:
        """Create workspace directories if they are missing."""
        for directory in (self.workspace_dir, self.filecache_dir, self.temp_dir):
            directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_repository_config(cls, config: RepositoryConfig, **overrides: Any) -> "Settings":
        """Build settings from a config tree; keyword overrides win over tree values."""
        templates_dir = config.get("pdf.covers.path")
        logos_dir = config.get("licences.logos.path")
        values: dict[str, Any] = {
            "templates_dir": Path(templates_dir) if templates_dir else None,
            "licence_logos_dir": Path(logos_dir) if logos_dir else None,
            "default_template": config.get("pdf.covers.default") or None,
            "collection_templates": config.collection_templates(),
            "repository": config,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @classmethod
    def load(cls) -> "Settings":
        load_dotenv()
        workspace_dir = Path(os.environ.get("REPOCOVER_WORKSPACE_DIR", DEFAULT_WORKSPACE_ROOT))
        config_file = os.environ.get("REPOCOVER_CONFIG_FILE")
        config_path = Path(config_file) if config_file else workspace_dir / "config.json"
        config = RepositoryConfig()
        if config_path.is_file():
            config = RepositoryConfig.from_file(config_path)
        elif config_file:
            logger.warning("config.file_missing", path=str(config_path))
        templates_dir = os.environ.get("REPOCOVER_TEMPLATES_DIR")
        logos_dir = os.environ.get("REPOCOVER_LICENCE_LOGOS_DIR")
        return cls.from_repository_config(
            config,
            workspace_dir=workspace_dir,
            templates_dir=Path(templates_dir) if templates_dir else None,
            licence_logos_dir=Path(logos_dir) if logos_dir else None,
            default_template=os.environ.get("REPOCOVER_DEFAULT_TEMPLATE"),
            db_filename=os.environ.get("REPOCOVER_DB_FILENAME", "catalog.sqlite3"),
            log_level=os.environ.get("REPOCOVER_LOG_LEVEL", "INFO"),
            keep_temp_files=os.environ.get("REPOCOVER_KEEP_TEMP_FILES", "").lower() in {"1", "true", "yes"},
        )


def get_settings() -> Settings:
    """Convenience accessor for lazy modules."""
    settings = Settings.load()
    settings.ensure_directories()
    return settings
