"""Template-based PDF generation for document covers."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

import structlog

from repocover.models import Document
from repocover.settings import Settings
from repocover.utils import default_temp_name, is_writable_dir
from .csl import CslMetadataGenerator
from .metadata import GeneralMetadataGenerator
from .pandoc import ConversionEngine, PandocEngine

logger = structlog.get_logger(__name__)


class TemplateFormat(str, Enum):
    MARKDOWN = "markdown"


class PdfEngine(str, Enum):
    XELATEX = "xelatex"


TEMPLATE_SUFFIXES: dict[str, tuple[TemplateFormat, PdfEngine]] = {
    ".md": (TemplateFormat.MARKDOWN, PdfEngine.XELATEX),
}


class PdfGenerator(Protocol):
    """Renders a cover PDF for a document."""

    template_path: Path

    def generate_file(self, document: Document, temp_filename: str = "") -> Path | None:
        ...

    def generate(self, document: Document, temp_filename: str = "") -> bytes | None:
        ...


class MarkdownPdfGenerator:
    """Renders a markdown template to PDF with pandoc and XeTeX.

    The template is converted twice. First pandoc fills the template's
    placeholders from the general metadata and the CSL bibliography, which
    yields a plain markdown file. Then pandoc formats the citation with
    citeproc and typesets the markdown with xelatex, which allows templates
    to use Unicode characters and system fonts.

    Intermediate files are named after ``temp_filename`` and removed once the
    PDF exists (or the run failed) unless ``keep_temp_files`` is set.
    """

    def __init__(
        self,
        template_path: Path,
        temp_dir: Path,
        *,
        engine: ConversionEngine | None = None,
        metadata_generator: GeneralMetadataGenerator | None = None,
        csl_generator: CslMetadataGenerator | None = None,
        licence_logos_dir: Path | None = None,
        keep_temp_files: bool = False,
    ) -> None:
        self.template_path = template_path
        self._temp_dir = temp_dir
        self._engine = engine or PandocEngine()
        self._licence_logos_dir = licence_logos_dir
        self._metadata = metadata_generator or GeneralMetadataGenerator(
            temp_dir, licence_logos_dir=licence_logos_dir
        )
        self._csl = csl_generator or CslMetadataGenerator(temp_dir)
        self._keep_temp_files = keep_temp_files

    @property
    def template_base_dir(self) -> Path:
        return self.template_path.parent

    def generate(self, document: Document, temp_filename: str = "") -> bytes | None:
        pdf_path = self.generate_file(document, temp_filename)
        if pdf_path is None:
            return None
        try:
            return pdf_path.read_bytes()
        except OSError as exc:
            logger.warning("cover.pdf_unreadable", path=str(pdf_path), error=str(exc))
            return None

    def generate_file(self, document: Document, temp_filename: str = "") -> Path | None:
        if not self.template_path.is_file():
            logger.warning("cover.template_missing", template=str(self.template_path))
            return None
        if not is_writable_dir(self._temp_dir):
            logger.warning("cover.temp_dir_unwritable", temp_dir=str(self._temp_dir))
            return None

        temp_filename = temp_filename or default_temp_name(document.id)
        markdown_path = self._temp_dir / f"{temp_filename}.md"
        pdf_path = self._temp_dir / f"{temp_filename}.pdf"
        intermediates: list[Path] = [markdown_path]
        succeeded = False

        log = logger.bind(document_id=document.id, template=str(self.template_path))
        try:
            metadata_path = self._metadata.generate_file(document, temp_filename)
            if metadata_path is None:
                return None
            intermediates.append(metadata_path)

            csl_path = self._csl.generate_file(document, temp_filename)
            if csl_path is None:
                return None
            intermediates.append(csl_path)

            if not self._convert(
                self.template_path,
                to="markdown",
                output=markdown_path,
                extra_args=self._markdown_args(metadata_path, csl_path),
            ):
                log.warning("cover.markdown_failed")
                return None

            if not self._convert(
                markdown_path,
                to="pdf",
                output=pdf_path,
                extra_args=self._pdf_args(csl_path),
            ):
                log.warning("cover.pdf_failed")
                return None

            succeeded = True
            log.info("cover.generated", path=str(pdf_path))
            return pdf_path
        finally:
            if not succeeded:
                intermediates.append(pdf_path)
            self._cleanup(intermediates)

    def _convert(self, source: Path, *, to: str, output: Path, extra_args: list[str]) -> bool:
        try:
            return self._engine.convert(source, to=to, output=output, extra_args=extra_args)
        except (OSError, RuntimeError) as exc:
            logger.warning("cover.engine_error", source=str(source), to=to, error=str(exc))
            return False

    def _markdown_args(self, metadata_path: Path, csl_path: Path) -> list[str]:
        # The template file is both the input file and the pandoc template.
        args = [
            "--wrap", "preserve",
            "--metadata-file", str(metadata_path),
            "--bibliography", str(csl_path),
            "--template", str(self.template_path),
            "--variable", f"images-basepath:{_with_separator(self.template_base_dir)}",
        ]
        if self._licence_logos_dir is not None:
            args += ["--variable", f"licence-logo-basepath:{_with_separator(self._licence_logos_dir)}"]
        return args

    def _pdf_args(self, csl_path: Path) -> list[str]:
        # --resource-path lets pandoc find the citation styles next to the template.
        return [
            "--resource-path", str(self.template_base_dir),
            "--bibliography", str(csl_path),
            "--citeproc",
            "--pdf-engine", PdfEngine.XELATEX.value,
        ]

    def _cleanup(self, paths: list[Path]) -> None:
        if self._keep_temp_files:
            return
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("cover.cleanup_failed", path=str(path), error=str(exc))


def _with_separator(path: Path) -> str:
    text = str(path)
    return text if text.endswith(os.sep) else text + os.sep


GeneratorBuilder = Callable[..., PdfGenerator]


class PdfGeneratorFactory:
    """Picks a PDF generator for a template by its (format, engine) pair."""

    _builders: dict[tuple[TemplateFormat, PdfEngine], GeneratorBuilder] = {
        (TemplateFormat.MARKDOWN, PdfEngine.XELATEX): MarkdownPdfGenerator,
    }

    def __init__(self, settings: Settings, engine: ConversionEngine | None = None) -> None:
        self._settings = settings
        self._engine = engine

    @staticmethod
    def template_kind(template_path: Path) -> tuple[TemplateFormat, PdfEngine] | None:
        return TEMPLATE_SUFFIXES.get(template_path.suffix.lower())

    def create(self, template_path: Path) -> PdfGenerator | None:
        kind = self.template_kind(template_path)
        builder = self._builders.get(kind) if kind else None
        if builder is None:
            logger.warning("cover.generator_unsupported", template=str(template_path))
            return None
        settings = self._settings
        return builder(
            template_path,
            settings.temp_dir,
            engine=self._engine,
            metadata_generator=GeneralMetadataGenerator(
                settings.temp_dir,
                config=settings.repository,
                licence_logos_dir=settings.licence_logos_dir,
            ),
            csl_generator=CslMetadataGenerator(settings.temp_dir),
            licence_logos_dir=settings.licence_logos_dir,
            keep_temp_files=settings.keep_temp_files,
        )
