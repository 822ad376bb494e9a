"""Service abstractions for repocover."""

from .cover import CoverGenerator
from .csl import CSL_TYPES, CslDate, CslMetadataGenerator, CslName, CslRecord
from .merge import MergeError, merge_pdfs
from .metadata import GeneralMetadataGenerator
from .pandoc import ConversionEngine, PandocEngine
from .pdf_generator import (
    MarkdownPdfGenerator,
    PdfEngine,
    PdfGenerator,
    PdfGeneratorFactory,
    TemplateFormat,
)
from .templates import CollectionLookup, TemplateResolver

__all__ = [
    "CoverGenerator",
    "CSL_TYPES",
    "CslDate",
    "CslMetadataGenerator",
    "CslName",
    "CslRecord",
    "MergeError",
    "merge_pdfs",
    "GeneralMetadataGenerator",
    "ConversionEngine",
    "PandocEngine",
    "MarkdownPdfGenerator",
    "PdfEngine",
    "PdfGenerator",
    "PdfGeneratorFactory",
    "TemplateFormat",
    "CollectionLookup",
    "TemplateResolver",
]
