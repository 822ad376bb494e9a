"""Concatenation of PDF files."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

from pypdf import PdfWriter


class MergeError(RuntimeError):
    """Raised when PDFs cannot be merged."""


def merge_pdfs(first: Path, second: Path) -> bytes:
    """Return a PDF containing all pages of ``first`` followed by all pages of ``second``."""
    writer = PdfWriter()
    buffer = BytesIO()
    try:
        for path in (first, second):
            writer.append(str(path))
        writer.write(buffer)
    except Exception as exc:  # pypdf raises assorted errors besides PdfReadError on damaged files
        raise MergeError(f"Could not merge {first} and {second}: {exc}") from exc
    finally:
        writer.close()
    return buffer.getvalue()
