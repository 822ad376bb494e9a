"""Thin wrapper around pandoc, invoked through pypandoc."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

import structlog
from pypandoc import convert_file

logger = structlog.get_logger(__name__)


class ConversionEngine(Protocol):
    """Converts one input file into an output file; returns False on failure."""

    def convert(self, source: Path, *, to: str, output: Path, extra_args: Sequence[str] = ()) -> bool:
        ...


class PandocEngine:
    """Runs pandoc as a blocking subprocess."""

    name = "pandoc"

    def __init__(self, source_format: str = "markdown") -> None:
        self._source_format = source_format

    def convert(self, source: Path, *, to: str, output: Path, extra_args: Sequence[str] = ()) -> bool:
        logger.debug(
            "pandoc.run",
            source=str(source),
            to=to,
            output=str(output),
            args=" ".join(extra_args),
        )
        try:
            convert_file(
                str(source),
                to=to,
                format=self._source_format,
                outputfile=str(output),
                extra_args=list(extra_args),
            )
        except (OSError, RuntimeError) as exc:
            logger.warning("pandoc.failed", source=str(source), output=str(output), error=str(exc))
            return False
        if not output.is_file():
            logger.warning("pandoc.output_missing", output=str(output))
            return False
        return True
