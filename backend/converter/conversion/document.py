"""Document pipeline: LibreOffice, Pandoc or a direct text transform, picked by table lookup."""
import logging
import shutil
from pathlib import Path
from typing import Optional, Sequence

from converter.config import LIBREOFFICE_BIN, PANDOC_BIN
from converter.conversion import text
from converter.conversion.tools import ensure_output, run_tool
from converter.errors import ConversionFailed, ToolInvocationFailure, UnsupportedConversion

logger = logging.getLogger("converter.document")


class DocumentStrategy:
    name = "document"

    def supports(self, source_format: str, target_format: str) -> bool:
        raise NotImplementedError

    def run(self, src: Path, dst: Path, source_format: str, target_format: str) -> Path:
        raise NotImplementedError


class LibreOfficeStrategy(DocumentStrategy):
    """Headless office suite for word-processor inputs."""

    name = "libreoffice"
    inputs = ("docx", "doc", "odt", "rtf")
    outputs = ("pdf", "docx", "odt", "txt", "html")

    def __init__(self, binary: str = LIBREOFFICE_BIN):
        self.binary = binary

    def supports(self, source_format: str, target_format: str) -> bool:
        return source_format in self.inputs and target_format in self.outputs

    def run(self, src: Path, dst: Path, source_format: str, target_format: str) -> Path:
        # soffice names its output after the input, so give it a directory of its own
        outdir = dst.parent / f"{dst.stem}-soffice"
        outdir.mkdir(parents=True, exist_ok=True)
        try:
            run_tool(
                self.name,
                [self.binary, "--headless", "--convert-to", target_format, "--outdir", outdir, src],
            )
            produced = outdir / f"{src.stem}.{target_format}"
            ensure_output(self.name, produced)
            produced.replace(dst)
        finally:
            shutil.rmtree(outdir, ignore_errors=True)
        return dst


class PandocStrategy(DocumentStrategy):
    """Markup converter for md/html/txt. txt<->html belongs to the direct transform."""

    name = "pandoc"
    formats = ("md", "html", "txt")
    reader_aliases = {"md": "markdown", "txt": "markdown"}
    writer_aliases = {"md": "markdown", "txt": "plain"}

    def __init__(self, binary: str = PANDOC_BIN):
        self.binary = binary

    def supports(self, source_format: str, target_format: str) -> bool:
        if source_format not in self.formats or target_format not in self.formats:
            return False
        return not text.can_convert(source_format, target_format)

    def run(self, src: Path, dst: Path, source_format: str, target_format: str) -> Path:
        reader = self.reader_aliases.get(source_format, source_format)
        writer = self.writer_aliases.get(target_format, target_format)
        run_tool(self.name, [self.binary, "-f", reader, "-t", writer, src, "-o", dst])
        return ensure_output(self.name, dst)


class TextStrategy(DocumentStrategy):
    name = "text"

    def supports(self, source_format: str, target_format: str) -> bool:
        return text.can_convert(source_format, target_format)

    def run(self, src: Path, dst: Path, source_format: str, target_format: str) -> Path:
        try:
            text.convert_text(src, dst, source_format, target_format)
        except OSError as e:
            raise ToolInvocationFailure(self.name, str(e))
        return dst


def default_strategies() -> list[DocumentStrategy]:
    return [LibreOfficeStrategy(), PandocStrategy(), TextStrategy()]


class DocumentPipeline:
    def __init__(self, strategies: Optional[Sequence[DocumentStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def select(self, source_format: str, target_format: str) -> DocumentStrategy:
        """The first strategy whose table has the pair. Raises UnsupportedConversion."""
        for strategy in self.strategies:
            if strategy.supports(source_format, target_format):
                return strategy
        raise UnsupportedConversion(source_format, target_format)

    def can_convert(self, source_format: str, target_format: str) -> bool:
        return any(s.supports(source_format, target_format) for s in self.strategies)

    def convert(self, src: Path, dst: Path, source_format: str, target_format: str) -> str:
        strategy = self.select(source_format, target_format)
        try:
            strategy.run(src, dst, source_format, target_format)
        except ToolInvocationFailure as e:
            logger.warning("%s failed for %s -> %s: %s", strategy.name, src.name, target_format, e.message)
            raise ConversionFailed(f"Document conversion failed: {e.message}", strategy=strategy.name)
        logger.info("Converted document %s -> %s via %s", src.name, dst.name, strategy.name)
        return strategy.name
