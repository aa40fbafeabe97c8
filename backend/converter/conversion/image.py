"""Image pipeline: Pillow first, then ImageMagick, then libvips."""
import logging
from pathlib import Path
from typing import Optional, Sequence

from PIL import Image
from pillow_heif import register_heif_opener

from converter.config import IMAGE_QUALITY, MAGICK_BIN, VIPS_BIN
from converter.conversion.formats import IMAGE_INPUT_FORMATS, IMAGE_OUTPUT_FORMATS
from converter.conversion.models import StrategyOutcome
from converter.conversion.tools import ensure_output, run_tool
from converter.errors import ConversionFailed, ToolInvocationFailure, UnsupportedConversion

logger = logging.getLogger("converter.image")

register_heif_opener()

# Target extension -> Pillow encoder name
PILLOW_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "tiff": "TIFF",
    "bmp": "BMP",
    "gif": "GIF",
}


class ImageStrategy:
    """One way of turning src into dst. run() raises ToolInvocationFailure on any failure."""

    name = "image"

    def run(self, src: Path, dst: Path, target_format: str) -> Path:
        raise NotImplementedError


class PillowStrategy(ImageStrategy):
    name = "pillow"

    def __init__(self, quality: int = IMAGE_QUALITY):
        self.quality = quality

    def _save_kwargs(self, fmt: str) -> dict:
        if fmt == "JPEG":
            return {"format": fmt, "quality": self.quality, "optimize": True}
        if fmt == "WEBP":
            return {"format": fmt, "quality": self.quality}
        if fmt == "PNG":
            return {"format": fmt, "optimize": True}
        return {"format": fmt}

    def run(self, src: Path, dst: Path, target_format: str) -> Path:
        fmt = PILLOW_FORMATS.get(target_format)
        if fmt is None:
            raise ToolInvocationFailure(self.name, f"no encoder for {target_format}")
        try:
            with Image.open(src) as img:
                if fmt in ("JPEG", "BMP") and img.mode not in ("RGB", "L"):
                    out = img.convert("RGB")
                elif img.mode not in ("RGB", "RGBA", "L", "P", "1"):
                    out = img.convert("RGBA")
                else:
                    out = img
                out.save(str(dst), **self._save_kwargs(fmt))
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            raise ToolInvocationFailure(self.name, str(e) or e.__class__.__name__)
        return ensure_output(self.name, dst)


class MagickStrategy(ImageStrategy):
    name = "imagemagick"

    def __init__(self, binary: str = MAGICK_BIN):
        self.binary = binary

    def run(self, src: Path, dst: Path, target_format: str) -> Path:
        run_tool(self.name, [self.binary, src, dst])
        return ensure_output(self.name, dst)


class VipsStrategy(ImageStrategy):
    name = "libvips"

    def __init__(self, binary: str = VIPS_BIN):
        self.binary = binary

    def run(self, src: Path, dst: Path, target_format: str) -> Path:
        run_tool(self.name, [self.binary, "copy", src, dst])
        return ensure_output(self.name, dst)


def default_strategies() -> list[ImageStrategy]:
    return [PillowStrategy(), MagickStrategy(), VipsStrategy()]


def can_convert(source_format: str, target_format: str) -> bool:
    return source_format in IMAGE_INPUT_FORMATS and target_format in IMAGE_OUTPUT_FORMATS


class ImagePipeline:
    """Try each strategy in order; the first that leaves a non-empty file at dst wins."""

    def __init__(self, strategies: Optional[Sequence[ImageStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def convert(self, src: Path, dst: Path, source_format: str, target_format: str) -> tuple[str, list[StrategyOutcome]]:
        """Returns (winning strategy name, attempts). Raises UnsupportedConversion or ConversionFailed."""
        if not can_convert(source_format, target_format):
            raise UnsupportedConversion(source_format, target_format)
        attempts: list[StrategyOutcome] = []
        for strategy in self.strategies:
            try:
                strategy.run(src, dst, target_format)
            except ToolInvocationFailure as e:
                logger.warning("%s failed for %s -> %s: %s", strategy.name, src.name, target_format, e.message)
                attempts.append(StrategyOutcome(strategy.name, False, e.message))
                continue
            attempts.append(StrategyOutcome(strategy.name, True))
            logger.info("Converted image %s -> %s via %s", src.name, dst.name, strategy.name)
            return strategy.name, attempts
        raise ConversionFailed(
            "All image conversion methods failed.",
            attempts=[a.error for a in attempts],
        )
