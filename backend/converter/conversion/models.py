"""Conversion request/result models."""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class FormatCategory(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"


@dataclass(frozen=True)
class ConversionRequest:
    """One uploaded file and the extension it should become. Formats are lowercase, no dot."""

    source_path: Path
    source_format: str
    target_format: str
    original_filename: str


@dataclass(frozen=True)
class ConversionResult:
    output_path: Path
    output_filename: str
    mime_type: str
    strategy: str = ""


@dataclass(frozen=True)
class StrategyOutcome:
    strategy: str
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchItemError:
    filename: str
    message: str

    def __str__(self) -> str:
        return f"{self.filename}: {self.message}"


@dataclass
class BatchResult:
    """Outcome of a multi-file request: what converted and what did not."""

    converted: list[tuple[str, ConversionResult]] = field(default_factory=list)
    errors: list[BatchItemError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.converted)
