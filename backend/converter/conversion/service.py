"""Conversion service: classify, dispatch to the image or document pipeline, run batches."""
import logging
import time
from pathlib import Path
from typing import Optional, Sequence

from converter.conversion.document import DocumentPipeline
from converter.conversion.formats import (
    extension_of,
    is_document_format,
    is_image_format,
    mime_type_for,
    normalize_format,
)
from converter.conversion.image import ImagePipeline
from converter.conversion.models import BatchItemError, BatchResult, ConversionRequest, ConversionResult
from converter.conversion.workspace import Workspace
from converter.errors import ConverterError, UnsupportedConversion

logger = logging.getLogger("converter.service")

IMAGE = "image"
DOCUMENT = "document"


def dispatch(source_format: str, target_format: str) -> str:
    """Pick the pipeline for a pair. Pure; raises UnsupportedConversion when neither applies."""
    if is_image_format(source_format) or is_image_format(target_format):
        return IMAGE
    if is_document_format(source_format) or is_document_format(target_format):
        return DOCUMENT
    raise UnsupportedConversion(source_format, target_format)


def build_request(source_path: Path, original_filename: str, target_format: str) -> ConversionRequest:
    return ConversionRequest(
        source_path=Path(source_path),
        source_format=extension_of(original_filename),
        target_format=normalize_format(target_format),
        original_filename=original_filename,
    )


def output_filename_for(original_filename: str, target_format: str) -> str:
    """'Report.final.docx' + 'pdf' -> 'Report.final.pdf'."""
    stem = Path(original_filename or "").stem or "converted"
    return f"{stem}.{target_format}"


class ConversionService:
    """Routes a ConversionRequest to the matching pipeline and writes the result into a workspace."""

    def __init__(
        self,
        image_pipeline: Optional[ImagePipeline] = None,
        document_pipeline: Optional[DocumentPipeline] = None,
    ):
        self.image_pipeline = image_pipeline or ImagePipeline()
        self.document_pipeline = document_pipeline or DocumentPipeline()
        logger.info(
            "ConversionService initialized (image: %s; document: %s)",
            ", ".join(s.name for s in self.image_pipeline.strategies),
            ", ".join(s.name for s in self.document_pipeline.strategies),
        )

    def convert(self, request: ConversionRequest, workspace: Workspace) -> ConversionResult:
        """Convert one file. The output lives in workspace until the caller cleans it up."""
        src, target = request.source_path, request.target_format
        if not src.is_file():
            raise ConverterError("Uploaded file was not found on server")
        pipeline = dispatch(request.source_format, target)
        output_path = workspace.new_path(target)
        started = time.monotonic()
        try:
            if pipeline == IMAGE:
                strategy, _ = self.image_pipeline.convert(src, output_path, request.source_format, target)
            else:
                strategy = self.document_pipeline.convert(src, output_path, request.source_format, target)
        except Exception:
            workspace.remove(output_path)
            raise
        logger.info(
            "Converted %s (%s -> %s) via %s in %.2fs",
            request.original_filename, request.source_format, target, strategy, time.monotonic() - started,
        )
        return ConversionResult(
            output_path=output_path,
            output_filename=output_filename_for(request.original_filename, target),
            mime_type=mime_type_for(target),
            strategy=strategy,
        )

    def convert_many(
        self,
        requests: Sequence[ConversionRequest],
        workspace: Workspace,
        rejected: Optional[Sequence[BatchItemError]] = None,
    ) -> BatchResult:
        """Convert sequentially. A failing file becomes an error entry; it never aborts the batch.

        rejected: items already refused by validation, reported alongside conversion failures.
        """
        batch = BatchResult(errors=list(rejected or []))
        for request in requests:
            try:
                result = self.convert(request, workspace)
            except ConverterError as e:
                logger.warning("Batch item %s failed: %s", request.original_filename, e.message)
                batch.errors.append(BatchItemError(request.original_filename, e.message))
                continue
            except Exception as e:
                logger.exception("Batch item %s failed: %s", request.original_filename, e)
                batch.errors.append(BatchItemError(request.original_filename, str(e) or "Conversion failed"))
                continue
            finally:
                workspace.remove(request.source_path)
            batch.converted.append((request.original_filename, result))
        logger.info("Batch done: %d converted, %d failed", len(batch.converted), len(batch.errors))
        return batch


# Singleton
_conversion_service: Optional[ConversionService] = None


def get_conversion_service() -> ConversionService:
    global _conversion_service
    if _conversion_service is None:
        _conversion_service = ConversionService()
    return _conversion_service
