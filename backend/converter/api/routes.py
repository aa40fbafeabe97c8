"""API routes for upload and conversion."""
import json
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from converter.api.responses import WorkspaceFileResponse
from converter.batch import ZIP_FILENAME, create_zip
from converter.config import LIBREOFFICE_BIN, MAGICK_BIN, PANDOC_BIN, UPLOAD_CHUNK_SIZE, VIPS_BIN
from converter.conversion.formats import extension_of, supported_formats
from converter.conversion.models import BatchItemError, ConversionRequest, FormatCategory
from converter.conversion.service import build_request, get_conversion_service
from converter.conversion.tools import tool_available
from converter.conversion.workspace import Workspace
from converter.errors import ConverterError, NoFilesConverted, ValidationError
from converter.validation import (
    FILE_SIZE_LIMITS,
    limits,
    size_exceeded,
    validate_file_count,
    validate_file_size,
    validate_file_type,
    validate_target_format,
    validate_upload,
)

logger = logging.getLogger("converter.api")
router = APIRouter(prefix="/api", tags=["converter"])

# Per-file message length in X-Conversion-Errors; full tool output is only logged
ERROR_HEADER_MESSAGE_LENGTH = 200


def _error_header(errors: list[BatchItemError]) -> str:
    messages = []
    for error in errors:
        text = str(error)
        if len(text) > ERROR_HEADER_MESSAGE_LENGTH:
            text = text[: ERROR_HEADER_MESSAGE_LENGTH - 3] + "..."
        messages.append(text)
    return json.dumps(messages)


async def _save_upload(file: UploadFile, category: FormatCategory, workspace: Workspace) -> Path:
    """Stream an upload into the workspace, enforcing the category size limit while writing."""
    max_bytes = FILE_SIZE_LIMITS[category]
    dest = workspace.new_path(extension_of(file.filename))
    total = 0
    with open(dest, "wb") as f:
        while chunk := await file.read(UPLOAD_CHUNK_SIZE):
            total += len(chunk)
            if total > max_bytes:
                break
            f.write(chunk)
    if total > max_bytes:
        workspace.remove(dest)
        raise size_exceeded(file.filename, category)
    return dest


@router.get("/health")
def health():
    return {
        "status": "ok",
        "tools": {
            "imagemagick": tool_available(MAGICK_BIN),
            "libvips": tool_available(VIPS_BIN),
            "libreoffice": tool_available(LIBREOFFICE_BIN),
            "pandoc": tool_available(PANDOC_BIN),
        },
    }


@router.get("/limits")
def get_limits():
    """Return upload size and count limits per category for the client."""
    return limits()


@router.get("/supported-formats")
def get_supported_formats():
    return supported_formats()


@router.post("/convert")
async def convert(
    file: Optional[UploadFile] = File(None),
    targetFormat: Optional[str] = Form(None),
):
    """Convert a single file and stream it back as an attachment."""
    workspace = Workspace()
    handed_off = False
    try:
        if file is None or not file.filename or not targetFormat:
            raise ValidationError("File and target format are required")
        category = validate_upload(file.filename, file.size)
        target = validate_target_format(targetFormat)
        src = await _save_upload(file, category, workspace)

        request = build_request(src, file.filename, target)
        result = await run_in_threadpool(get_conversion_service().convert, request, workspace)
        workspace.remove(src)
        response = WorkspaceFileResponse(
            result.output_path,
            workspace,
            media_type=result.mime_type,
            filename=result.output_filename,
            headers={"X-Conversion-Strategy": result.strategy},
        )
        handed_off = True
        return response
    finally:
        if not handed_off:
            workspace.cleanup()


@router.post("/convert-multiple")
async def convert_multiple(
    files: Optional[list[UploadFile]] = File(None),
    targetFormat: Optional[str] = Form(None),
):
    """Convert up to MAX_FILES_PER_REQUEST files and stream a zip of the ones that converted.

    Per-file failures are listed in the X-Conversion-Errors header; the request
    fails only when nothing converted.
    """
    workspace = Workspace()
    handed_off = False
    try:
        files = [f for f in (files or []) if f is not None and f.filename]
        if not files or not targetFormat:
            raise ValidationError("Files and target format are required")
        target = validate_target_format(targetFormat)

        rejected: list[BatchItemError] = []
        accepted: list[tuple[UploadFile, FormatCategory]] = []
        for file in files:
            try:
                accepted.append((file, validate_file_type(file.filename)))
            except ConverterError as e:
                rejected.append(BatchItemError(file.filename, e.message))
        validate_file_count([c for _, c in accepted], total=len(files))

        requests: list[ConversionRequest] = []
        for file, category in accepted:
            try:
                validate_file_size(file.filename, file.size, category)
                src = await _save_upload(file, category, workspace)
            except ConverterError as e:
                rejected.append(BatchItemError(file.filename, e.message))
                continue
            requests.append(build_request(src, file.filename, target))

        batch = await run_in_threadpool(get_conversion_service().convert_many, requests, workspace, rejected)
        if not batch.ok:
            raise NoFilesConverted([str(e) for e in batch.errors])
        zip_path = await run_in_threadpool(create_zip, batch, workspace)

        headers = {}
        if batch.errors:
            headers["X-Conversion-Errors"] = _error_header(batch.errors)
        response = WorkspaceFileResponse(
            zip_path,
            workspace,
            media_type="application/zip",
            filename=ZIP_FILENAME,
            headers=headers,
        )
        handed_off = True
        return response
    finally:
        if not handed_off:
            workspace.cleanup()
