"""Request validation as plain functions, shared by the single-file and batch endpoints."""
from collections import Counter
from typing import Iterable, Optional

from converter.config import (
    MAX_AUDIO_FILES,
    MAX_AUDIO_SIZE_MB,
    MAX_DOCUMENT_FILES,
    MAX_DOCUMENT_SIZE_MB,
    MAX_FILES_PER_REQUEST,
    MAX_IMAGE_FILES,
    MAX_IMAGE_SIZE_MB,
    MAX_VIDEO_FILES,
    MAX_VIDEO_SIZE_MB,
)
from converter.conversion.formats import (
    ALL_TARGET_FORMATS,
    extension_of,
    get_category,
    normalize_format,
    supported_formats,
)
from converter.conversion.models import FormatCategory
from converter.errors import LimitExceeded, ValidationError

MB = 1024 * 1024

FILE_SIZE_LIMITS: dict[FormatCategory, int] = {
    FormatCategory.IMAGE: MAX_IMAGE_SIZE_MB * MB,
    FormatCategory.VIDEO: MAX_VIDEO_SIZE_MB * MB,
    FormatCategory.AUDIO: MAX_AUDIO_SIZE_MB * MB,
    FormatCategory.DOCUMENT: MAX_DOCUMENT_SIZE_MB * MB,
}

FILE_COUNT_LIMITS: dict[FormatCategory, int] = {
    FormatCategory.IMAGE: MAX_IMAGE_FILES,
    FormatCategory.VIDEO: MAX_VIDEO_FILES,
    FormatCategory.AUDIO: MAX_AUDIO_FILES,
    FormatCategory.DOCUMENT: MAX_DOCUMENT_FILES,
}


def limits() -> dict:
    out: dict = {
        category.value: {
            "max_size_bytes": FILE_SIZE_LIMITS[category],
            "max_size_mb": FILE_SIZE_LIMITS[category] // MB,
            "max_files": FILE_COUNT_LIMITS[category],
        }
        for category in FormatCategory
    }
    out["max_files_per_request"] = MAX_FILES_PER_REQUEST
    return out


def validate_file_type(filename: Optional[str]) -> FormatCategory:
    if not filename:
        raise ValidationError("No file provided")
    # only a real extension counts; a file named "docx" has none
    category = get_category(extension_of(filename))
    if category is None:
        raise ValidationError(
            f"Unsupported file type: {filename}",
            reason="unsupported_file_type",
            supportedTypes=supported_formats(),
        )
    return category


def validate_file_size(filename: str, size: Optional[int], category: FormatCategory) -> None:
    """size may be None when the client did not declare it; the upload loop checks again."""
    limit = FILE_SIZE_LIMITS[category]
    if size is not None and size > limit:
        raise size_exceeded(filename, category)


def size_exceeded(filename: str, category: FormatCategory) -> LimitExceeded:
    return LimitExceeded(
        f"File too large for {category.value} category: {filename}. "
        f"Maximum size: {FILE_SIZE_LIMITS[category] // MB}MB",
        reason="file_too_large",
        category=category.value,
    )


def validate_target_format(target_format: Optional[str]) -> str:
    target = normalize_format(target_format or "")
    if not target:
        raise ValidationError("Target format is required")
    if target not in ALL_TARGET_FORMATS:
        raise ValidationError(
            f"Unsupported target format: {target_format}",
            reason="unsupported_target_format",
            supportedFormats=supported_formats(),
        )
    return target


def validate_file_count(categories: Iterable[FormatCategory], total: Optional[int] = None) -> None:
    """Per-category count limits plus the per-request cap.

    total: number of files in the request when it includes files that could not be classified.
    """
    counts = Counter(categories)
    if total is None:
        total = sum(counts.values())
    if total == 0:
        raise ValidationError("No files provided")
    if total > MAX_FILES_PER_REQUEST:
        raise LimitExceeded(
            f"Too many files. Maximum allowed: {MAX_FILES_PER_REQUEST}",
            reason="too_many_files",
        )
    for category, count in counts.items():
        if count > FILE_COUNT_LIMITS[category]:
            raise LimitExceeded(
                f"Too many {category.value} files. Maximum allowed: {FILE_COUNT_LIMITS[category]}",
                reason="too_many_files",
                category=category.value,
            )


def validate_upload(filename: Optional[str], size: Optional[int]) -> FormatCategory:
    """Type then size for one uploaded file. Returns its category."""
    category = validate_file_type(filename)
    validate_file_size(filename, size, category)
    return category
