"""Extension tables and the format classifier."""
import mimetypes
from pathlib import Path
from typing import Optional

from converter.conversion.models import FormatCategory

# Accepted input extensions per category. Order matters for get_category:
# "html"/"txt" etc. are documents only, none of the lists overlap.
SUPPORTED_TYPES: dict[FormatCategory, tuple[str, ...]] = {
    FormatCategory.DOCUMENT: ("docx", "doc", "odt", "rtf", "html", "md", "txt", "pdf"),
    FormatCategory.IMAGE: ("heic", "jpg", "jpeg", "png", "webp", "tiff", "bmp", "gif"),
    FormatCategory.VIDEO: ("mp4", "avi", "mov", "wmv", "flv", "webm", "mkv"),
    FormatCategory.AUDIO: ("mp3", "wav", "flac", "aac", "ogg", "m4a"),
}

_EXT_TO_CATEGORY: dict[str, FormatCategory] = {
    ext: category
    for category, extensions in SUPPORTED_TYPES.items()
    for ext in extensions
}

# Image pipeline
IMAGE_INPUT_FORMATS = SUPPORTED_TYPES[FormatCategory.IMAGE]
IMAGE_OUTPUT_FORMATS = (
    "apng", "bmp", "exr", "fits", "gif", "jp2", "jpeg", "jpg", "pbm", "pcx", "pgm",
    "pix", "png", "ppm", "ras", "sgi", "tga", "tiff", "webp", "xbm", "xwd",
)

# Document pipeline (what /supported-formats advertises)
DOCUMENT_INPUT_FORMATS = ("docx", "doc", "odt", "rtf", "html", "md", "txt")
DOCUMENT_OUTPUT_FORMATS = ("pdf", "txt", "html", "docx", "odt", "md")

# Every extension a client may ask for as targetFormat
ALL_TARGET_FORMATS = frozenset(_EXT_TO_CATEGORY) | frozenset(IMAGE_OUTPUT_FORMATS)

_EXT_TO_MIME = {
    "jpg": "image/jpeg", "jpeg": "image/jpeg", "png": "image/png", "apng": "image/apng",
    "gif": "image/gif", "webp": "image/webp", "bmp": "image/bmp", "tiff": "image/tiff",
    "heic": "image/heic", "jp2": "image/jp2", "tga": "image/x-tga", "exr": "image/x-exr",
    "fits": "image/fits", "pbm": "image/x-portable-bitmap", "pgm": "image/x-portable-graymap",
    "ppm": "image/x-portable-pixmap", "pcx": "image/x-pcx", "xbm": "image/x-xbitmap",
    "xwd": "image/x-xwindowdump", "sgi": "image/sgi", "ras": "image/x-cmu-raster",
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "doc": "application/msword",
    "odt": "application/vnd.oasis.opendocument.text",
    "rtf": "application/rtf",
    "html": "text/html", "md": "text/markdown", "txt": "text/plain",
    "zip": "application/zip",
}


def normalize_format(value: str) -> str:
    """'.DOCX' / 'docx' / ' Docx ' -> 'docx'."""
    return (value or "").strip().lower().lstrip(".")


def extension_of(filename: str) -> str:
    """Lowercase extension of a filename without the dot; '' when there is none."""
    return Path(filename or "").suffix.lower().lstrip(".")


def get_category(name_or_ext: str) -> Optional[FormatCategory]:
    """Classify a filename or an extension. None for anything not in SUPPORTED_TYPES."""
    value = (name_or_ext or "").strip()
    ext = extension_of(value) if "." in value.lstrip(".") else normalize_format(value)
    return _EXT_TO_CATEGORY.get(ext)


def is_image_format(ext: str) -> bool:
    ext = normalize_format(ext)
    return ext in IMAGE_INPUT_FORMATS or ext in IMAGE_OUTPUT_FORMATS


def is_document_format(ext: str) -> bool:
    return get_category(ext) == FormatCategory.DOCUMENT


def mime_type_for(ext: str) -> str:
    ext = normalize_format(ext)
    if ext in _EXT_TO_MIME:
        return _EXT_TO_MIME[ext]
    guessed, _ = mimetypes.guess_type(f"file.{ext}")
    return guessed or "application/octet-stream"


def supported_formats() -> dict:
    """Static description of inputs/outputs per category for GET /supported-formats."""
    return {
        "documents": {
            "input": list(DOCUMENT_INPUT_FORMATS),
            "output": list(DOCUMENT_OUTPUT_FORMATS),
        },
        "images": {
            "input": list(IMAGE_INPUT_FORMATS),
            "output": list(IMAGE_OUTPUT_FORMATS),
        },
        "videos": {"input": list(SUPPORTED_TYPES[FormatCategory.VIDEO]), "output": []},
        "audio": {"input": list(SUPPORTED_TYPES[FormatCategory.AUDIO]), "output": []},
    }
