"""Tests for request validation"""

import pytest

from converter.conversion.models import FormatCategory
from converter.errors import LimitExceeded, ValidationError
from converter.validation import (
    FILE_COUNT_LIMITS,
    FILE_SIZE_LIMITS,
    MB,
    limits,
    validate_file_count,
    validate_target_format,
    validate_upload,
)


def test_default_limits():
    assert FILE_SIZE_LIMITS[FormatCategory.IMAGE] == 50 * MB
    assert FILE_SIZE_LIMITS[FormatCategory.VIDEO] == 100 * MB
    assert FILE_SIZE_LIMITS[FormatCategory.AUDIO] == 30 * MB
    assert FILE_SIZE_LIMITS[FormatCategory.DOCUMENT] == 20 * MB
    assert FILE_COUNT_LIMITS == {
        FormatCategory.IMAGE: 5,
        FormatCategory.VIDEO: 3,
        FormatCategory.AUDIO: 10,
        FormatCategory.DOCUMENT: 10,
    }


def test_21mb_document_is_rejected():
    with pytest.raises(LimitExceeded) as excinfo:
        validate_upload("thesis.docx", 21 * MB)
    assert excinfo.value.status_code == 413
    assert excinfo.value.reason == "file_too_large"
    assert excinfo.value.to_dict()["category"] == "document"


def test_21mb_image_is_fine():
    assert validate_upload("photo.png", 21 * MB) == FormatCategory.IMAGE


def test_unknown_size_passes():
    assert validate_upload("notes.txt", None) == FormatCategory.DOCUMENT


@pytest.mark.parametrize("filename", ["", None, "program.exe", "noext", "docx", ".pdf"])
def test_bad_file_type(filename):
    with pytest.raises(ValidationError):
        validate_upload(filename, 10)


def test_target_format():
    assert validate_target_format(" .PDF ") == "pdf"
    assert validate_target_format("tga") == "tga"
    with pytest.raises(ValidationError, match="required"):
        validate_target_format("")
    with pytest.raises(ValidationError) as excinfo:
        validate_target_format("exe")
    assert excinfo.value.reason == "unsupported_target_format"


def test_file_count_limits():
    validate_file_count([FormatCategory.IMAGE] * 5)
    with pytest.raises(LimitExceeded) as excinfo:
        validate_file_count([FormatCategory.IMAGE] * 6)
    assert excinfo.value.reason == "too_many_files"
    with pytest.raises(LimitExceeded):
        validate_file_count([FormatCategory.VIDEO] * 4)


def test_file_count_request_cap():
    with pytest.raises(LimitExceeded, match="Maximum allowed: 10"):
        validate_file_count([FormatCategory.DOCUMENT] * 5, total=11)
    with pytest.raises(ValidationError):
        validate_file_count([])


def test_limits_payload():
    payload = limits()
    assert payload["document"]["max_size_mb"] == 20
    assert payload["image"]["max_files"] == 5
    assert payload["max_files_per_request"] == 10


def test_bare_extension_name_is_unsupported_file_type():
    with pytest.raises(ValidationError) as excinfo:
        validate_upload("docx", 10)
    assert excinfo.value.reason == "unsupported_file_type"
