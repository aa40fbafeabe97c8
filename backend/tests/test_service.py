"""Tests for dispatch and the conversion service"""

import pytest

from converter.conversion.models import BatchItemError
from converter.conversion.service import (
    ConversionService,
    build_request,
    dispatch,
    output_filename_for,
)
from converter.errors import ConverterError, UnsupportedConversion


@pytest.mark.parametrize(
    "source, target, expected",
    [
        ("png", "pdf", "image"),
        ("heic", "jpg", "image"),
        ("pdf", "tga", "image"),
        ("docx", "pdf", "document"),
        ("md", "html", "document"),
        ("txt", "html", "document"),
    ],
)
def test_dispatch(source, target, expected):
    assert dispatch(source, target) == expected


@pytest.mark.parametrize("source, target", [("mp4", "mp3"), ("wav", "flac"), ("", "")])
def test_dispatch_unsupported(source, target):
    with pytest.raises(UnsupportedConversion):
        dispatch(source, target)


def test_output_filename():
    assert output_filename_for("Report.final.docx", "pdf") == "Report.final.pdf"
    assert output_filename_for("", "png") == "converted.png"


def test_convert_txt_to_html(sample_file, workspace, tool_run):
    src = sample_file("notes.txt", b"a < b")
    result = ConversionService().convert(build_request(src, "notes.txt", "HTML"), workspace)

    assert result.output_filename == "notes.html"
    assert result.mime_type == "text/html"
    assert result.strategy == "text"
    assert b"a &lt; b" in result.output_path.read_bytes()
    assert tool_run.call_count == 0


def test_convert_missing_source(workspace):
    request = build_request(workspace.path / "gone.txt", "gone.txt", "html")
    with pytest.raises(ConverterError, match="not found"):
        ConversionService().convert(request, workspace)


def test_failed_convert_leaves_no_output(sample_file, workspace, failing_tool_run):
    src = sample_file("letter.docx")
    with pytest.raises(ConverterError):
        ConversionService().convert(build_request(src, "letter.docx", "pdf"), workspace)
    assert list(workspace.path.iterdir()) == []


def test_convert_many_partial_failure(sample_file, workspace, tool_run):
    requests = [
        build_request(sample_file("a.txt", b"first"), "a.txt", "html"),
        build_request(sample_file("b.txt", b"second"), "b.txt", "html"),
        build_request(sample_file("c.png", b"png"), "c.png", "html"),
    ]

    batch = ConversionService().convert_many(requests, workspace)

    assert batch.ok
    assert [name for name, _ in batch.converted] == ["a.txt", "b.txt"]
    assert len(batch.errors) == 1
    assert batch.errors[0].filename == "c.png"
    assert "Unsupported conversion" in str(batch.errors[0])
    # uploads are removed as soon as they are processed
    for request in requests:
        assert not request.source_path.exists()


def test_convert_many_keeps_rejected(sample_file, workspace, tool_run):
    rejected = [BatchItemError("virus.exe", "Unsupported file type")]
    requests = [build_request(sample_file("a.md", b"# hi"), "a.md", "html")]

    batch = ConversionService().convert_many(requests, workspace, rejected)

    assert len(batch.converted) == 1
    assert [str(e) for e in batch.errors] == ["virus.exe: Unsupported file type"]


def test_convert_many_all_fail(sample_file, workspace, tool_run):
    requests = [build_request(sample_file("clip.mp4"), "clip.mp4", "mp3")]
    batch = ConversionService().convert_many(requests, workspace)
    assert not batch.ok
    assert len(batch.errors) == 1
