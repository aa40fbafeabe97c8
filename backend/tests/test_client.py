"""Tests for the command-line client and its offline fallback"""

import httpx
import pytest

from converter.client import ConverterClient, _filename_from_disposition, main
from converter.offline import ClientSideUnsupported

SERVER = "http://converter.test"


def _client(handler):
    return ConverterClient(server_url=SERVER, transport=httpx.MockTransport(handler))


def test_filename_from_disposition():
    assert _filename_from_disposition('attachment; filename="notes.html"') == "notes.html"
    assert _filename_from_disposition("attachment; filename*=utf-8''r%C3%A9sum%C3%A9.pdf") == "résumé.pdf"
    assert _filename_from_disposition(None) is None


def test_server_success(sample_file):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.read()
        return httpx.Response(
            200,
            content=b"%PDF-1.7",
            headers={
                "content-type": "application/pdf",
                "content-disposition": 'attachment; filename="Report.pdf"',
            },
        )

    result = _client(handler).convert(sample_file("Report.docx"), ".PDF")

    assert seen["url"] == f"{SERVER}/api/convert"
    assert b'name="targetFormat"' in seen["body"]
    assert b'filename="Report.docx"' in seen["body"]
    assert result.source == "server"
    assert result.content == b"%PDF-1.7"
    assert result.filename == "Report.pdf"
    assert not result.degraded


def test_server_error_falls_back_offline(sample_file):
    def handler(request):
        return httpx.Response(500, json={"error": "Document conversion failed"})

    result = _client(handler).convert(sample_file("notes.txt", b"a & b"), "html")

    assert result.source == "offline"
    assert result.degraded
    assert result.notice
    assert b"a &amp; b" in result.content


def test_unreachable_server_falls_back_offline(sample_file):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = _client(handler).convert(sample_file("readme.md", b"# Hi"), "html")
    assert result.source == "offline"
    assert b"<h1>Hi</h1>" in result.content


def test_fallback_for_unsupported_pair_raises(sample_file):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ClientSideUnsupported):
        _client(handler).convert(sample_file("Report.docx"), "pdf")


def test_no_server_goes_straight_offline(sample_file):
    def handler(request):
        raise AssertionError("no request expected")

    client = ConverterClient(server_url="", transport=httpx.MockTransport(handler))
    result = client.convert(sample_file("notes.txt", b"hello"), "md")
    assert result.source == "offline"
    assert result.content == b"hello"


def test_cli_offline(sample_file, tmp_path, capsys):
    src = sample_file("notes.txt", b"hello")
    out_dir = tmp_path / "out"

    code = main([str(src), "--to", "html", "--server", "", "--out-dir", str(out_dir)])

    assert code == 0
    assert (out_dir / "notes.html").is_file()
    captured = capsys.readouterr()
    assert captured.out.strip() == str(out_dir / "notes.html")
    assert "warning:" in captured.err


def test_cli_reports_unsupported(sample_file, capsys):
    code = main([str(sample_file("scan.pdf", b"%PDF")), "-t", "docx", "-s", ""])
    assert code == 1
    assert "server-side" in capsys.readouterr().err
