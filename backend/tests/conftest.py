"""Test configuration and fixtures"""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from PIL import Image

from converter.conversion import service as service_module
from converter.conversion import workspace as workspace_module
from converter.conversion.workspace import Workspace


def _arg_after(cmd, flag):
    return cmd[cmd.index(flag) + 1]


def fake_tool_run(cmd, **kwargs):
    """Stand-in for subprocess.run that writes what each external tool would write."""
    tool = Path(cmd[0]).name
    if "soffice" in tool or "libreoffice" in tool:
        target = _arg_after(cmd, "--convert-to")
        outdir = Path(_arg_after(cmd, "--outdir"))
        src = Path(cmd[-1])
        (outdir / f"{src.stem}.{target}").write_bytes(b"office output")
    elif "pandoc" in tool:
        Path(_arg_after(cmd, "-o")).write_bytes(b"pandoc output")
    elif "magick" in tool or "convert" == tool:
        Path(cmd[2]).write_bytes(b"magick output")
    elif "vips" in tool:
        Path(cmd[3]).write_bytes(b"vips output")
    return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


@pytest.fixture(autouse=True)
def work_dir(tmp_path, monkeypatch):
    """Point every workspace at a per-test directory."""
    root = tmp_path / "work"
    root.mkdir()
    monkeypatch.setattr(workspace_module, "WORK_DIR", root)
    return root


@pytest.fixture(autouse=True)
def fresh_service(monkeypatch):
    """Each test gets its own ConversionService singleton."""
    monkeypatch.setattr(service_module, "_conversion_service", None)


@pytest.fixture
def workspace(work_dir):
    with Workspace(work_dir) as ws:
        yield ws


@pytest.fixture
def tool_run():
    """subprocess.run replaced by fake_tool_run; call_count is the spawn count."""
    with patch("converter.conversion.tools.subprocess.run", Mock(side_effect=fake_tool_run)) as run:
        yield run


@pytest.fixture
def failing_tool_run():
    """Every external tool exits non-zero."""
    def _fail(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="boom")

    with patch("converter.conversion.tools.subprocess.run", Mock(side_effect=_fail)) as run:
        yield run


@pytest.fixture
def png_file(tmp_path):
    path = tmp_path / "picture.png"
    Image.new("RGBA", (16, 12), (255, 0, 0, 128)).save(path, format="PNG")
    return path


@pytest.fixture
def txt_file(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"Hello world\nSecond line & more\n")
    return path


@pytest.fixture
def sample_file(tmp_path):
    """Factory: sample_file('report.docx') -> a small file with that name."""
    def _make(name: str, content: bytes = b"sample content") -> Path:
        path = tmp_path / name
        path.write_bytes(content)
        return path

    return _make
