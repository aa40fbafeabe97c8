"""Zip packaging for multi-file conversions."""
import logging
import zipfile
from pathlib import Path

from converter.conversion.models import BatchResult
from converter.conversion.workspace import Workspace

logger = logging.getLogger("converter.batch")

ZIP_FILENAME = "converted-files.zip"


def _sanitize_name(name: str) -> str:
    """Safe entry name for zip (no path separators, no empty)."""
    s = "".join(c for c in Path(name).name if c.isalnum() or c in "._- ").strip() or "file"
    return s[:128]


def _unique(name: str, used: set[str]) -> str:
    if name not in used:
        return name
    stem, suffix = Path(name).stem, Path(name).suffix
    i = 2
    while f"{stem} ({i}){suffix}" in used:
        i += 1
    return f"{stem} ({i}){suffix}"


def create_zip(batch: BatchResult, workspace: Workspace) -> Path:
    """Write every converted file of the batch into one zip inside the workspace.

    Entries are named <original stem>.<target ext>; clashes get a " (n)" suffix.
    Converted files are deleted once they are in the archive.
    """
    zip_path = workspace.new_path("zip")
    used: set[str] = set()
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for _original, result in batch.converted:
            arcname = _unique(_sanitize_name(result.output_filename), used)
            used.add(arcname)
            zf.write(result.output_path, arcname)
            workspace.remove(result.output_path)
    logger.info("Created zip %s with %s files", zip_path.name, len(used))
    return zip_path
