"""Per-request scratch directory. Created by the caller, passed explicitly, removed on every exit path."""
import logging
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Optional

from converter.config import WORK_DIR

logger = logging.getLogger("converter.workspace")


def remove_file(path: Optional[Path]) -> bool:
    """Delete a file if it exists. Returns True when something was removed; safe to call twice."""
    if path is None:
        return False
    try:
        path.unlink()
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)
        return False


class Workspace:
    """A uniquely named temporary directory owned by one request.

    Use as a context manager, or call cleanup() explicitly when ownership of the
    directory outlives the with-block (e.g. a streamed response).
    """

    def __init__(self, root: Optional[Path] = None):
        root = Path(root) if root is not None else WORK_DIR
        root.mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix="req-", dir=root))
        self._closed = False
        logger.debug("Workspace created: %s", self.path)

    @property
    def closed(self) -> bool:
        return self._closed

    def new_path(self, extension: str, stem: Optional[str] = None) -> Path:
        """Collision-free path inside the workspace: <uuid>.<ext>, or <stem>.<ext> if given."""
        if self._closed:
            raise RuntimeError("Workspace already cleaned up")
        name = stem or uuid.uuid4().hex
        return self.path / f"{name}.{extension}" if extension else self.path / name

    def subdir(self, name: Optional[str] = None) -> Path:
        d = self.path / (name or uuid.uuid4().hex)
        d.mkdir(parents=True, exist_ok=True)
        return d

    def remove(self, path: Optional[Path]) -> bool:
        return remove_file(path)

    def cleanup(self) -> None:
        """Remove the directory and everything in it. Idempotent."""
        if self._closed:
            return
        self._closed = True
        shutil.rmtree(self.path, ignore_errors=True)
        logger.debug("Workspace removed: %s", self.path)

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def __repr__(self) -> str:
        return f"Workspace({str(self.path)!r}, closed={self._closed})"
