"""Running external converters: argv only (no shell), bounded by a timeout."""
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from converter.config import TOOL_TIMEOUT_SECONDS
from converter.errors import ToolInvocationFailure

logger = logging.getLogger("converter.tools")


def run_tool(
    tool: str,
    argv: Sequence[str],
    timeout: Optional[float] = None,
    cwd: Optional[Path] = None,
) -> subprocess.CompletedProcess:
    """Run argv and return the completed process.

    Raises ToolInvocationFailure on a missing binary, a timeout (the child is
    killed by subprocess.run) or a non-zero exit status.
    """
    cmd = [str(a) for a in argv]
    timeout = TOOL_TIMEOUT_SECONDS if timeout is None else timeout
    logger.debug("Running %s: %s", tool, cmd)
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(cwd) if cwd else None,
        )
    except FileNotFoundError:
        raise ToolInvocationFailure(tool, f"{cmd[0]} not found. Install it or set its *_BIN variable.")
    except subprocess.TimeoutExpired:
        raise ToolInvocationFailure(tool, f"timed out after {timeout:g}s")
    except OSError as e:
        raise ToolInvocationFailure(tool, str(e))
    if result.returncode != 0:
        detail = (result.stderr or result.stdout or "").strip() or f"exit status {result.returncode}"
        raise ToolInvocationFailure(tool, detail)
    return result


def ensure_output(tool: str, path: Path) -> Path:
    """The tool succeeded only if it left a non-empty file at path."""
    if not path.is_file():
        raise ToolInvocationFailure(tool, f"expected output {path.name} was not produced")
    if path.stat().st_size == 0:
        raise ToolInvocationFailure(tool, f"output {path.name} is empty")
    return path


def tool_available(binary: str) -> bool:
    return shutil.which(binary) is not None
