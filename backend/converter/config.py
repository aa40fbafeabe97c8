"""Application configuration. Loads from environment and .env file."""
import logging
import os
import tempfile
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
# Load .env from cwd, then backend/.env, then project root .env
load_dotenv()
load_dotenv(BASE_DIR / ".env")
load_dotenv(BASE_DIR.parent / ".env")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Scratch space. Every request gets its own workspace directory under WORK_DIR.
WORK_DIR = Path(os.getenv("WORK_DIR", str(Path(tempfile.gettempdir()) / "converter-work")))
WORK_DIR.mkdir(parents=True, exist_ok=True)

# Conversion options (env overrides)
IMAGE_QUALITY = int(os.getenv("IMAGE_QUALITY", "85"))
TOOL_TIMEOUT_SECONDS = float(os.getenv("TOOL_TIMEOUT_SECONDS", "120"))

# External tools (argv[0]; full path or name on PATH)
MAGICK_BIN = os.getenv("MAGICK_BIN", "magick")
VIPS_BIN = os.getenv("VIPS_BIN", "vips")
LIBREOFFICE_BIN = os.getenv("LIBREOFFICE_BIN", "soffice")
PANDOC_BIN = os.getenv("PANDOC_BIN", "pandoc")

# Limits (env): max size per file (MB) and max files per upload, by category
MAX_IMAGE_SIZE_MB = int(os.getenv("MAX_IMAGE_SIZE_MB", "50"))
MAX_VIDEO_SIZE_MB = int(os.getenv("MAX_VIDEO_SIZE_MB", "100"))
MAX_AUDIO_SIZE_MB = int(os.getenv("MAX_AUDIO_SIZE_MB", "30"))
MAX_DOCUMENT_SIZE_MB = int(os.getenv("MAX_DOCUMENT_SIZE_MB", "20"))

MAX_IMAGE_FILES = int(os.getenv("MAX_IMAGE_FILES", "5"))
MAX_VIDEO_FILES = int(os.getenv("MAX_VIDEO_FILES", "3"))
MAX_AUDIO_FILES = int(os.getenv("MAX_AUDIO_FILES", "10"))
MAX_DOCUMENT_FILES = int(os.getenv("MAX_DOCUMENT_FILES", "10"))

# Hard cap on files in one multipart request, whatever their category
MAX_FILES_PER_REQUEST = int(os.getenv("MAX_FILES_PER_REQUEST", "10"))

UPLOAD_CHUNK_SIZE = 1024 * 1024

# Client (degraded-mode converter)
CONVERTER_SERVER_URL = os.getenv("CONVERTER_SERVER_URL", "").strip().rstrip("/")
CLIENT_TIMEOUT_SECONDS = float(os.getenv("CLIENT_TIMEOUT_SECONDS", "300"))

# Server (for uvicorn)
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
# CORS: comma-separated origins, e.g. "http://localhost:5173,http://127.0.0.1:5173"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",") if o.strip()]
# Include exception messages in 500 responses
DEBUG = _env_bool("DEBUG")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("converter")
