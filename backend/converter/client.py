"""Command-line client: convert on the server, fall back to the offline converter."""
import argparse
import logging
import mimetypes
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

import httpx

from converter.config import CLIENT_TIMEOUT_SECONDS, CONVERTER_SERVER_URL
from converter.conversion.formats import mime_type_for, normalize_format
from converter.errors import ConverterError
from converter.offline import convert_offline

logger = logging.getLogger("converter.client")


@dataclass(frozen=True)
class ClientResult:
    content: bytes
    filename: str
    mime_type: str
    source: str  # "server" | "offline"
    degraded: bool = False
    notice: Optional[str] = None


def _filename_from_disposition(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    m = re.search(r"filename\*=(?:UTF-8'')?([^;]+)", header, re.I)
    if m:
        return unquote(m.group(1).strip().strip('"'))
    m = re.search(r'filename="?([^";]+)"?', header, re.I)
    return m.group(1).strip() if m else None


class ConverterClient:
    """Posts files to <server>/api/convert; on any failure converts locally in degraded mode."""

    def __init__(
        self,
        server_url: Optional[str] = None,
        timeout: float = CLIENT_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.server_url = (CONVERTER_SERVER_URL if server_url is None else server_url).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def convert_remote(self, path: Path, target_format: str) -> ClientResult:
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client, open(path, "rb") as fh:
            response = client.post(
                f"{self.server_url}/api/convert",
                files={"file": (path.name, fh, content_type)},
                data={"targetFormat": target_format},
            )
            response.raise_for_status()
        filename = _filename_from_disposition(response.headers.get("content-disposition"))
        return ClientResult(
            content=response.content,
            filename=filename or f"{path.stem}.{target_format}",
            mime_type=response.headers.get("content-type", mime_type_for(target_format)),
            source="server",
        )

    def convert(self, path: Path, target_format: str) -> ClientResult:
        path = Path(path)
        target = normalize_format(target_format)
        if self.server_url:
            try:
                return self.convert_remote(path, target)
            except httpx.HTTPStatusError as e:
                logger.warning(
                    "Server conversion failed (%s), falling back to client-side: %s",
                    e.response.status_code, e.response.text[:200],
                )
            except httpx.HTTPError as e:
                logger.warning("Server conversion error, falling back to client-side: %s", e)
        result = convert_offline(path, target)
        return ClientResult(
            content=result.content,
            filename=result.filename,
            mime_type=result.mime_type,
            source="offline",
            degraded=result.degraded,
            notice=result.notice,
        )


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Convert a file via the converter API, offline if it is unreachable.")
    parser.add_argument("input", type=Path, help="File to convert")
    parser.add_argument("-t", "--to", required=True, help="Target extension, e.g. pdf, html, png")
    parser.add_argument("-s", "--server", default=None, help="Server base URL (default: CONVERTER_SERVER_URL)")
    parser.add_argument("-o", "--out-dir", type=Path, default=Path("."), help="Directory for the converted file")
    args = parser.parse_args(argv)

    if not args.input.is_file():
        parser.error(f"{args.input} is not a file")
    client = ConverterClient(server_url=args.server)
    try:
        result = client.convert(args.input, args.to)
    except ConverterError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    args.out_dir.mkdir(parents=True, exist_ok=True)
    out_path = args.out_dir / Path(result.filename).name
    out_path.write_bytes(result.content)
    if result.degraded:
        print(f"warning: {result.notice}", file=sys.stderr)
    print(out_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
