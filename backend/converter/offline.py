"""Degraded-mode document converter that runs without the backend.

Covers a small allow-list of text-ish conversions with lower fidelity than the
server. Every result is marked degraded; RTF and ODT output also carries a
limited-support disclaimer in the text itself.
"""
import html
import io
import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import mammoth
from bs4 import BeautifulSoup, NavigableString, Tag

from converter.conversion.formats import extension_of, mime_type_for, normalize_format
from converter.conversion.text import escape_html
from converter.errors import ConverterError

logger = logging.getLogger("converter.offline")

# source extension -> targets the offline converter can produce
DOCUMENT_CONVERSION_SUPPORT: dict[str, tuple[str, ...]] = {
    "docx": ("html", "txt"),
    "html": ("txt",),
    "txt": ("html", "md"),
    "md": ("html", "txt"),
    "rtf": ("txt",),
    "odt": ("txt",),
    "pdf": (),
}

SERVER_ONLY_FORMATS = ("pdf", "epub", "fb2", "docm", "pptx", "xlsx")

DEGRADED_NOTICE = "Converted offline; formatting may be simplified compared to the server conversion."
RTF_DISCLAIMER = "[Note: RTF conversion is limited. For better results, please use the server conversion.]"
ODT_DISCLAIMER = "[Note: ODT conversion is limited. For better results, please use a dedicated ODT converter.]"

PAGE_STYLE = "body{font-family:Arial,sans-serif;line-height:1.6;max-width:800px;margin:0 auto;padding:20px;}"
TEXT_PAGE_STYLE = "body{font-family:monospace;white-space:pre-wrap;line-height:1.4;padding:20px;background:#f5f5f5;}"
BLOCK_TAGS = ("div", "p", "br", "h1", "h2", "h3", "h4", "h5", "h6")


class ClientSideUnsupported(ConverterError):
    status_code = 400
    reason = "not_supported_client_side"


@dataclass(frozen=True)
class OfflineResult:
    content: bytes
    filename: str
    mime_type: str
    degraded: bool = True
    notice: str = DEGRADED_NOTICE


def unsupported_message(source_format: str, target_format: str) -> str:
    if source_format in SERVER_ONLY_FORMATS or target_format in SERVER_ONLY_FORMATS:
        return "This conversion requires server-side support and is not available offline."
    return f"Conversion from {source_format} to {target_format} is not supported client-side."


def is_supported(source_format: str, target_format: str) -> bool:
    return target_format in DOCUMENT_CONVERSION_SUPPORT.get(source_format, ())


def _page(title: str, body: str, style: str = PAGE_STYLE) -> str:
    return (
        f'<!DOCTYPE html><html><head><meta charset="UTF-8"><title>{escape_html(title)}</title>'
        f"<style>{style}</style></head><body>{body}</body></html>"
    )


def docx_to_html(data: bytes, title: str) -> str:
    result = mammoth.convert_to_html(io.BytesIO(data))
    for message in result.messages:
        logger.debug("mammoth: %s", message)
    return _page(title, result.value)


def docx_to_txt(data: bytes, title: str) -> str:
    return mammoth.extract_raw_text(io.BytesIO(data)).value


def txt_to_html(text: str, title: str) -> str:
    return _page(title, escape_html(text), TEXT_PAGE_STYLE)


def txt_to_md(text: str, title: str) -> str:
    # plain text is already valid markdown
    return text


def _extract_text(element: Tag) -> str:
    out = []
    for node in element.children:
        if isinstance(node, NavigableString):
            out.append(str(node))
        elif isinstance(node, Tag):
            name = node.name.lower()
            if name in ("script", "style", "head"):
                continue
            if name in BLOCK_TAGS:
                out.append(_extract_text(node) + "\n")
            elif name == "li":
                out.append("• " + _extract_text(node) + "\n")
            else:
                out.append(_extract_text(node))
    return "".join(out)


def html_to_txt(text: str, title: str) -> str:
    soup = BeautifulSoup(text, "html.parser")
    root = soup.body or soup
    return _extract_text(root).strip()


def md_to_html(text: str, title: str) -> str:
    body = re.sub(r"^### (.*)$", r"<h3>\1</h3>", text, flags=re.M)
    body = re.sub(r"^## (.*)$", r"<h2>\1</h2>", body, flags=re.M)
    body = re.sub(r"^# (.*)$", r"<h1>\1</h1>", body, flags=re.M)
    body = re.sub(r"\*\*(.*?)\*\*", r"<strong>\1</strong>", body)
    body = re.sub(r"\*(.*?)\*", r"<em>\1</em>", body)
    body = re.sub(r"^[*-] (.*)$", r"<li>\1</li>", body, flags=re.M)
    body = re.sub(r"^\d+\. (.*)$", r"<li>\1</li>", body, flags=re.M)
    body = body.replace("\n", "<br>\n")
    body = re.sub(r"(<li>.*</li>)", r"<ul>\1</ul>", body, flags=re.S)
    return _page(title, body, PAGE_STYLE + "h1,h2,h3{color:#333;}ul{padding-left:20px;}")


def md_to_txt(text: str, title: str) -> str:
    plain = re.sub(r"^#{1,6}\s+", "", text, flags=re.M)
    plain = re.sub(r"\*\*(.*?)\*\*", r"\1", plain)
    plain = re.sub(r"\*(.*?)\*", r"\1", plain)
    plain = re.sub(r"^[*-] ", "• ", plain, flags=re.M)
    plain = re.sub(r"^\d+\. ", "", plain, flags=re.M)
    return plain.strip()


def rtf_to_txt(text: str, title: str) -> str:
    plain = re.sub(r"\\[a-zA-Z]+-?\d*\s?", "", text)
    plain = re.sub(r"[{}]", "", plain)
    plain = plain.replace("\\\\", "\\").replace("\\'", "'")
    return f"{plain.strip()}\n\n{RTF_DISCLAIMER}"


def odt_to_txt(data: bytes, title: str) -> str:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            xml = zf.read("content.xml").decode("utf-8", errors="replace")
        xml = re.sub(r"</text:(p|h)>|<text:line-break/>", "\n", xml)
        xml = re.sub(r"<text:tab/>", "\t", xml)
        extracted = html.unescape(re.sub(r"<[^>]+>", "", xml)).strip()
    except (zipfile.BadZipFile, KeyError):
        # not a real ODT package: keep whatever readable runs there are
        runs = re.findall(r"[A-Za-z\s.,!?;:'\"()\[\]{}\-]+", data.decode("latin-1"))
        extracted = re.sub(r"\s+", " ", " ".join(runs)).strip()
    if not extracted:
        extracted = "Unable to extract text from ODT file"
    return f"{extracted}\n\n{ODT_DISCLAIMER}"


# (source, target) -> (reads bytes?, converter)
_CONVERTERS: dict[tuple[str, str], tuple[bool, Callable[..., str]]] = {
    ("docx", "html"): (True, docx_to_html),
    ("docx", "txt"): (True, docx_to_txt),
    ("txt", "html"): (False, txt_to_html),
    ("txt", "md"): (False, txt_to_md),
    ("html", "txt"): (False, html_to_txt),
    ("md", "html"): (False, md_to_html),
    ("md", "txt"): (False, md_to_txt),
    ("rtf", "txt"): (False, rtf_to_txt),
    ("odt", "txt"): (True, odt_to_txt),
}

_LIMITED = {"rtf", "odt"}


def convert_offline(path: Path, target_format: str, original_filename: Optional[str] = None) -> OfflineResult:
    """Convert a local file without the server. Raises ClientSideUnsupported before reading anything."""
    path = Path(path)
    name = original_filename or path.name
    source = extension_of(name)
    target = normalize_format(target_format)
    if not is_supported(source, target):
        raise ClientSideUnsupported(unsupported_message(source, target))

    wants_bytes, converter = _CONVERTERS[(source, target)]
    data = path.read_bytes()
    try:
        content = converter(data if wants_bytes else data.decode("utf-8", errors="replace"), name)
    except (ValueError, zipfile.BadZipFile, KeyError) as e:
        raise ConverterError(f"Offline conversion from {source} to {target} failed: {e}")

    notice = DEGRADED_NOTICE
    if source in _LIMITED:
        notice = f"{source.upper()} support is limited offline. {DEGRADED_NOTICE}"
    logger.info("Converted %s -> %s offline (degraded)", name, target)
    return OfflineResult(
        content=content.encode("utf-8"),
        filename=f"{Path(name).stem}.{target}",
        mime_type=mime_type_for(target),
        notice=notice,
    )
