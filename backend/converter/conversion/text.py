"""Direct txt <-> html transforms. No external tools."""
import re

HTML_TEMPLATE = '<!DOCTYPE html><html><head><meta charset="UTF-8"></head><body><pre>{body}</pre></body></html>'

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")


def escape_html(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def txt_to_html(text: str) -> str:
    # The shell has no text outside <pre>, so html_to_txt gives the content back unchanged.
    return HTML_TEMPLATE.format(body=escape_html(text))


def html_to_txt(html: str) -> str:
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    return (
        text.replace("&nbsp;", " ")
        .replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&amp;", "&")
    )


TRANSFORMS = {
    ("txt", "html"): txt_to_html,
    ("html", "txt"): html_to_txt,
}


def can_convert(source_format: str, target_format: str) -> bool:
    return (source_format, target_format) in TRANSFORMS


def convert_text(src, dst, source_format: str, target_format: str) -> None:
    transform = TRANSFORMS[(source_format, target_format)]
    # bytes in, bytes out: keep line endings exactly as uploaded
    content = src.read_bytes().decode("utf-8", errors="replace")
    dst.write_bytes(transform(content).encode("utf-8"))
