"""Field coercion helpers shared by normalizers. None of these raise."""

from __future__ import annotations

import html
import json
import re
from email.utils import parsedate_to_datetime
from typing import Any
from urllib.parse import urljoin

SUMMARY_MAX_LEN = 200

_TAG_RE = re.compile(r"<[^>]*>")
_IMG_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)
_SRC_RE = re.compile(r"""src=["']([^"']+)["']""", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


def to_float(v: Any, default: float = 0.0) -> float:
    if v is None or isinstance(v, bool):
        return default
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def to_int(v: Any, default: int = 0) -> int:
    if v is None or isinstance(v, bool):
        return default
    try:
        return int(v)
    except (TypeError, ValueError):
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return default


def to_str(v: Any, default: str = "") -> str:
    if v is None:
        return default
    return str(v)


def as_list(v: Any) -> list[Any]:
    """v when it is a list, else an empty list."""
    return v if isinstance(v, list) else []


def parse_json_list(v: Any) -> list[Any]:
    """Gamma encodes arrays as JSON strings ('["0.73","0.27"]'); accept either form."""
    if isinstance(v, list):
        return v
    if not v or not isinstance(v, str):
        return []
    try:
        parsed = json.loads(v)
    except (json.JSONDecodeError, TypeError):
        return []
    return parsed if isinstance(parsed, list) else []


def strip_html(text: str | None) -> str:
    """Drop tags, unescape entities, collapse whitespace."""
    if not text:
        return ""
    return _WS_RE.sub(" ", html.unescape(_TAG_RE.sub("", text))).strip()


def truncate(text: str | None, max_len: int = SUMMARY_MAX_LEN) -> str:
    if not text:
        return ""
    return text[:max_len]


def summarize(text: str | None, max_len: int = SUMMARY_MAX_LEN) -> str:
    """Strip HTML first, then bound the length."""
    return truncate(strip_html(text), max_len)


def first_image(blob: str | None) -> str | None:
    """Best-effort image from an HTML blob: first <img src>, else first src= attribute."""
    if not blob:
        return None
    m = _IMG_RE.search(blob) or _SRC_RE.search(blob)
    return html.unescape(m.group(1)) if m else None


def absolute_url(url: str | None, base: str) -> str:
    """Relative links (e.g. Reddit permalinks) resolved against the source's base."""
    if not url:
        return base
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return "https:" + url
    return urljoin(base.rstrip("/") + "/", url.lstrip("/"))


def rfc822_to_iso(value: str | None) -> str:
    """RSS pubDate -> ISO-8601; unparseable dates are passed through unchanged."""
    if not value:
        return ""
    try:
        return parsedate_to_datetime(value).isoformat()
    except (TypeError, ValueError, IndexError):
        return value
