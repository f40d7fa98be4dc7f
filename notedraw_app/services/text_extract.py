# notedraw_app/services/text_extract.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import re
from html.parser import HTMLParser

import requests

USER_AGENT = "Mozilla/5.0 (compatible; NoteDrawBot/1.0)"
FETCH_TIMEOUT = 10

BLOCK_TAGS = {"p", "div", "br", "li", "h1", "h2", "h3", "h4", "h5", "h6", "tr", "section", "article"}
SKIP_TAGS = {"script", "style"}


class FetchError(Exception):
    pass


class _TextExtractor(HTMLParser):
    """Junta o texto visível; blocos viram quebra de linha, script/style são ignorados."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self._skip_depth = 0
        self._parts: list[str] = []

    def handle_starttag(self, tag, attrs):
        tag = tag.lower()
        if tag in SKIP_TAGS:
            self._skip_depth += 1
        elif tag in BLOCK_TAGS:
            self._parts.append("\n")

    def handle_startendtag(self, tag, attrs):
        if tag.lower() in BLOCK_TAGS:
            self._parts.append("\n")

    def handle_endtag(self, tag):
        tag = tag.lower()
        if tag in SKIP_TAGS:
            self._skip_depth = max(self._skip_depth - 1, 0)
        elif tag in BLOCK_TAGS:
            self._parts.append("\n")

    def handle_data(self, data):
        if not self._skip_depth:
            self._parts.append(data)

    def text(self) -> str:
        return "".join(self._parts)


def html_to_text(raw: str) -> str:
    parser = _TextExtractor()
    parser.feed(raw)
    parser.close()
    text = re.sub(r"[ \t\r\f\v]+", " ", parser.text())
    text = re.sub(r"\s*\n\s*", "\n", text)
    return text.strip()


def fetch_url_text(url: str, max_length: int, min_length: int) -> str:
    """Baixa uma página http(s) e devolve o texto limpo, truncado em ``max_length``."""
    url = (url or "").strip()
    if not re.match(r"^https?://", url, re.I):
        raise FetchError("Invalid URL. Only http and https are supported.")

    try:
        r = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=FETCH_TIMEOUT)
    except requests.RequestException as e:
        raise FetchError(f"Failed to fetch URL: {e}") from e
    if r.status_code >= 400:
        raise FetchError(f"Failed to fetch URL: {r.status_code}")

    ctype = (getattr(r, "headers", {}) or {}).get("Content-Type", "text/html")
    if "html" not in ctype and "text" not in ctype:
        raise FetchError("URL does not point to a text or HTML page.")

    text = html_to_text(r.text or "")
    if len(text) > max_length:
        text = text[:max_length]
    if len(text) < min_length:
        raise FetchError(f"Content too short. At least {min_length} characters are required.")
    return text


def decode_upload(data: bytes) -> str:
    for enc in ("utf-8-sig", "utf-8", "gb18030"):
        try:
            return data.decode(enc)
        except UnicodeDecodeError:
            continue
    return data.decode("utf-8", errors="replace")
