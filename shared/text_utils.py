"""
Plain-text helpers for email bodies — framework-agnostic, pure functions.
"""

from __future__ import annotations

import html
import re

_STYLE_BLOCK_RE = re.compile(r"<(style|head|script)\b[^>]*>.*?</\1\s*>", re.I | re.S)
_BREAK_TAG_RE = re.compile(r"<\s*(br|/p|/div|/h[1-6]|/li|/tr)\b[^>]*>", re.I)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_html(markup: str) -> str:
    """Derive a readable plain-text body from an HTML email.

    Drops ``<style>``, ``<head>`` and ``<script>`` blocks with their content,
    removes every remaining tag, decodes entities and collapses whitespace.
    The result is lossy: it keeps the readable words, not the structure.

    Example:
        >>> strip_html("<style>body{color:red}</style><p>Hello <b>World</b></p>")
        'Hello World'
    """
    if not markup:
        return ""
    text = _STYLE_BLOCK_RE.sub(" ", markup)
    text = _BREAK_TAG_RE.sub(" ", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(value: str, limit: int, suffix: str = "...") -> str:
    """Cut *value* to *limit* characters, appending *suffix* only when cut."""
    if len(value) <= limit:
        return value
    return value[:limit] + suffix
