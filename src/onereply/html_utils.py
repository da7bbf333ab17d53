"""HTML text extraction for generated department documents.

Generated documents use a small tag vocabulary (``h3``, ``p``, ``ul``,
``li``, ``strong``, ``em``, ``a``).  These helpers turn fragments of such
documents into clean text and list items.

Two extraction modes:
- ``strip_html`` -- whole-fragment text, one line per block element.
- ``block_items`` -- one string per list item (or paragraph) in a fragment.
"""
from __future__ import annotations

import re
from collections.abc import Iterable

from bs4 import BeautifulSoup

# Elements that start a new line when a fragment is flattened to text.
_LINE_TAGS: list[str] = ["p", "div", "br", "li", "ul", "ol", "h3", "h4"]

# U+200B (ZWSP), U+200C (ZWNJ), U+FEFF (BOM) -- invisible characters that
# survive copy/paste from Word and break token matching.
_ZERO_WIDTH_RE = re.compile("[\u200b\u200c\ufeff]")

_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(fragment: str, *, keep_lines: bool = True) -> str:
    """Flatten an HTML fragment to plain text.

    With *keep_lines* each block element (paragraph, list item, heading)
    lands on its own line and blank lines are dropped; otherwise the text is
    collapsed to a single line.
    """
    if not fragment:
        return ""
    soup = BeautifulSoup(fragment, "html.parser")
    if not keep_lines:
        return _single_line(soup.get_text(separator=" "))

    for tag in soup.find_all(_LINE_TAGS):
        tag.insert_before("\n")
    lines = (_single_line(line) for line in soup.get_text(separator=" ").split("\n"))
    return "\n".join(line for line in lines if line)


def list_items(fragment: str) -> list[str]:
    """Return the text of every ``<li>`` in *fragment*, in document order.

    Nested markup inside an item (``<strong>``, links) is flattened.  Items
    that are empty after cleanup are dropped.
    """
    if not fragment:
        return []
    soup = BeautifulSoup(fragment, "html.parser")
    return _clean_texts(li.get_text(separator=" ") for li in soup.find_all("li"))


def block_items(fragment: str) -> list[str]:
    """Return the itemized content of an HTML fragment.

    List items when present, else paragraph texts, else the whole stripped
    text as a single item.  Empty fragments yield ``[]``.
    """
    items = list_items(fragment)
    if items:
        return items
    if not fragment or not fragment.strip():
        return []
    soup = BeautifulSoup(fragment, "html.parser")
    paragraphs = _clean_texts(p.get_text(separator=" ") for p in soup.find_all("p"))
    if paragraphs:
        return paragraphs
    text = _single_line(soup.get_text(separator=" "))
    return [text] if text else []


def strip_tags(fragment: str) -> str:
    """Remove tags with a regex, keeping text exactly as written."""
    return _TAG_RE.sub("", fragment)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _clean_texts(texts: Iterable[str]) -> list[str]:
    out: list[str] = []
    for raw in texts:
        text = _single_line(str(raw))
        if text:
            out.append(text)
    return out


def _single_line(text: str) -> str:
    return strip_zero_width(re.sub(r"\s+", " ", text)).strip()


def strip_zero_width(text: str) -> str:
    """Remove zero-width Unicode characters that break token matching."""
    return _ZERO_WIDTH_RE.sub("", text)
