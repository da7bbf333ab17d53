"""Plain text to six-heading HTML, so manual drafts can go through the splitter."""
from __future__ import annotations

import html
import math
import re

from onereply.html_utils import strip_html
from onereply.section_splitter import HEADINGS

STAFF_REVIEW_FOOTER = '<p><small style="color: gray;">Draft for staff review</small></p>'
EMPTY_PLACEHOLDER = "<p><em>No specific information available</em></p>"
SHORT_TEXT_CHARS = 200

_BULLET_RE = re.compile(r"^[-*\u2022]\s+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

# Heading -> keywords that route a sentence under it.  First heading is the
# default when no keyword hits.
_ROUTING: tuple[tuple[str, tuple[str, ...]], ...] = (
    (HEADINGS["understanding"], ("understanding", "situation", "inquiry", "request")),
    (HEADINGS["property_facts"], ("property", "facts", "parcel", "address", "zoning")),
    (HEADINGS["citations"], ("code", "citation", "luc", "bcc", "regulation")),
    (HEADINGS["guidance"], ("guidance", "recommendation", "advice", "should", "must")),
    (HEADINGS["followups"], ("question", "clarification", "need to know", "require")),
    (HEADINGS["next_steps"], ("next", "step", "action", "process", "submit", "apply")),
)


def to_bulleted_html(text: str) -> str:
    """Convert plain-text lines to a ``<ul>`` (or a ``<p>`` for one line).

    Existing ``-``, ``*`` or bullet-character markers are stripped when at
    least half of the lines carry one.
    """
    if not text:
        return ""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return ""

    bulleted = sum(1 for line in lines if _BULLET_RE.match(line))
    if bulleted >= math.ceil(len(lines) / 2):
        items = [_BULLET_RE.sub("", line).strip() for line in lines]
        return "<ul>" + "\n".join(f"<li>{html.escape(i)}</li>" for i in items if i) + "</ul>"

    if len(lines) == 1:
        return f"<p>{html.escape(lines[0])}</p>"
    return "<ul>" + "\n".join(f"<li>{html.escape(line)}</li>" for line in lines) + "</ul>"


def _route(sentence: str) -> str:
    lowered = sentence.lower()
    best = _ROUTING[0][0]
    best_score = 0
    for heading, keywords in _ROUTING:
        score = sum(1 for kw in keywords if kw in lowered)
        if score > best_score:
            best, best_score = heading, score
    return best


def coerce_to_sectioned_html(raw_text: str) -> str:
    """Distribute unstructured text across the six standard headings.

    Markup in *raw_text* is flattened first, one line per block element.
    Short text lands entirely under "Our understanding".  Longer text is cut
    into sentences, each routed to the heading whose keywords it hits most;
    every heading is emitted (empty ones get a placeholder) so the result is
    always well-formed for ``split_document``.
    """
    clean = strip_html(raw_text)
    if not clean:
        return ""

    if len(clean) < SHORT_TEXT_CHARS:
        return f"<h3>{HEADINGS['understanding']}</h3>{to_bulleted_html(clean)}"

    routed: dict[str, list[str]] = {}
    for sentence in (s.strip() for s in _SENTENCE_SPLIT_RE.split(clean)):
        if sentence:
            routed.setdefault(_route(sentence), []).append(sentence)

    parts: list[str] = []
    for heading, _ in _ROUTING:
        sentences = routed.get(heading)
        if not sentences:
            body = EMPTY_PLACEHOLDER
        elif len(sentences) == 1:
            body = f"<p>{html.escape(sentences[0])}</p>"
        else:
            body = to_bulleted_html("\n".join(sentences))
        parts.append(f"<h3>{heading}</h3>{body}")

    return "\n\n".join(parts) + "\n" + STAFF_REVIEW_FOOTER
