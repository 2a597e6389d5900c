"""Balanced ``{{...}}`` template scanning.

Spans are found with an explicit depth counter rather than a recursive
regex, so nested templates of any depth are matched as one region. An
opening ``{{`` that is never closed is not a template; scanning resumes
just after it so balanced templates nested inside it are still found.
A run of exactly three braces is a template parameter and closes on
``}}}``, so ``{{foo|{{{1}}}}}`` is one region.
"""

import re

from src.copyedit.domain.models import TemplateRegion

OPEN = "{{"
CLOSE = "}}"
PARAM_OPEN = "{{{"
PARAM_CLOSE = "}}}"
HTML_TAG_RE = re.compile(r"<[^>]*>")
# Private-use delimiters keep placeholders from colliding with page text.
PLACEHOLDER_FORMAT = "\ue000TEMPLATE{}\ue001"


def _match_end(text: str, start: int) -> int | None:
    # Widths of the open brace groups: 2 for a template, 3 for a {{{parameter}}}.
    open_widths: list[int] = []
    i = start
    while i < len(text):
        if text.startswith(PARAM_OPEN, i) and not text.startswith(PARAM_OPEN + "{", i):
            open_widths.append(3)
            i += 3
        elif text.startswith(OPEN, i):
            open_widths.append(2)
            i += 2
        elif text.startswith(CLOSE, i) and open_widths:
            width = open_widths.pop()
            i += 3 if width == 3 and text.startswith(PARAM_CLOSE, i) else 2
            if not open_widths:
                return i
        else:
            i += 1
    return None


def find_template_spans(text: str) -> list[TemplateRegion]:
    """Return the top-level template regions of ``text`` in document order."""
    spans: list[TemplateRegion] = []
    pos = 0
    while True:
        start = text.find(OPEN, pos)
        if start == -1:
            return spans
        end = _match_end(text, start)
        if end is None:
            pos = start + 2
            continue
        spans.append(TemplateRegion(start=start, end=end))
        pos = end


def in_any_span(spans: list[TemplateRegion], start: int, end: int) -> bool:
    return any(span.contains(start, end) for span in spans)


def split_outside_templates(text: str) -> list[str]:
    """Text segments lying between top-level templates."""
    segments: list[str] = []
    pos = 0
    for span in find_template_spans(text):
        segments.append(text[pos : span.start])
        pos = span.end
    segments.append(text[pos:])
    return segments


def protect_templates(text: str) -> tuple[str, list[str]]:
    """Swap every top-level template for a placeholder.

    Returns the protected text and the table needed by
    :func:`restore_templates`.
    """
    table: list[str] = []
    parts: list[str] = []
    pos = 0
    for span in find_template_spans(text):
        parts.append(text[pos : span.start])
        parts.append(PLACEHOLDER_FORMAT.format(len(table)))
        table.append(text[span.start : span.end])
        pos = span.end
    parts.append(text[pos:])
    return "".join(parts), table


def restore_templates(text: str, table: list[str]) -> str:
    for index, original in enumerate(table):
        text = text.replace(PLACEHOLDER_FORMAT.format(index), original, 1)
    return text
