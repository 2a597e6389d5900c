"""HTML list markup to wikitext list markup.

One left-to-right pass over the tag stream keeps a stack of list markers
(``*`` for ``<ul>``, ``#`` for ``<ol>``, ``:`` for ``<dl>``). Each item is
written as the joined stack followed by a space, at the start of a line.
Definition terms use ``;`` in place of the innermost marker.

Malformed input is handled as follows: a closing list tag with nothing
open is dropped, an item outside any list is treated as an unordered
item, and lists still open at the end of the text are closed implicitly.
"""

import re

from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import ListResult

LIST_MARKERS = {"ul": "*", "ol": "#", "dl": ":"}

TAG_RE = re.compile(r"<(/?)(ul|ol|dl|li|dt|dd|p)\b[^>]*>", re.IGNORECASE)
LIST_OPEN_RE = re.compile(r"<(?:ul|ol|dl)\b[^>]*>", re.IGNORECASE)
EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def _start_line(out: list[str]) -> None:
    if out and not out[-1].endswith("\n"):
        out.append("\n")


def _after_list(out: list[str], chunk: str) -> str:
    # Text after a closed list starts on its own line, never indented.
    chunk = chunk.lstrip(" \t")
    if chunk and not chunk.startswith("\n"):
        _start_line(out)
    return chunk


def convert_html_lists(text: str, ctx: StageContext | None = None) -> ListResult:
    ctx = ctx or StageContext()
    if not LIST_OPEN_RE.search(text):
        return ListResult(text=text, changed=False)

    stack: list[str] = []
    out: list[str] = []
    lists_converted = 0
    after_marker = False
    list_closed = False
    cursor = 0

    for match in TAG_RE.finditer(text):
        chunk = text[cursor : match.start()]
        cursor = match.end()
        if chunk:
            if after_marker:
                chunk = chunk.lstrip()
            elif list_closed:
                chunk = _after_list(out, chunk)
            if chunk:
                out.append(chunk)
                after_marker = False
                list_closed = False

        closing = match.group(1) == "/"
        name = match.group(2).lower()

        if name == "p":
            # Paragraph tags break line-oriented list syntax inside lists.
            if not stack:
                if list_closed:
                    _start_line(out)
                out.append(match.group(0))
                list_closed = False
            continue

        if name in LIST_MARKERS:
            if closing:
                if stack:
                    stack.pop()
                    if not stack:
                        lists_converted += 1
                        after_marker = False
                        list_closed = True
            else:
                stack.append(LIST_MARKERS[name])
                list_closed = False
            continue

        if closing:
            continue

        levels = stack or ["*"]
        if name == "dt":
            prefix = "".join(levels[:-1]) + ";"
        else:
            prefix = "".join(levels)
        _start_line(out)
        out.append(f"{prefix} ")
        after_marker = True

    tail = text[cursor:]
    if after_marker:
        tail = tail.lstrip()
    elif list_closed:
        tail = _after_list(out, tail)
    out.append(tail)

    unclosed = len(stack)
    if unclosed:
        lists_converted += 1
        ctx.status("unclosed_lists", unclosed, level="light")

    result = EXCESS_NEWLINES_RE.sub("\n\n", "".join(out)).strip()
    ctx.status("lists_converted", lists_converted)
    return ListResult(
        text=result,
        changed=result != text,
        lists_converted=lists_converted,
        unclosed_lists=unclosed,
    )


def summary_for(result: ListResult) -> str:
    return f"MW Lint: Converted {result.lists_converted} HTML lists to wikitext"
