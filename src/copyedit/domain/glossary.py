import re
from typing import Mapping

from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import GlossaryResult
from src.copyedit.domain.rules import word_boundary_pattern
from src.copyedit.domain.templates import HTML_TAG_RE

GLOSSARY_PAGE = "Glossary"
SUMMARY = "glossary tooltips added"

TABLE_RE = re.compile(r"\{\|(.*?)\|\}", re.DOTALL)
ROW_SEPARATOR_RE = re.compile(r"^\|-.*$", re.MULTILINE)
DATA_CELL_LINE_RE = re.compile(r"^\s*\|(?![-+}])")
BOLD_ITALIC_RE = re.compile(r"'{2,}(.+?)'{2,}")
TITLE_ATTR_RE = re.compile(r'title="([^"]*)"')
ABBR_OPEN_RE = re.compile(r"<abbr[^>]*>")


def _row_cells(row: str) -> list[str]:
    cells: list[str] = []
    for line in row.splitlines():
        if not DATA_CELL_LINE_RE.match(line):
            continue
        body = line.strip()[1:]
        for cell in body.split("||"):
            cell = cell.strip()
            if cell:
                cells.append(cell)
    return cells


def parse_glossary(wikitext: str) -> dict[str, str]:
    """Read ``term -> definition`` pairs from the pipe tables of a glossary page.

    The first two non-empty data cells of each row are the term and its
    definition; bold/italic quotes are stripped from the term. Header
    cells (``!``) are ignored. Later rows win on duplicate terms.
    """
    terms: dict[str, str] = {}
    for table in TABLE_RE.findall(wikitext or ""):
        for row in ROW_SEPARATOR_RE.split(table):
            cells = _row_cells(row)
            if len(cells) < 2:
                continue
            term = BOLD_ITALIC_RE.sub(r"\1", cells[0]).strip()
            definition = cells[1].strip()
            if term:
                terms[term] = definition
    return terms


def _attr_value(definition: str) -> str:
    return definition.replace('"', "&quot;")


def _abbr_re(term: str) -> re.Pattern[str]:
    return re.compile(rf"<abbr[^>]*>{re.escape(term)}</abbr>")


def _first_bare(text: str, term: str) -> re.Match[str] | None:
    tags = [(m.start(), m.end()) for m in HTML_TAG_RE.finditer(text)]
    for match in re.finditer(word_boundary_pattern(term), text):
        if not any(start <= match.start() and match.end() <= end for start, end in tags):
            return match
    return None


def _unwrap_after(text: str, abbr_re: re.Pattern[str], start: int) -> tuple[str, int]:
    """Unwrap every annotation matched by ``abbr_re`` at or after ``start``."""
    out = [text[:start]]
    removed = 0
    cursor = start
    for match in abbr_re.finditer(text, start):
        out.append(text[cursor : match.start()])
        out.append(ABBR_OPEN_RE.sub("", match.group(0), count=1).removesuffix("</abbr>"))
        cursor = match.end()
        removed += 1
    out.append(text[cursor:])
    return "".join(out), removed


def apply_glossary_tags(
    text: str,
    glossary: Mapping[str, str],
    ctx: StageContext | None = None,
) -> GlossaryResult:
    """Keep exactly one tooltip per glossary term, on its first occurrence."""
    ctx = ctx or StageContext()
    if not glossary:
        return GlossaryResult(text=text, changed=False)

    original = text
    found = matched = updated = tagged = removed = 0
    errors: list[str] = []
    ctx.status("apply_glossary_tags", f"checking {len(glossary)} terms")

    for term, definition in glossary.items():
        if not term or term not in text:
            continue
        try:
            abbr_re = _abbr_re(term)
            abbr_match = abbr_re.search(text)
            bare_match = _first_bare(text, term)
            if abbr_match is None and bare_match is None:
                continue

            value = _attr_value(definition)
            if abbr_match is not None and (bare_match is None or abbr_match.start() < bare_match.start()):
                matched += 1
                wrapped = abbr_match.group(0)
                opening = ABBR_OPEN_RE.match(wrapped).group(0)
                current = TITLE_ATTR_RE.search(opening)
                if current is None or current.group(1) != value:
                    if current is None:
                        new_opening = f'{opening[:-1]} title="{value}">'
                    else:
                        new_opening = TITLE_ATTR_RE.sub(lambda _m: f'title="{value}"', opening, count=1)
                    text = text[: abbr_match.start()] + new_opening + text[abbr_match.start() + len(opening) :]
                    updated += 1
                    ctx.status("glossary_updated_first", term)
                    abbr_match = abbr_re.search(text, abbr_match.start())
                text, count = _unwrap_after(text, abbr_re, abbr_match.end())
            else:
                found += 1
                replacement = f'<abbr title="{value}">{bare_match.group(0)}</abbr>'
                text = text[: bare_match.start()] + replacement + text[bare_match.end() :]
                tagged += 1
                ctx.status("glossary_tagged_first", f"{term}: {definition[:40]}")
                text, count = _unwrap_after(text, abbr_re, bare_match.start() + len(replacement))
            if count:
                removed += count
                ctx.status("glossary_removed_duplicate", f"{term}: {count}")
        except Exception as exc:
            errors.append(f"{term}: {exc}")
            ctx.status("glossary_term_error", f"{term}: {exc}", level="light")

    ctx.status(
        "glossary_summary",
        f"found:{found} matched:{matched} updated:{updated} tagged:{tagged} removed:{removed}",
    )
    return GlossaryResult(
        text=text,
        changed=text != original,
        found=found,
        matched=matched,
        updated=updated,
        tagged=tagged,
        removed=removed,
        errors=tuple(errors),
    )
