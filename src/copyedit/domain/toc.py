import re

from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import TocResult

HEADING_THRESHOLD = 10
TOC_RIGHT = "{{TOC right}}"

HEADING_LINE_RE = re.compile(r"^={2,6}[^=]", re.MULTILINE)
TOC_RIGHT_RE = re.compile(r"\{\{\s*TOC right\s*\}\}")
TOC_PLAIN_RE = re.compile(r"\{\{\s*TOC\s*\}\}")
# Removing a marker also takes the line break that followed it.
TOC_ANY_LINE_RE = re.compile(r"\{\{\s*TOC(?: right)?\s*\}\}\n?")


def count_headings(text: str) -> int:
    return len(HEADING_LINE_RE.findall(text))


def manage_toc(text: str, ctx: StageContext | None = None) -> TocResult:
    """Keep a right-aligned TOC on long pages and none on short ones."""
    ctx = ctx or StageContext()
    heading_count = count_headings(text)
    ctx.status("heading_count", heading_count)

    has_toc_right = TOC_RIGHT_RE.search(text) is not None
    has_toc = TOC_PLAIN_RE.search(text) is not None

    if heading_count > HEADING_THRESHOLD:
        if has_toc_right:
            return TocResult(text=text, changed=False, heading_count=heading_count)
        if has_toc:
            text = TOC_PLAIN_RE.sub(TOC_RIGHT, text)
            ctx.status("toc_converted", "{{TOC}} -> {{TOC right}}")
            return TocResult(
                text=text,
                changed=True,
                heading_count=heading_count,
                status="converted",
                summary=f"TOC management: converted to {TOC_RIGHT} ({heading_count} headings)",
            )
        first_heading = HEADING_LINE_RE.search(text)
        insert_at = first_heading.start() if first_heading else 0
        text = f"{text[:insert_at]}{TOC_RIGHT}\n{text[insert_at:]}"
        ctx.status("toc_inserted", f"{TOC_RIGHT} added before first heading")
        return TocResult(
            text=text,
            changed=True,
            heading_count=heading_count,
            status="inserted",
            summary=f"TOC management: inserted {TOC_RIGHT} ({heading_count} headings)",
        )

    if not (has_toc_right or has_toc):
        return TocResult(text=text, changed=False, heading_count=heading_count)

    removed = "{{TOC right}}" if has_toc_right else "{{TOC}}"
    text = TOC_ANY_LINE_RE.sub("", text)
    ctx.status("toc_removed", f"Removed {removed} (<={HEADING_THRESHOLD} headings)")
    return TocResult(
        text=text,
        changed=True,
        heading_count=heading_count,
        status="removed",
        summary=f"TOC management: removed {removed} ({heading_count} headings)",
    )
