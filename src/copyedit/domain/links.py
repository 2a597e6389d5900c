import re
from typing import Iterable, Mapping

from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import LinkResult, TemplateRegion
from src.copyedit.domain.templates import HTML_TAG_RE, find_template_spans, in_any_span

LINK_SPAN_RE = re.compile(r"\[\[.*?\]\]", re.DOTALL)


def icon_reference(title: str) -> str:
    return f"{{{{icon|{title}}}}}"


def _protected_spans(text: str) -> list[TemplateRegion]:
    spans = [TemplateRegion(m.start(), m.end()) for m in LINK_SPAN_RE.finditer(text)]
    spans.extend(find_template_spans(text))
    # Attribute values such as <ref name="..."> are not prose.
    spans.extend(TemplateRegion(m.start(), m.end()) for m in HTML_TAG_RE.finditer(text))
    return spans


def _first_bare_mention(text: str, title: str) -> re.Match[str] | None:
    if title not in text:
        return None
    mention_re = re.compile(rf"(?<!\w){re.escape(title)}(?!\w)")
    protected: list[TemplateRegion] | None = None
    for match in mention_re.finditer(text):
        if protected is None:
            protected = _protected_spans(text)
        if not in_any_span(protected, match.start(), match.end()):
            return match
    return None


def canonicalize_links(
    page_title: str,
    text: str,
    page_titles: Iterable[str],
    icon_map: Mapping[str, bool],
    ctx: StageContext | None = None,
) -> LinkResult:
    """Turn explicit links into icons and first bare mentions into links.

    For each known title (other than the page itself), an explicit
    ``[[Title]]`` becomes ``{{icon|Title}}`` when the title has an icon.
    Otherwise, when the page does not link the title at all, its first
    bare mention outside links and templates becomes a link (or an icon).
    """
    ctx = ctx or StageContext()
    ctx.section(f"Page link checking started: {page_title}", level="verbose")
    replacements = 0
    icon_replacements = 0

    for title in page_titles:
        if title == page_title or not title.strip():
            continue
        escaped = re.escape(title)
        has_icon = bool(icon_map.get(title))

        if has_icon:
            link_re = re.compile(rf"\[\[\s*{escaped}\s*\]\]")
            text, count = link_re.subn(lambda _m: icon_reference(title), text)
            if count:
                icon_replacements += count
                ctx.status("icon_replaced", title)
                continue

        if re.search(rf"\[\[\s*{escaped}\s*(?:\|[^\]]+)?\]\]", text):
            continue

        match = _first_bare_mention(text, title)
        if match is None:
            continue
        replacement = icon_reference(title) if has_icon else f"[[{title}]]"
        text = text[: match.start()] + replacement + text[match.end() :]
        replacements += 1
        ctx.status("plain_replaced", f"{title} -> {replacement}")

    changed = bool(replacements or icon_replacements)
    ctx.status(
        "page_link_updates",
        {"changed": changed, "replacements": replacements, "icon_replacements": icon_replacements},
    )
    return LinkResult(
        text=text,
        changed=changed,
        replacements=replacements,
        icon_replacements=icon_replacements,
    )
