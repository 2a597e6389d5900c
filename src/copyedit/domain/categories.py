import re

from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import CategoryResult
from src.copyedit.domain.templates import protect_templates, restore_templates, split_outside_templates

# [[:Category:X]] is a reference, not a membership, and is left alone.
CATEGORY_RE = re.compile(r"\[\[Category:[^\]\n]+\]\]")
EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")


def collect_loose_categories(text: str) -> list[str]:
    """Category tags outside templates, first-seen order, exact duplicates dropped."""
    seen: dict[str, None] = {}
    for segment in split_outside_templates(text):
        for tag in CATEGORY_RE.findall(segment):
            seen.setdefault(tag.strip(), None)
    return list(seen)


def categories_to_bottom(text: str, ctx: StageContext | None = None) -> CategoryResult:
    """Move free-standing category tags to one block at the end of the page."""
    ctx = ctx or StageContext()
    categories = collect_loose_categories(text)
    if not categories:
        return CategoryResult(text=text, changed=False)

    protected, table = protect_templates(text)
    protected = CATEGORY_RE.sub("", protected)
    body = restore_templates(protected, table)
    body = EXCESS_NEWLINES_RE.sub("\n\n", body).strip()

    block = "\n".join(categories)
    new_text = f"{body}\n\n{block}\n"
    if new_text == text:
        return CategoryResult(text=text, changed=False, categories=tuple(categories))

    ctx.status("categories_moved", len(categories), level="light")
    return CategoryResult(text=new_text, changed=True, categories=tuple(categories))


def summary_for(result: CategoryResult) -> str:
    return f"MW Lint: Moved {len(result.categories)} categories to bottom of page"
