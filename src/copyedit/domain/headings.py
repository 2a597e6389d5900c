import re

from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import TransformResult

MAX_LEVEL = 6
HEADING_ONE_RE = re.compile(r"^=[^=\n]+=[ \t]*$", re.MULTILINE)
SUMMARY = "MW Lint: H1 detected. All headings incremented by 1."


def _level_re(level: int) -> re.Pattern[str]:
    markers = "=" * level
    return re.compile(
        rf"^(?<!=){markers}([^=\n](?:.*?[^=\n])?){markers}(?!=)[ \t]*$",
        re.MULTILINE,
    )


_LEVEL_RES = {level: _level_re(level) for level in range(1, MAX_LEVEL)}


def has_heading_one(text: str) -> bool:
    return HEADING_ONE_RE.search(text) is not None


def repair_headings(text: str, ctx: StageContext | None = None) -> TransformResult:
    """Demote every heading one level when the page uses a level-1 heading."""
    ctx = ctx or StageContext()
    if not has_heading_one(text):
        return TransformResult(text=text, changed=False)

    # Deepest first, so a demoted heading is never matched again.
    for level in range(MAX_LEVEL - 1, 0, -1):
        markers = "=" * (level + 1)
        text = _LEVEL_RES[level].sub(lambda m, mk=markers: f"{mk}{m.group(1)}{mk}", text)

    ctx.status("headings_repaired", "Detected H1 and repaired all heading levels", level="light")
    return TransformResult(text=text, changed=True, summaries=(SUMMARY,))
