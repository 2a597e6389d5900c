import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

DUBIOUS_PREFIX = "[DUBIOUS]"


class RuleCategory(Enum):
    TYPOS = "typos"
    GRAMMAR = "grammar"
    PROSE_LINTING = "prose_linting"
    INTERNATIONAL_ENGLISH = "international_english"
    MW_LINTING = "mw_linting"
    DUBIOUS = "dubious"

    @property
    def file_name(self) -> str:
        return f"{self.value}.json"

    @property
    def is_dubious(self) -> bool:
        return self is RuleCategory.DUBIOUS


# Load order of the rule files; earlier rules feed later ones.
RULE_FILE_ORDER: tuple[RuleCategory, ...] = (
    RuleCategory.TYPOS,
    RuleCategory.GRAMMAR,
    RuleCategory.PROSE_LINTING,
    RuleCategory.INTERNATIONAL_ENGLISH,
    RuleCategory.MW_LINTING,
    RuleCategory.DUBIOUS,
)


@dataclass(frozen=True)
class Rule:
    category: RuleCategory
    find: str
    pattern: re.Pattern[str]
    replacement: str
    summary: str
    source: str
    dubious: bool = False


@dataclass(frozen=True)
class TemplateRegion:
    start: int
    end: int

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end


@dataclass(frozen=True)
class TransformResult:
    text: str
    changed: bool
    summaries: tuple[str, ...] = ()


@dataclass(frozen=True)
class LinkResult:
    text: str
    changed: bool
    replacements: int = 0
    icon_replacements: int = 0


@dataclass(frozen=True)
class TocResult:
    text: str
    changed: bool
    heading_count: int
    status: str | None = None
    summary: str | None = None


@dataclass(frozen=True)
class CategoryResult:
    text: str
    changed: bool
    categories: tuple[str, ...] = ()


@dataclass(frozen=True)
class ListResult:
    text: str
    changed: bool
    lists_converted: int = 0
    unclosed_lists: int = 0


@dataclass(frozen=True)
class GlossaryResult:
    text: str
    changed: bool
    found: int = 0
    matched: int = 0
    updated: int = 0
    tagged: int = 0
    removed: int = 0
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class RuleApplication:
    rule: Rule
    matches: tuple[str, ...]
    summary: str


@dataclass(frozen=True)
class RuleRunResult:
    text: str
    applications: tuple[RuleApplication, ...] = ()
    errors: tuple[str, ...] = ()
    # Same as ``text`` plus the substitutions of dubious rules; never saved.
    preview_text: str | None = None

    @property
    def changed(self) -> bool:
        return bool(self.applications)

    @property
    def summaries(self) -> tuple[str, ...]:
        return tuple(app.summary for app in self.applications)


@dataclass(frozen=True)
class SiteResources:
    """Read-only lookups shared by every page of one site."""

    page_titles: tuple[str, ...]
    icon_map: Mapping[str, bool] = field(default_factory=dict)
    glossary: Mapping[str, str] = field(default_factory=dict)
    bot_user: str = ""


def is_dubious_summary(summary: str) -> bool:
    return summary.startswith(DUBIOUS_PREFIX)


def partition_summaries(summaries: tuple[str, ...] | list[str]) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split summaries into (normal, dubious), keeping pipeline order."""
    normal = tuple(s for s in summaries if not is_dubious_summary(s))
    dubious = tuple(s for s in summaries if is_dubious_summary(s))
    return normal, dubious
