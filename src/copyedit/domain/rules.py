import re
from typing import Any, Iterable

from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import (
    DUBIOUS_PREFIX,
    Rule,
    RuleApplication,
    RuleCategory,
    RuleRunResult,
)

# Letters, digits, underscore, hyphen, apostrophe and nothing else.
SIMPLE_WORD_RE = re.compile(r"^[\w\-']+$")
SIMPLE_RULE_FIND_RE = re.compile(r"^[a-zA-Z0-9_\-']+$")


def word_boundary_pattern(text: str) -> str:
    """Escaped pattern for ``text``, anchored at word boundaries when it is a simple word."""
    escaped = re.escape(text)
    if SIMPLE_WORD_RE.match(text):
        return rf"\b{escaped}\b"
    return escaped


def enforce_word_boundaries(
    rules: list[dict[str, Any]],
    ctx: StageContext | None = None,
) -> list[dict[str, Any]]:
    """Anchor simple-word ``find`` values in place; regex patterns pass through."""
    ctx = ctx or StageContext()
    for rule in rules:
        find = rule.get("find")
        if not isinstance(find, str) or not SIMPLE_RULE_FIND_RE.match(find):
            continue
        rule["find"] = word_boundary_pattern(find)
        ctx.status("rule_preprocessed", f"Added word boundaries to '{find}'")
    return rules


def compile_rule(definition: dict[str, Any], category: RuleCategory, source: str) -> Rule:
    find = definition.get("find")
    if not isinstance(find, str) or not find.strip():
        raise ValueError("rule has an empty 'find' pattern")
    return Rule(
        category=category,
        find=find,
        pattern=re.compile(find),
        replacement=str(definition.get("replace", "")),
        summary=str(definition.get("summary", "")),
        source=source,
        dubious=category.is_dubious,
    )


def _first_match_text(match: re.Match[str]) -> str:
    # A pattern with groups reports its first group, like findall does.
    value = match.group(1) if match.re.groups else match.group(0)
    return value or ""


class RuleEngine:
    """Applies an ordered, immutable rule set to page text."""

    def __init__(self, rules: Iterable[Rule]) -> None:
        self.rules: tuple[Rule, ...] = tuple(rules)
        self.rejected: tuple[tuple[str, str, str], ...] = ()

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[tuple[RuleCategory, str, dict[str, Any]]],
    ) -> "RuleEngine":
        """Build an engine from ``(category, source, definition)`` triples.

        Definitions whose pattern does not compile are kept out of the rule
        set and listed in ``rejected`` as ``(source, find, error)``.
        """
        compiled: list[Rule] = []
        rejected: list[tuple[str, str, str]] = []
        for category, source, definition in definitions:
            try:
                compiled.append(compile_rule(definition, category, source))
            except (re.error, ValueError) as exc:
                rejected.append((source, str(definition.get("find", "")), str(exc)))
        engine = cls(compiled)
        engine.rejected = tuple(rejected)
        return engine

    def apply(self, text: str, ctx: StageContext | None = None) -> RuleRunResult:
        """Apply every rule in order.

        Dubious rules only ever rewrite ``preview_text``; ``text`` carries
        the non-dubious substitutions alone and is what may be saved. Each
        rule sees the output of the rules before it, so a dubious rule runs
        against the preview and a normal rule rewrites both copies.
        """
        ctx = ctx or StageContext()
        applications: list[RuleApplication] = []
        errors: list[str] = []
        preview = text

        for rule in self.rules:
            source = preview if rule.dubious else text
            matches = list(rule.pattern.finditer(source))
            if not matches:
                continue
            try:
                new_preview = rule.pattern.sub(rule.replacement, preview)
                new_text = text if rule.dubious else rule.pattern.sub(rule.replacement, text)
            except (re.error, IndexError) as exc:
                errors.append(f"{rule.source}: {rule.find!r}: {exc}")
                ctx.status("rule_error", f"{rule.find}: {exc}", level="light")
                continue

            summary = rule.summary.replace("%1", _first_match_text(matches[0]))
            summary = summary.replace("%2", rule.replacement)
            if rule.dubious:
                summary = f"{DUBIOUS_PREFIX} {summary}"
            ctx.status("rule_matched", summary[:50])

            applications.append(
                RuleApplication(
                    rule=rule,
                    matches=tuple(m.group(0) for m in matches),
                    summary=summary,
                )
            )
            text = new_text
            preview = new_preview

        return RuleRunResult(
            text=text,
            preview_text=preview,
            applications=tuple(applications),
            errors=tuple(errors),
        )
