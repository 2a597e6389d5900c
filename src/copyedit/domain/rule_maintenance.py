"""Helpers for curating rule files: dedupe, pluralise, merge word mappings."""

import re
from typing import Any, Mapping

PLAIN_WORD_RE = re.compile(r"^[a-zA-Z\-']+$")


def _sort_key(rule: Mapping[str, Any]) -> str:
    return str(rule.get("find", "")).lower()


def dedupe_and_sort(rules: list[dict[str, Any]]) -> list[dict[str, Any]]:
    seen: set[str] = set()
    unique: list[dict[str, Any]] = []
    for rule in rules:
        key = _sort_key(rule)
        if key in seen:
            continue
        seen.add(key)
        unique.append(rule)
    return sorted(unique, key=_sort_key)


def mapping_summary(prefix: str, find: str, replace: str) -> str:
    return f"{prefix}: '{find}' --> '{replace}'"


def add_plurals(
    rules: list[dict[str, Any]],
    summary_prefix: str = "Int Eng",
) -> tuple[list[dict[str, Any]], list[str]]:
    """Add a naive ``+s`` plural for every plain single-word rule that lacks one."""
    finds = {str(rule.get("find", "")) for rule in rules}
    result = list(rules)
    added: list[str] = []
    for rule in rules:
        find = str(rule.get("find", ""))
        if find.endswith("s") or not PLAIN_WORD_RE.match(find):
            continue
        plural = f"{find}s"
        if plural in finds:
            continue
        replace = f"{rule.get('replace', '')}s"
        result.append(
            {"find": plural, "replace": replace, "summary": mapping_summary(summary_prefix, plural, replace)}
        )
        finds.add(plural)
        added.append(plural)
    return sorted(result, key=_sort_key), added


def add_mappings(
    rules: list[dict[str, Any]],
    mapping: Mapping[str, str],
    summary_prefix: str = "Int Eng",
) -> tuple[list[dict[str, Any]], list[str], list[str]]:
    existing = {str(rule.get("find", "")) for rule in rules}
    result = list(rules)
    added: list[str] = []
    skipped: list[str] = []
    for find, replace in mapping.items():
        if find in existing:
            skipped.append(find)
            continue
        result.append({"find": find, "replace": replace, "summary": mapping_summary(summary_prefix, find, replace)})
        existing.add(find)
        added.append(find)
    return sorted(result, key=_sort_key), added, skipped


def check_rules(rules: list[Any]) -> list[str]:
    """Problems that would make a rule unusable, one message per problem."""
    problems: list[str] = []
    for index, rule in enumerate(rules):
        if not isinstance(rule, dict):
            problems.append(f"#{index}: not an object")
            continue
        find = rule.get("find")
        if not isinstance(find, str) or not find.strip():
            problems.append(f"#{index}: empty find")
            continue
        try:
            re.compile(find)
        except re.error as exc:
            problems.append(f"#{index}: {find!r} does not compile: {exc}")
        for key in ("replace", "summary"):
            if not isinstance(rule.get(key), str):
                problems.append(f"#{index}: {find!r} has no {key}")
    return problems
