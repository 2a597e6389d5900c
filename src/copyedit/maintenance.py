"""Rule-file curation commands behind ``python -m src.copyedit rules``."""

import json
from pathlib import Path

from src.config.logger_config import logger
from src.copyedit.domain.rule_maintenance import add_mappings, add_plurals, check_rules, dedupe_and_sort
from src.copyedit.infrastructure.rule_files import read_rule_file, write_rule_file


def check_files(paths: list[Path]) -> int:
    """Log every problem found; the return value is the problem count."""
    total = 0
    for path in paths:
        try:
            rules = read_rule_file(path)
        except (OSError, ValueError) as exc:
            logger.error("{}: cannot be read: {}", str(path), exc)
            total += 1
            continue
        problems = check_rules(rules)
        for problem in problems:
            logger.error("{}: {}", path.name, problem)
        logger.info("{}: {} rules, {} problems", path.name, len(rules), len(problems))
        total += len(problems)
    return total


def sort_file(path: Path) -> int:
    rules = read_rule_file(path)
    cleaned = dedupe_and_sort(rules)
    write_rule_file(path, cleaned)
    removed = len(rules) - len(cleaned)
    logger.info("{}: sorted {} rules, removed {} duplicates", path.name, len(cleaned), removed)
    return removed


def pluralise_file(path: Path, summary_prefix: str = "Int Eng") -> list[str]:
    rules, added = add_plurals(read_rule_file(path), summary_prefix=summary_prefix)
    write_rule_file(path, rules)
    for plural in added:
        logger.debug("Added plural: {}", plural)
    logger.info("{}: added {} plurals", path.name, len(added))
    return added


def merge_mappings(path: Path, mapping_path: Path, summary_prefix: str = "Int Eng") -> tuple[list[str], list[str]]:
    with mapping_path.open("r", encoding="utf-8") as fp:
        mapping = json.load(fp)
    if not isinstance(mapping, dict):
        raise ValueError(f"{mapping_path.name}: expected a JSON object of find -> replace")
    rules, added, skipped = add_mappings(read_rule_file(path), mapping, summary_prefix=summary_prefix)
    write_rule_file(path, rules)
    for find in skipped:
        logger.debug("Skipped existing mapping: {}", find)
    logger.info("{}: added {} mappings, skipped {} existing", path.name, len(added), len(skipped))
    return added, skipped
