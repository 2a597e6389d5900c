import json
from pathlib import Path
from typing import Any

from src.config.logger_config import logger
from src.config.settings import RulesConfig
from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import RULE_FILE_ORDER, RuleCategory

RuleDefinition = tuple[RuleCategory, str, dict[str, Any]]


def read_rule_file(path: str | Path) -> list[dict[str, Any]]:
    path = Path(path)
    with path.open("r", encoding="utf-8") as fp:
        payload = json.load(fp)
    if not isinstance(payload, list):
        raise ValueError(f"{path.name}: expected a JSON list of rules")
    return payload


def write_rule_file(path: str | Path, rules: list[dict[str, Any]]) -> None:
    path = Path(path)
    with path.open("w", encoding="utf-8") as fp:
        json.dump(rules, fp, ensure_ascii=False, indent=2)
        fp.write("\n")


def load_rule_definitions(
    rules_dir: str | Path,
    config: RulesConfig,
    ctx: StageContext | None = None,
) -> list[RuleDefinition]:
    """Read every enabled rule file in load order.

    A missing or unreadable file contributes no rules; the run continues.
    """
    ctx = ctx or StageContext()
    rules_dir = Path(rules_dir)
    definitions: list[RuleDefinition] = []

    for category in RULE_FILE_ORDER:
        if not getattr(config, category.value):
            continue
        path = rules_dir / category.file_name
        try:
            file_rules = read_rule_file(path)
        except FileNotFoundError:
            logger.warning("Rule file not found: {}", str(path))
            ctx.status("rules_file_missing", category.file_name)
            continue
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            logger.error("Rule file could not be read: path={}, error={}", str(path), exc)
            ctx.status("rules_file_missing", category.file_name)
            continue

        kept = [rule for rule in file_rules if isinstance(rule, dict)]
        if len(kept) != len(file_rules):
            logger.warning("Ignored {} non-object entries in {}", len(file_rules) - len(kept), category.file_name)
        definitions.extend((category, category.file_name, rule) for rule in kept)
        ctx.status("rules_file_loaded", f"{category.file_name}: {len(kept)} rules")

    return definitions
