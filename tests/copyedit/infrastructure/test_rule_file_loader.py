import json
import unittest

from src.config.settings import RulesConfig
from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import RuleCategory
from src.copyedit.infrastructure.rule_files import load_rule_definitions, read_rule_file, write_rule_file
from tests.utils.tempdir import managed_temp_dir


def _write(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")


class RuleFileLoaderTests(unittest.TestCase):
    def test_loads_enabled_files_in_category_order(self):
        with managed_temp_dir("rule_files_order") as tmp:
            _write(tmp / "dubious.json", [{"find": "d", "replace": "D", "summary": "d"}])
            _write(tmp / "typos.json", [{"find": "t", "replace": "T", "summary": "t"}])
            _write(tmp / "grammar.json", [{"find": "g", "replace": "G", "summary": "g"}])

            definitions = load_rule_definitions(tmp, RulesConfig())

        self.assertEqual(
            [(category, source, rule["find"]) for category, source, rule in definitions],
            [
                (RuleCategory.TYPOS, "typos.json", "t"),
                (RuleCategory.GRAMMAR, "grammar.json", "g"),
                (RuleCategory.DUBIOUS, "dubious.json", "d"),
            ],
        )

    def test_disabled_missing_and_broken_files_contribute_nothing(self):
        messages = []
        with managed_temp_dir("rule_files_missing") as tmp:
            _write(tmp / "typos.json", [{"find": "t", "replace": "T", "summary": "t"}])
            (tmp / "grammar.json").write_text("{not json", encoding="utf-8")
            _write(tmp / "mw_linting.json", {"find": "not a list"})

            definitions = load_rule_definitions(
                tmp,
                RulesConfig(typos=False),
                StageContext("verbose", messages.append),
            )

        self.assertEqual(definitions, [])
        self.assertIn("> rules_file_missing: 'grammar.json'", messages)
        self.assertIn("> rules_file_missing: 'dubious.json'", messages)

    def test_write_then_read_keeps_unicode(self):
        with managed_temp_dir("rule_files_write") as tmp:
            path = tmp / "international_english.json"
            rules = [{"find": "naïve", "replace": "naive", "summary": "Int Eng: 'naïve' --> 'naive'"}]
            write_rule_file(path, rules)
            self.assertIn("naïve", path.read_text(encoding="utf-8"))
            self.assertEqual(read_rule_file(path), rules)
