import re
import unittest

from src.copyedit.domain.context import StageContext
from src.copyedit.domain.models import RuleCategory
from src.copyedit.domain.rules import RuleEngine, compile_rule, enforce_word_boundaries, word_boundary_pattern


def _engine(*definitions, category=RuleCategory.TYPOS):
    rules = enforce_word_boundaries([dict(d) for d in definitions])
    return RuleEngine.from_definitions((category, category.file_name, d) for d in rules)


class WordBoundaryTests(unittest.TestCase):
    def test_simple_words_are_anchored(self):
        rules = enforce_word_boundaries(
            [{"find": "teh"}, {"find": "don't"}, {"find": "e-mail"}, {"find": r"\bfoo+"}, {"find": "a b"}]
        )
        self.assertEqual(
            [rule["find"] for rule in rules],
            [r"\bteh\b", r"\bdon't\b", r"\be\-mail\b", r"\bfoo+", "a b"],
        )

    def test_word_boundary_pattern_escapes_phrases(self):
        self.assertEqual(word_boundary_pattern("C++"), re.escape("C++"))

    def test_status_messages_go_to_sink(self):
        messages = []
        enforce_word_boundaries([{"find": "teh"}], StageContext("verbose", messages.append))
        self.assertEqual(messages, ["> rule_preprocessed: \"Added word boundaries to 'teh'\""])


class RuleEngineTests(unittest.TestCase):
    def test_applies_rule_and_formats_summary(self):
        engine = _engine({"find": "beaver", "replace": "Beaver", "summary": "Typo: '%1' --> '%2'"})
        result = engine.apply("beaver is a rodent; beavers build dams.")
        self.assertEqual(result.text, "Beaver is a rodent; beavers build dams.")
        self.assertEqual(result.summaries, ("Typo: 'beaver' --> 'Beaver'",))
        self.assertEqual(result.applications[0].matches, ("beaver",))

    def test_first_group_is_reported_when_pattern_has_groups(self):
        engine = _engine({"find": r"(colou)r", "replace": r"color", "summary": "%1"})
        self.assertEqual(engine.apply("colour and colour").summaries, ("colou",))

    def test_rules_run_in_order_on_previous_output(self):
        engine = _engine(
            {"find": "recieve", "replace": "receive", "summary": "one"},
            {"find": "receive", "replace": "get", "summary": "two"},
        )
        result = engine.apply("recieve")
        self.assertEqual(result.text, "get")
        self.assertEqual(result.summaries, ("one", "two"))

    def test_dubious_rules_are_prefixed(self):
        engine = _engine({"find": "irregardless", "replace": "regardless", "summary": "%1"}, category=RuleCategory.DUBIOUS)
        result = engine.apply("irregardless")
        self.assertEqual(result.summaries, ("[DUBIOUS] irregardless",))
        self.assertTrue(engine.rules[0].dubious)

    def test_dubious_substitutions_stay_out_of_live_text(self):
        typos = [(RuleCategory.TYPOS, "typos.json", {"find": r"\bteh\b", "replace": "the", "summary": "typo"})]
        dubious = [
            (RuleCategory.DUBIOUS, "dubious.json", {"find": r"\birregardless\b", "replace": "regardless", "summary": "%1"})
        ]
        engine = RuleEngine.from_definitions(typos + dubious)

        result = engine.apply("teh cat, irregardless.")

        self.assertEqual(result.text, "the cat, irregardless.")
        self.assertEqual(result.preview_text, "the cat, regardless.")
        self.assertEqual(result.summaries, ("typo", "[DUBIOUS] irregardless"))

    def test_normal_rule_after_dubious_rule_sees_live_text(self):
        definitions = [
            (RuleCategory.DUBIOUS, "dubious.json", {"find": "alot", "replace": "a lot", "summary": "d"}),
            (RuleCategory.TYPOS, "typos.json", {"find": "alot", "replace": "allot", "summary": "t"}),
        ]
        result = RuleEngine.from_definitions(definitions).apply("alot")

        self.assertEqual(result.text, "allot")
        self.assertEqual(result.preview_text, "a lot")
        self.assertEqual(result.summaries, ("[DUBIOUS] d", "t"))

    def test_invalid_pattern_is_rejected_and_rest_kept(self):
        engine = _engine(
            {"find": "(unclosed", "replace": "x", "summary": "bad"},
            {"find": "", "replace": "x", "summary": "empty"},
            {"find": "ok", "replace": "OK", "summary": "good"},
        )
        self.assertEqual(len(engine.rules), 1)
        self.assertEqual([find for _, find, _ in engine.rejected], ["(unclosed", ""])
        self.assertEqual(engine.apply("ok").text, "OK")

    def test_bad_replacement_is_reported_and_skipped(self):
        engine = _engine(
            {"find": "alpha", "replace": r"\2", "summary": "broken"},
            {"find": "beta", "replace": "BETA", "summary": "fine"},
        )
        result = engine.apply("alpha beta")
        self.assertEqual(result.text, "alpha BETA")
        self.assertEqual(result.summaries, ("fine",))
        self.assertEqual(len(result.errors), 1)

    def test_applying_twice_equals_applying_once(self):
        engine = _engine(
            {"find": "teh", "replace": "the", "summary": "a"},
            {"find": r"\s+,", "replace": ",", "summary": "b"},
        )
        once = engine.apply("teh cat , teh dog").text
        twice = engine.apply(once)
        self.assertEqual(twice.text, once)
        self.assertFalse(twice.changed)

    def test_compile_rule_requires_find(self):
        with self.assertRaises(ValueError):
            compile_rule({"replace": "x"}, RuleCategory.GRAMMAR, "grammar.json")
