import unittest

from src.copyedit.domain.categories import categories_to_bottom, collect_loose_categories, summary_for


class CategoryRelocatorTests(unittest.TestCase):
    def test_moves_deduplicated_tags_and_leaves_template_tag(self):
        text = "Intro [[Category:A]]\n{{box|[[Category:A]]}}\nBody\n[[Category:B]]\n[[Category:A]]"
        result = categories_to_bottom(text)
        self.assertTrue(result.changed)
        self.assertEqual(result.categories, ("[[Category:A]]", "[[Category:B]]"))
        self.assertEqual(
            result.text,
            "Intro \n{{box|[[Category:A]]}}\nBody\n\n[[Category:A]]\n[[Category:B]]\n",
        )
        self.assertEqual(summary_for(result), "MW Lint: Moved 2 categories to bottom of page")

    def test_template_internal_tags_survive_any_nesting(self):
        text = "{{outer|{{mid|{{inner|[[Category:Deep]]}}}}}}\n[[Category:Loose]]\nText"
        result = categories_to_bottom(text)
        self.assertIn("{{outer|{{mid|{{inner|[[Category:Deep]]}}}}}}", result.text)
        self.assertEqual(result.categories, ("[[Category:Loose]]",))

    def test_only_template_categories_is_a_no_op(self):
        text = "{{nav|[[Category:X]]}}\nText"
        result = categories_to_bottom(text)
        self.assertFalse(result.changed)
        self.assertEqual(result.text, text)

    def test_reference_category_is_not_moved(self):
        text = "See [[:Category:Birds]] for more."
        self.assertEqual(collect_loose_categories(text), [])
        self.assertFalse(categories_to_bottom(text).changed)

    def test_keeps_first_seen_order(self):
        text = "[[Category:Zeta]]\nBody\n[[Category:Alpha]]"
        result = categories_to_bottom(text)
        self.assertTrue(result.text.endswith("[[Category:Zeta]]\n[[Category:Alpha]]\n"))

    def test_second_run_is_a_no_op(self):
        text = "[[Category:B]]\nBody text\n\n\n\nMore [[Category:A]]"
        first = categories_to_bottom(text)
        second = categories_to_bottom(first.text)
        self.assertTrue(first.changed)
        self.assertFalse(second.changed)
        self.assertEqual(second.text, first.text)
