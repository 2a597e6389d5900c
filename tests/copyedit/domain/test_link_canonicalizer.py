import unittest

from src.copyedit.domain.links import canonicalize_links


class LinkCanonicalizerTests(unittest.TestCase):
    def test_explicit_link_becomes_icon_when_icon_exists(self):
        result = canonicalize_links(
            "Rodents",
            "Beaver is a rodent. [[Beaver]] lives here.",
            ["Beaver"],
            {"Beaver": True},
        )
        self.assertEqual(result.text, "Beaver is a rodent. {{icon|Beaver}} lives here.")
        self.assertTrue(result.changed)
        self.assertEqual(result.icon_replacements, 1)
        self.assertEqual(result.replacements, 0)

    def test_first_bare_mention_becomes_link(self):
        result = canonicalize_links("Rivers", "An Otter swims. Another Otter dives.", ["Otter"], {})
        self.assertEqual(result.text, "An [[Otter]] swims. Another Otter dives.")
        self.assertEqual(result.replacements, 1)

    def test_first_bare_mention_becomes_icon_when_icon_exists(self):
        result = canonicalize_links("Rivers", "An Otter swims.", ["Otter"], {"Otter": True})
        self.assertEqual(result.text, "An {{icon|Otter}} swims.")

    def test_aliased_link_counts_as_existing_link(self):
        text = "See [[Otter|otters]]. Otter again."
        result = canonicalize_links("Rivers", text, ["Otter"], {})
        self.assertEqual(result.text, text)
        self.assertFalse(result.changed)

    def test_mentions_inside_templates_and_links_are_skipped(self):
        text = "{{infobox|name=Otter}} [[Sea Otter]] and Otter."
        result = canonicalize_links("Rivers", text, ["Otter"], {})
        self.assertEqual(result.text, "{{infobox|name=Otter}} [[Sea Otter]] and [[Otter]].")

    def test_mention_must_be_whole_word(self):
        text = "Otters are not an exact mention."
        result = canonicalize_links("Rivers", text, ["Otter"], {})
        self.assertEqual(result.text, text)

    def test_current_page_and_empty_titles_are_ignored(self):
        text = "Otter is here."
        result = canonicalize_links("Otter", text, ["Otter", "", "  "], {"Otter": True})
        self.assertEqual(result.text, text)
        self.assertFalse(result.changed)

    def test_mentions_inside_html_attributes_are_left_alone(self):
        text = 'Intro<ref name="Otter">source</ref> about <abbr title="Otter facts">otters</abbr>. Otter here.'
        result = canonicalize_links("Rivers", text, ["Otter"], {})
        self.assertEqual(
            result.text,
            'Intro<ref name="Otter">source</ref> about <abbr title="Otter facts">otters</abbr>. [[Otter]] here.',
        )

    def test_attribute_only_mention_is_not_linked(self):
        text = 'Intro<ref name="Otter">source</ref> about otters.'
        result = canonicalize_links("Rivers", text, ["Otter"], {})
        self.assertFalse(result.changed)
        self.assertEqual(result.text, text)
