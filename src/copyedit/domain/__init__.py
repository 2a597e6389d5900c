"""Deterministic wikitext transformations and their value types."""

from src.copyedit.domain.categories import categories_to_bottom
from src.copyedit.domain.context import StageContext
from src.copyedit.domain.exclusion import should_edit
from src.copyedit.domain.glossary import apply_glossary_tags, parse_glossary
from src.copyedit.domain.headings import repair_headings
from src.copyedit.domain.links import canonicalize_links
from src.copyedit.domain.lists import convert_html_lists
from src.copyedit.domain.models import Rule, RuleCategory, SiteResources, TransformResult
from src.copyedit.domain.rules import RuleEngine, enforce_word_boundaries
from src.copyedit.domain.toc import manage_toc

__all__ = [
    "apply_glossary_tags",
    "canonicalize_links",
    "categories_to_bottom",
    "convert_html_lists",
    "enforce_word_boundaries",
    "manage_toc",
    "parse_glossary",
    "repair_headings",
    "Rule",
    "RuleCategory",
    "RuleEngine",
    "should_edit",
    "SiteResources",
    "StageContext",
    "TransformResult",
]
