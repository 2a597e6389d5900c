from dataclasses import dataclass
from typing import Callable

from src.config.logger_config import logger
from src.copyedit.application.contracts import PageRunResult
from src.copyedit.domain import categories, lists
from src.copyedit.domain.categories import categories_to_bottom
from src.copyedit.domain.context import StageContext
from src.copyedit.domain.glossary import SUMMARY as GLOSSARY_SUMMARY
from src.copyedit.domain.glossary import apply_glossary_tags
from src.copyedit.domain.headings import repair_headings
from src.copyedit.domain.links import canonicalize_links
from src.copyedit.domain.lists import convert_html_lists
from src.copyedit.domain.models import SiteResources
from src.copyedit.domain.rules import RuleEngine
from src.copyedit.domain.toc import manage_toc

LINK_SUMMARY = "icon/link conversions"

StageOutput = tuple[str, tuple[str, ...]]
Stage = Callable[[str, str, SiteResources, StageContext], StageOutput]


@dataclass(frozen=True)
class PipelineOptions:
    mw_linting: bool = True
    glossary: bool = True


class PagePipeline:
    """Runs the transformation stages over one page in their fixed order.

    The link stage always runs before the rule engine, so rules see the
    canonical link/icon form. A stage that raises is skipped: the page
    keeps the text it had before that stage and the next stage runs.
    """

    def __init__(self, rule_engine: RuleEngine, options: PipelineOptions | None = None) -> None:
        self.rule_engine = rule_engine
        self.options = options or PipelineOptions()

    def stages(self) -> list[tuple[str, Stage]]:
        stages: list[tuple[str, Stage]] = [("page_links", self._links)]
        if self.options.mw_linting:
            stages.extend(
                [
                    ("toc", self._toc),
                    ("headings", self._headings),
                    ("categories", self._categories),
                    ("html_lists", self._lists),
                ]
            )
        if self.options.glossary:
            stages.append(("glossary", self._glossary))
        stages.append(("rules", self._rules))
        return stages

    def run(
        self,
        title: str,
        text: str,
        resources: SiteResources,
        ctx: StageContext | None = None,
    ) -> PageRunResult:
        ctx = ctx or StageContext()
        current = text
        summaries: list[str] = []
        failed: list[str] = []

        for name, stage in self.stages():
            try:
                new_text, stage_summaries = stage(title, current, resources, ctx)
            except Exception as exc:
                failed.append(name)
                logger.exception("Stage {} failed on page {}: {}", name, title, exc)
                ctx.status(f"{name}_error", str(exc))
                continue
            current = new_text
            summaries.extend(stage_summaries)

        return PageRunResult(
            title=title,
            original_text=text,
            text=current,
            summaries=tuple(summaries),
            failed_stages=tuple(failed),
        )

    @staticmethod
    def _links(title: str, text: str, resources: SiteResources, ctx: StageContext) -> StageOutput:
        result = canonicalize_links(title, text, resources.page_titles, resources.icon_map, ctx)
        ctx.status("Page link added", result.changed, level="light")
        return result.text, (LINK_SUMMARY,) if result.changed else ()

    @staticmethod
    def _toc(title: str, text: str, resources: SiteResources, ctx: StageContext) -> StageOutput:
        result = manage_toc(text, ctx)
        if not result.changed:
            return text, ()
        return result.text, (result.summary,)

    @staticmethod
    def _headings(title: str, text: str, resources: SiteResources, ctx: StageContext) -> StageOutput:
        result = repair_headings(text, ctx)
        return result.text, result.summaries

    @staticmethod
    def _categories(title: str, text: str, resources: SiteResources, ctx: StageContext) -> StageOutput:
        result = categories_to_bottom(text, ctx)
        if not result.changed:
            return text, ()
        return result.text, (categories.summary_for(result),)

    @staticmethod
    def _lists(title: str, text: str, resources: SiteResources, ctx: StageContext) -> StageOutput:
        result = convert_html_lists(text, ctx)
        if not result.changed:
            return text, ()
        return result.text, (lists.summary_for(result),)

    @staticmethod
    def _glossary(title: str, text: str, resources: SiteResources, ctx: StageContext) -> StageOutput:
        if not resources.glossary:
            return text, ()
        result = apply_glossary_tags(text, resources.glossary, ctx)
        for error in result.errors:
            logger.warning("Glossary term failed on page {}: {}", title, error)
        return result.text, (GLOSSARY_SUMMARY,) if result.changed else ()

    def _rules(self, title: str, text: str, resources: SiteResources, ctx: StageContext) -> StageOutput:
        result = self.rule_engine.apply(text, ctx)
        for error in result.errors:
            logger.warning("Rule failed on page {}: {}", title, error)
        ctx.status("rules_applied", len(result.applications))
        return result.text, result.summaries


def decide_publish(result: PageRunResult, simulate: bool) -> str:
    """One of ``unchanged``, ``dubious_only``, ``simulated`` or ``publish``."""
    if not result.changed:
        return "unchanged"
    if not result.normal_summaries and not simulate:
        return "dubious_only"
    if simulate:
        return "simulated"
    return "publish"
