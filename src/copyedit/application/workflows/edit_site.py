from dataclasses import dataclass
from types import MappingProxyType

import aiohttp
from tqdm import tqdm
from src.config.logger_config import logger

from src.copyedit.application.contracts import PageOutcome, SiteConfig, SiteRunResult
from src.copyedit.application.ports import WikiClientPort
from src.copyedit.application.workflows.page_pipeline import PagePipeline, decide_publish
from src.copyedit.domain.context import StageContext
from src.copyedit.domain.exclusion import should_edit
from src.copyedit.domain.glossary import GLOSSARY_PAGE, parse_glossary
from src.copyedit.domain.models import SiteResources

MAIN_NAMESPACE = 0


@dataclass(frozen=True)
class EditWorkflowConfig:
    simulate: bool = False
    glossary: bool = True
    show_progress: bool = True
    icon_title_format: str = "File:{} icon.png"
    connector_limit_per_host: int = 2
    connector_ttl_dns_cache: int = 300


class EditSiteWorkflow:
    """Edits every page of one site, one page at a time."""

    def __init__(
        self,
        mw_client: WikiClientPort,
        pipeline: PagePipeline,
        config: EditWorkflowConfig | None = None,
        ctx: StageContext | None = None,
    ) -> None:
        self.mw_client = mw_client
        self.pipeline = pipeline
        self.config = config or EditWorkflowConfig()
        self.ctx = ctx or StageContext()

    async def run(self, site: SiteConfig) -> SiteRunResult:
        self.ctx.section(f"PROCESSING_SITE {site.name}")
        connector = aiohttp.TCPConnector(
            limit_per_host=self.config.connector_limit_per_host,
            ttl_dns_cache=self.config.connector_ttl_dns_cache,
        )
        async with aiohttp.ClientSession(connector=connector) as session:
            if not await self.mw_client.login(session, site.username, site.password):
                logger.error("Login failed for site {}; skipping it.", site.name)
                return SiteRunResult(site=site.name, login_failed=True)
            self.ctx.status("authenticated_user", site.bot_user)

            resources = await self.build_resources(session, site)
            outcomes: list[PageOutcome] = []
            for namespace in site.namespaces:
                titles = await self.mw_client.fetch_all_titles(session, namespace)
                self.ctx.status("namespace", namespace)
                self.ctx.status("pages_found", len(titles), level="light")
                for title in tqdm(
                    titles,
                    total=len(titles),
                    desc=f"{site.name} ns{namespace}",
                    unit="page",
                    leave=True,
                    disable=not self.config.show_progress,
                ):
                    outcomes.append(await self._process_page(session, title, resources))

        result = SiteRunResult(site=site.name, outcomes=tuple(outcomes))
        logger.info("Site {} completed: {}", site.name, result.counts())
        return result

    async def build_resources(self, session: aiohttp.ClientSession, site: SiteConfig) -> SiteResources:
        glossary: dict[str, str] = {}
        if self.config.glossary:
            glossary_text = await self.mw_client.fetch_page_text(session, GLOSSARY_PAGE)
            if glossary_text is None:
                self.ctx.status("Glossary", "page not found, skipping glossary tagging", level="light")
            else:
                glossary = parse_glossary(glossary_text)
                self.ctx.status("Glossary", f"loaded {len(glossary)} terms", level="light")

        page_titles = await self.mw_client.fetch_all_titles(session, MAIN_NAMESPACE)
        self.ctx.status("main_pages_count", len(page_titles), level="light")

        icon_titles = {title: self.config.icon_title_format.format(title) for title in page_titles}
        existing = await self.mw_client.fetch_existing_titles(session, list(icon_titles.values()))
        icon_map = {title: True for title, icon in icon_titles.items() if icon in existing}
        self.ctx.status("icons_found", len(icon_map), level="light")

        return SiteResources(
            page_titles=tuple(page_titles),
            icon_map=MappingProxyType(icon_map),
            glossary=MappingProxyType(glossary),
            bot_user=site.bot_user,
        )

    async def _process_page(
        self,
        session: aiohttp.ClientSession,
        title: str,
        resources: SiteResources,
    ) -> PageOutcome:
        try:
            self.ctx.status("processing_page", title)
            text = await self.mw_client.fetch_page_text(session, title)
            if text is None:
                logger.warning("Could not fetch page {}; skipping.", title)
                return PageOutcome(title=title, status="fetch_failed")

            if not should_edit(text, resources.bot_user):
                logger.info("Skipping {}: Bot exclusion found.", title)
                return PageOutcome(title=title, status="excluded")

            result = self.pipeline.run(title, text, resources, self.ctx)
            decision = decide_publish(result, simulate=self.config.simulate)
            if decision == "unchanged":
                return PageOutcome(title=title, status="unchanged")

            self.ctx.status("summaries", len(result.summaries))
            if decision == "dubious_only":
                logger.info("Dubious only (not saved): {}", title)
                return PageOutcome(title=title, status="dubious_only", summaries=result.summaries)
            if decision == "simulated":
                logger.info("Simulated: {}", title)
                return PageOutcome(title=title, status="simulated", summaries=result.summaries)

            saved = await self.mw_client.edit_page(
                session,
                title,
                result.text,
                summary="; ".join(result.normal_summaries),
                minor=True,
            )
            if saved:
                logger.info("Saved: {}", title)
                return PageOutcome(title=title, status="saved", summaries=result.summaries)
            logger.error("Save failed: {}", title)
            return PageOutcome(title=title, status="save_failed", summaries=result.summaries)
        except Exception as exc:
            logger.exception(
                "Failed processing page {} with error type {}: {}",
                title,
                type(exc).__name__,
                exc,
            )
            return PageOutcome(title=title, status="error")
