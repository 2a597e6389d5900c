import asyncio
from datetime import datetime, timezone
from pathlib import Path

from src.config.logger_config import logger
from src.config.settings import Settings
from src.copyedit.application.contracts import EditReportRecord, SiteRunResult
from src.copyedit.application.ports import ReportSinkPort
from src.copyedit.application.workflows.edit_site import EditSiteWorkflow, EditWorkflowConfig
from src.copyedit.application.workflows.page_pipeline import PagePipeline, PipelineOptions
from src.copyedit.domain.context import StageContext
from src.copyedit.domain.rules import RuleEngine, enforce_word_boundaries
from src.copyedit.infrastructure.audit_log import EditAuditLog
from src.copyedit.infrastructure.mw_client import MediaWikiClient
from src.copyedit.infrastructure.rule_files import load_rule_definitions
from src.copyedit.infrastructure.site_config import ConfigError, load_sites
from src.copyedit.infrastructure.sinks.report_sink import (
    CompositeReportSink,
    JsonReportSink,
    TextReportSink,
    make_report_path,
)


def build_rule_engine(settings: Settings, ctx: StageContext) -> RuleEngine:
    definitions = load_rule_definitions(settings.rules_dir, settings.rules, ctx)
    enforce_word_boundaries([definition for _, _, definition in definitions], ctx)
    engine = RuleEngine.from_definitions(definitions)
    for source, find, error in engine.rejected:
        logger.error("Rejected rule from {}: find={!r}, error={}", source, find, error)
    return engine


def build_report_sink(report_dir: str | Path, run_id: str) -> ReportSinkPort:
    return CompositeReportSink(
        primary=TextReportSink(make_report_path(report_dir, run_id, ".txt")),
        secondary=JsonReportSink(make_report_path(report_dir, run_id, ".json")),
    )


def build_report(results: list[SiteRunResult], simulate: bool) -> EditReportRecord:
    return EditReportRecord(
        run_mode="SIMULATION" if simulate else "LIVE",
        generated_at=datetime.now(timezone.utc).isoformat(),
        sites={result.site: result.report_entries() for result in results},
    )


async def run_edit_async(
    settings: Settings,
    *,
    report_sink: ReportSinkPort | None = None,
) -> EditReportRecord:
    settings = settings.normalized()
    run_id = _build_run_id()
    ctx = StageContext(log_level=settings.log_level, sink=logger.info)

    sites = load_sites(settings.sites_file)
    ctx.section("INITIALIZATION")
    rule_engine = build_rule_engine(settings, ctx)
    if not sites:
        raise ConfigError(f"No sites configured in {settings.sites_file}")
    ctx.status("simulation_mode", settings.simulate)
    ctx.status("sites_loaded", len(sites), level="light")
    ctx.status("rules_loaded", len(rule_engine.rules), level="light")
    if disabled := settings.rules.disabled():
        ctx.status("rules_disabled", ", ".join(disabled))
    logger.info("Starting wiki trawl [{}]", "SIMULATION" if settings.simulate else "LIVE")

    pipeline = PagePipeline(
        rule_engine,
        PipelineOptions(mw_linting=settings.rules.mw_linting, glossary=settings.rules.glossary),
    )
    config = EditWorkflowConfig(
        simulate=settings.simulate,
        glossary=settings.rules.glossary,
        show_progress=settings.show_progress,
    )

    audit_log = EditAuditLog(settings.audit_dir, run_id=run_id) if settings.audit_dir else None
    results: list[SiteRunResult] = []
    try:
        for site in sites:
            mw_client = MediaWikiClient(base_url=site.api_url, audit_log=audit_log, site=site.name)
            workflow = EditSiteWorkflow(mw_client=mw_client, pipeline=pipeline, config=config, ctx=ctx)
            try:
                results.append(await workflow.run(site))
            except Exception as exc:
                logger.exception("Site {} aborted: {}", site.name, exc)
                results.append(SiteRunResult(site=site.name))
    finally:
        if audit_log is not None:
            audit_log.close()

    report = build_report(results, settings.simulate)
    ctx.section("REPORT_GENERATION")
    ctx.status("total_pages_changed", report.total_pages_changed, level="light")
    sink = report_sink or build_report_sink(settings.report_dir, run_id)
    sink.write_report(report)
    return report


def run_edit(settings: Settings, *, report_sink: ReportSinkPort | None = None) -> EditReportRecord:
    return asyncio.run(run_edit_async(settings, report_sink=report_sink))


def _build_run_id() -> str:
    return datetime.now(timezone.utc).strftime("copyedit_%Y%m%dT%H%M%S%fZ")
