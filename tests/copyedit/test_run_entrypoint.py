import json
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from src.config.settings import RulesConfig, Settings
from src.copyedit.application.contracts import PageOutcome, SiteRunResult
from src.copyedit.infrastructure.site_config import ConfigError
from src.copyedit.run import run_edit, run_edit_async
from tests.utils.tempdir import managed_temp_dir


class RecordingSink:
    def __init__(self):
        self.reports = []

    def write_report(self, report):
        self.reports.append(report)


def _write_config(tmp, sites=None):
    (tmp / "creds.json").write_text(json.dumps({"username": "Bot@maint", "password": "pw"}), encoding="utf-8")
    if sites is None:
        sites = [
            {"name": "Wiki", "url": "https://wiki.invalid", "api_path": "api.php", "credentials": "creds.json"},
            {"name": "Other", "url": "https://other.invalid", "api_path": "api.php", "credentials": "creds.json"},
        ]
    (tmp / "sites.json").write_text(json.dumps(sites), encoding="utf-8")
    (tmp / "typos.json").write_text(
        json.dumps([{"find": "teh", "replace": "the", "summary": "Typo"}, {"find": "(bad", "replace": "", "summary": ""}]),
        encoding="utf-8",
    )


def _settings(tmp, **overrides):
    return Settings(
        sites_file=tmp / "sites.json",
        rules_dir=tmp,
        report_dir=tmp / "reports",
        audit_dir=tmp / "audit",
        show_progress=False,
        **overrides,
    )


class RunEntrypointTests(unittest.IsolatedAsyncioTestCase):
    async def test_run_wires_sites_rules_and_report(self):
        sink = RecordingSink()
        audit_log = MagicMock()
        workflow = MagicMock()
        workflow.run = AsyncMock(
            side_effect=[
                SiteRunResult(site="Wiki", outcomes=(PageOutcome("Page", "saved", ("Typo",)),)),
                RuntimeError("site down"),
            ]
        )

        with managed_temp_dir("run_entrypoint") as tmp:
            _write_config(tmp)
            with (
                patch("src.copyedit.run.EditAuditLog", return_value=audit_log),
                patch("src.copyedit.run.MediaWikiClient", return_value=MagicMock()) as client_cls,
                patch("src.copyedit.run.EditSiteWorkflow", return_value=workflow) as workflow_cls,
            ):
                report = await run_edit_async(_settings(tmp, rules=RulesConfig(dubious=False)), report_sink=sink)

        self.assertEqual(sink.reports, [report])
        self.assertEqual(report.run_mode, "LIVE")
        self.assertEqual(report.sites, {"Wiki": {"Page": ["Typo"]}, "Other": {}})
        audit_log.close.assert_called_once()
        self.assertEqual(client_cls.call_args_list[0].kwargs["base_url"], "https://wiki.invalid/api.php")
        self.assertIs(client_cls.call_args_list[0].kwargs["audit_log"], audit_log)
        self.assertEqual(client_cls.call_args_list[0].kwargs["site"], "Wiki")

        pipeline = workflow_cls.call_args.kwargs["pipeline"]
        self.assertEqual([rule.find for rule in pipeline.rule_engine.rules], [r"\bteh\b"])
        self.assertEqual(len(pipeline.rule_engine.rejected), 1)

    async def test_simulation_marks_report(self):
        workflow = MagicMock()
        workflow.run = AsyncMock(return_value=SiteRunResult(site="Wiki"))

        with managed_temp_dir("run_entrypoint_sim") as tmp:
            _write_config(tmp, sites=[{"name": "Wiki", "url": "https://w.invalid", "credentials": "creds.json"}])
            with (
                patch("src.copyedit.run.EditAuditLog", return_value=MagicMock()),
                patch("src.copyedit.run.EditSiteWorkflow", return_value=workflow) as workflow_cls,
            ):
                report = await run_edit_async(_settings(tmp, simulate=True), report_sink=RecordingSink())

        self.assertEqual(report.run_mode, "SIMULATION")
        self.assertTrue(workflow_cls.call_args.kwargs["config"].simulate)

    async def test_no_sites_is_a_config_error(self):
        with managed_temp_dir("run_entrypoint_empty") as tmp:
            _write_config(tmp, sites=[])
            with self.assertRaises(ConfigError):
                await run_edit_async(_settings(tmp), report_sink=RecordingSink())


class RunEntrypointSyncTests(unittest.TestCase):
    def test_run_edit_sync_wrapper(self):
        expected = MagicMock()
        with patch("src.copyedit.run.run_edit_async", new=AsyncMock(return_value=expected)):
            self.assertIs(run_edit(Settings()), expected)
