import io
import json
import unittest

from src.copyedit.application.contracts import EditReportRecord
from src.copyedit.infrastructure.sinks.report_sink import (
    CompositeReportSink,
    JsonReportSink,
    TextReportSink,
    make_report_path,
)
from tests.utils.tempdir import managed_temp_dir

REPORT = EditReportRecord(
    run_mode="SIMULATION",
    generated_at="2026-01-01T00:00:00+00:00",
    sites={"Wiki A": {"Page": ["fix one", "[DUBIOUS] risky"]}, "Wiki B": {}},
)


class FailingSink:
    def write_report(self, report):
        raise OSError("disk full")


class RecordingSink:
    def __init__(self):
        self.reports = []

    def write_report(self, report):
        self.reports.append(report)


class ReportSinkTests(unittest.TestCase):
    def test_text_report_layout(self):
        with managed_temp_dir("report_text") as tmp:
            sink = TextReportSink(tmp / "report.txt")
            sink.write_report(REPORT)
            content = (tmp / "report.txt").read_text(encoding="utf-8")

        self.assertEqual(
            content,
            "WIKI EDIT REPORT - 2026-01-01T00:00:00+00:00\n"
            "RUN MODE: SIMULATION\n"
            + "=" * 50
            + "\n\n>>> SITE: Wiki A\n"
            "    PAGE: Page\n"
            "      - fix one\n"
            "      - [DUBIOUS] risky\n"
            "\n>>> SITE: Wiki B\n"
            "    No changes made.\n",
        )

    def test_text_report_falls_back_to_stream(self):
        with managed_temp_dir("report_fallback") as tmp:
            blocker = tmp / "blocker"
            blocker.write_text("a file, not a directory", encoding="utf-8")
            stream = io.StringIO()
            sink = TextReportSink(blocker / "report.txt", stream=stream)

            sink.write_report(REPORT)

        self.assertIsNone(sink.written_to)
        output = stream.getvalue()
        self.assertIn("FALLBACK FAILED - STREAMING REPORT TO STDOUT", output)
        self.assertIn("    PAGE: Page\n      - fix one\n", output)

    def test_json_report(self):
        with managed_temp_dir("report_json") as tmp:
            JsonReportSink(tmp / "nested" / "report.json").write_report(REPORT)
            payload = json.loads((tmp / "nested" / "report.json").read_text(encoding="utf-8"))
        self.assertEqual(payload["total_pages_changed"], 1)
        self.assertEqual(payload["sites"]["Wiki A"]["Page"], ["fix one", "[DUBIOUS] risky"])

    def test_composite_writes_secondary_even_when_primary_fails(self):
        secondary = RecordingSink()
        with self.assertRaises(OSError):
            CompositeReportSink(FailingSink(), secondary).write_report(REPORT)
        self.assertEqual(secondary.reports, [REPORT])

    def test_report_path_is_sanitised(self):
        path = make_report_path("reports", "run:1/2", ".txt")
        self.assertEqual(path.parent.name, "reports")
        self.assertNotIn("/", path.name)
        self.assertNotIn(":", path.name)
        self.assertTrue(path.name.endswith(".txt"))
