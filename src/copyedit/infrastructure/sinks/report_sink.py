import json
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from pathvalidate import sanitize_filename

from src.copyedit.application.contracts import EditReportRecord
from src.copyedit.application.ports import ReportSinkPort
from src.config.logger_config import logger

RULE_LINE = "=" * 50


def make_report_path(report_dir: str | Path, run_id: str, suffix: str = ".txt") -> Path:
    name = sanitize_filename(f"copyedit report {run_id}{suffix}", replacement_text="_")
    return Path(report_dir) / name


def _write_sites(fp: TextIO, report: EditReportRecord) -> None:
    for site, pages in report.sites.items():
        fp.write(f"\n>>> SITE: {site}\n")
        if not pages:
            fp.write("    No changes made.\n")
            continue
        for title, summaries in pages.items():
            fp.write(f"    PAGE: {title}\n")
            for summary in summaries:
                fp.write(f"      - {summary}\n")


class TextReportSink(ReportSinkPort):
    """Human-readable report; falls back to a sibling file, then to a stream."""

    def __init__(self, report_path: str | Path, stream: TextIO | None = None) -> None:
        self.report_path = Path(report_path)
        self.fallback_path = self.report_path.with_name(f"{self.report_path.name}.fallback.txt")
        self.stream = stream
        self.written_to: Path | None = None

    def write_report(self, report: EditReportRecord) -> None:
        try:
            self.report_path.parent.mkdir(parents=True, exist_ok=True)
            with self.report_path.open("w", encoding="utf-8") as fp:
                fp.write(f"WIKI EDIT REPORT - {report.generated_at}\n")
                fp.write(f"RUN MODE: {report.run_mode}\n")
                fp.write(RULE_LINE + "\n")
                _write_sites(fp, report)
            self.written_to = self.report_path
            logger.info("Edit report written: report_path={}", str(self.report_path))
            return
        except OSError as exc:
            primary_error = exc
            logger.error("Error writing report {}: {}", str(self.report_path), exc)

        try:
            with self.fallback_path.open("w", encoding="utf-8") as fp:
                fp.write(f"WIKI EDIT REPORT (FALLBACK) - {datetime.now().isoformat()}\n")
                fp.write(f"Original write failed: {primary_error}\n")
                fp.write(RULE_LINE + "\n")
                _write_sites(fp, report)
            self.written_to = self.fallback_path
            logger.warning("Fallback report written to {}", str(self.fallback_path))
            return
        except OSError as exc:
            fallback_error = exc
            logger.error("Fallback report write failed: {}", exc)

        stream = self.stream or sys.stdout
        stream.write("\nFALLBACK FAILED - STREAMING REPORT TO STDOUT\n")
        stream.write(f"WIKI EDIT REPORT (STREAMED) - {datetime.now().isoformat()}\n")
        stream.write(f"Original write failed: {primary_error}\n")
        stream.write(f"Fallback write failed: {fallback_error}\n")
        stream.write(RULE_LINE + "\n")
        _write_sites(stream, report)
        stream.flush()


class JsonReportSink(ReportSinkPort):
    def __init__(self, report_path: str | Path) -> None:
        self.report_path = Path(report_path)

    def write_report(self, report: EditReportRecord) -> None:
        self.report_path.parent.mkdir(parents=True, exist_ok=True)
        self.report_path.write_text(
            json.dumps(report.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        logger.info("Edit report written: report_path={}", str(self.report_path))


class CompositeReportSink(ReportSinkPort):
    def __init__(self, primary: ReportSinkPort, secondary: ReportSinkPort) -> None:
        self.primary = primary
        self.secondary = secondary

    def write_report(self, report: EditReportRecord) -> None:
        try:
            self.primary.write_report(report)
        finally:
            self.secondary.write_report(report)
