import json
import unittest

from src.copyedit.infrastructure.audit_log import EditAuditLog
from tests.utils.tempdir import managed_temp_dir


class EditAuditLogTests(unittest.TestCase):
    def test_record_appends_one_line_per_entry(self):
        with managed_temp_dir("audit_append") as tmp:
            audit_log = EditAuditLog(tmp / "audit", run_id="run_1")
            try:
                audit_log.record("Wiki", "fetch_page_text", "success", title="Beaver", attempt=1)
                audit_log.record("Wiki", "edit_page", "edit_saved", title="Beaver", revision=7, nochange=None)
            finally:
                audit_log.close()

            lines = (tmp / "audit" / "run_1.audit.jsonl").read_text(encoding="utf-8").splitlines()
            entries = [json.loads(line) for line in lines]

        self.assertEqual(len(entries), 2)
        self.assertEqual(entries[0]["run_id"], "run_1")
        self.assertEqual(entries[0]["site"], "Wiki")
        self.assertEqual(entries[1]["outcome"], "edit_saved")
        self.assertEqual(entries[1]["revision"], 7)
        self.assertNotIn("nochange", entries[1])
        self.assertEqual(audit_log.outcomes, {"success": 1, "edit_saved": 1})

    def test_closed_log_rejects_entries(self):
        with managed_temp_dir("audit_closed") as tmp:
            audit_log = EditAuditLog(tmp, run_id="run_2")
            audit_log.close()
            audit_log.close()
            self.assertTrue(audit_log.closed)
            with self.assertRaises(RuntimeError):
                audit_log.record("Wiki", "late", "success")
