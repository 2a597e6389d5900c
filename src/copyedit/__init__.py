"""Copy-editing bot package."""

from src.copyedit.application.contracts import EditReportRecord
from src.copyedit.run import run_edit, run_edit_async

__all__ = [
    "EditReportRecord",
    "run_edit",
    "run_edit_async",
]
