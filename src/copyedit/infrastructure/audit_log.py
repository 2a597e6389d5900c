import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


class EditAuditLog:
    """One JSONL line per wiki call attempt and per edit outcome of a run.

    Lines carry the run id, the site, the operation, the page title (when
    there is one) and the outcome. Response bodies are not kept: page text
    is already in the edit report, and the audit log answers "what did the
    bot do to which page".
    """

    def __init__(self, log_dir: str | Path, run_id: str) -> None:
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.run_id = run_id
        self.file_path = self.log_dir / f"{run_id}.audit.jsonl"
        self.outcomes: Counter[str] = Counter()
        self._handle = self.file_path.open("a", encoding="utf-8")

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def record(
        self,
        site: str,
        operation: str,
        outcome: str,
        *,
        title: str | None = None,
        **details: Any,
    ) -> None:
        if self.closed:
            raise RuntimeError(f"Audit log {self.file_path} is closed.")
        entry = {
            "run_id": self.run_id,
            "at": datetime.now(timezone.utc).isoformat(),
            "site": site,
            "operation": operation,
            "title": title,
            "outcome": outcome,
            **{key: value for key, value in details.items() if value is not None},
        }
        # Single-threaded event loop: one write call per line keeps lines whole.
        self._handle.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        self._handle.flush()
        self.outcomes[outcome] += 1

    def close(self) -> None:
        if not self.closed:
            self._handle.close()
