from dataclasses import dataclass, field
from typing import Any

from src.copyedit.domain.models import partition_summaries

# Page statuses that carry summaries worth reporting.
REPORTED_STATUSES = ("dubious_only", "simulated", "saved", "save_failed")


@dataclass(frozen=True)
class SiteConfig:
    name: str
    url: str
    api_path: str
    namespaces: tuple[int, ...]
    username: str
    password: str = field(repr=False, default="")

    @property
    def api_url(self) -> str:
        return f"{self.url.rstrip('/')}/{self.api_path.lstrip('/')}"

    @property
    def bot_user(self) -> str:
        # Bot passwords log in as "User@BotName"; exclusion templates name "User".
        return self.username.split("@")[0]


@dataclass(frozen=True)
class PageRunResult:
    title: str
    original_text: str
    text: str
    summaries: tuple[str, ...] = ()
    failed_stages: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        # Dubious rules leave ``text`` alone but still count as a change to report.
        return self.text != self.original_text or bool(self.dubious_summaries)

    @property
    def normal_summaries(self) -> tuple[str, ...]:
        return partition_summaries(self.summaries)[0]

    @property
    def dubious_summaries(self) -> tuple[str, ...]:
        return partition_summaries(self.summaries)[1]


@dataclass(frozen=True)
class PageOutcome:
    title: str
    status: str
    summaries: tuple[str, ...] = ()


@dataclass(frozen=True)
class SiteRunResult:
    site: str
    outcomes: tuple[PageOutcome, ...] = ()
    login_failed: bool = False

    def report_entries(self) -> dict[str, list[str]]:
        return {
            outcome.title: list(outcome.summaries)
            for outcome in self.outcomes
            if outcome.status in REPORTED_STATUSES
        }

    def counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for outcome in self.outcomes:
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
        return counts


@dataclass(frozen=True)
class EditReportRecord:
    run_mode: str
    generated_at: str
    sites: dict[str, dict[str, list[str]]]

    @property
    def total_pages_changed(self) -> int:
        return sum(len(pages) for pages in self.sites.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_mode": self.run_mode,
            "generated_at": self.generated_at,
            "total_pages_changed": self.total_pages_changed,
            "sites": self.sites,
        }
