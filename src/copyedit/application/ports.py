from typing import Any, Iterable, Protocol, runtime_checkable

from src.copyedit.application.contracts import EditReportRecord


@runtime_checkable
class WikiClientPort(Protocol):
    async def login(self, session: Any, username: str, password: str) -> bool: ...
    """Authenticate the session; False when the wiki refuses."""

    async def fetch_all_titles(self, session: Any, namespace: int = 0) -> list[str]: ...
    """All page titles of one namespace."""

    async def fetch_page_text(self, session: Any, title: str) -> str | None: ...
    """Current wikitext of a page, None when missing or unreadable."""

    async def fetch_existing_titles(self, session: Any, titles: Iterable[str]) -> set[str]: ...
    """Subset of ``titles`` that exist on the wiki."""

    async def edit_page(self, session: Any, title: str, text: str, summary: str, minor: bool = True) -> bool: ...
    """Save new text; True on success."""


@runtime_checkable
class ReportSinkPort(Protocol):
    def write_report(self, report: EditReportRecord) -> None: ...
    """Persist the run report."""
