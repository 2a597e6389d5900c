import asyncio
import json
from typing import Any, Iterable

import aiohttp
from aiohttp import (
    ClientConnectorError,
    ClientPayloadError,
    ClientResponseError,
    ContentTypeError,
    ServerDisconnectedError,
)
from src.config.logger_config import logger

from src.copyedit.infrastructure.audit_log import EditAuditLog

DEFAULT_USER_AGENT = "copyedit-bot/1.0 (wikitext maintenance bot)"
TITLES_PER_QUERY = 50
# Request fields that must never reach the audit log.
SECRET_FIELDS = ("lgpassword", "lgtoken", "token")
# Edit bodies are logged by length only.
BULKY_FIELDS = ("text",)
RETRYABLE_ERRORS = (
    ClientResponseError,
    ClientConnectorError,
    ServerDisconnectedError,
    asyncio.TimeoutError,
    ClientPayloadError,
    ContentTypeError,
    json.JSONDecodeError,
)


class MediaWikiClient:
    def __init__(
        self,
        base_url: str,
        audit_log: EditAuditLog | None = None,
        site: str | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.base_url = base_url
        self.audit_log = audit_log
        self.site = site or base_url
        self.user_agent = user_agent
        self._csrf_token: str | None = None

    async def login(self, session: aiohttp.ClientSession, username: str, password: str) -> bool:
        token = await self._fetch_token(session, "login")
        if token is None:
            logger.error("Could not obtain a login token from {}", self.base_url)
            return False

        data = await self._request(
            session,
            {
                "action": "login",
                "lgname": username,
                "lgpassword": password,
                "lgtoken": token,
                "format": "json",
            },
            method="POST",
            operation="login",
        )
        if data is None:
            return False

        login = data.get("login", {})
        if login.get("result") != "Success":
            logger.error("Login failed for {}: {}", username, login.get("reason") or login.get("result"))
            return False

        self._csrf_token = None
        logger.info("Logged in to {} as {}", self.base_url, username)
        return True

    async def fetch_all_titles(self, session: aiohttp.ClientSession, namespace: int = 0) -> list[str]:
        params: dict[str, Any] = {
            "action": "query",
            "list": "allpages",
            "apnamespace": str(namespace),
            "aplimit": "500",
            "format": "json",
            "formatversion": "2",
        }
        continue_token: dict[str, Any] = {}
        titles: list[str] = []

        while True:
            req_params = {**params, **continue_token}
            data = await self._request(session, req_params, operation="fetch_all_titles")
            if data is None:
                logger.error("Failed to fetch page list for namespace {}.", namespace)
                break

            for page in data.get("query", {}).get("allpages", []):
                title = str(page.get("title") or "").strip()
                if title:
                    titles.append(title)

            if "continue" not in data:
                break
            continue_token = data["continue"]

        logger.info("Discovered {} pages in namespace {}", len(titles), namespace)
        return titles

    async def fetch_page_text(self, session: aiohttp.ClientSession, title: str) -> str | None:
        params = {
            "action": "query",
            "titles": title,
            "prop": "revisions",
            "rvprop": "content",
            "rvslots": "main",
            "format": "json",
            "formatversion": "2",
        }
        data = await self._request(session, params, operation="fetch_page_text", title=title)
        if data is None:
            return None

        if "error" in data:
            logger.error("API error for page {}: {}", title, data["error"])
            return None

        pages = data.get("query", {}).get("pages", [])
        if not pages or pages[0].get("missing") or pages[0].get("invalid"):
            logger.debug("Page '{}' not found.", title)
            return None

        revisions = pages[0].get("revisions", [])
        if not revisions:
            logger.warning("No content found for page '{}'", title)
            return None
        return self._extract_revision_content(revisions[0])

    async def fetch_existing_titles(
        self,
        session: aiohttp.ClientSession,
        titles: Iterable[str],
    ) -> set[str]:
        pending = list(titles)
        existing: set[str] = set()

        for i in range(0, len(pending), TITLES_PER_QUERY):
            batch = pending[i : i + TITLES_PER_QUERY]
            params = {
                "action": "query",
                "titles": "|".join(batch),
                "prop": "info",
                "format": "json",
                "formatversion": "2",
            }
            data = await self._request(session, params, operation="fetch_existing_titles")
            if data is None:
                logger.warning("Existence check failed for {} titles; treating them as missing.", len(batch))
                continue

            query = data.get("query", {})
            # The API answers with normalised titles; map them back to what was asked.
            asked_for = {str(n.get("to")): str(n.get("from")) for n in query.get("normalized", [])}
            for page in query.get("pages", []):
                if page.get("missing") or page.get("invalid"):
                    continue
                title = str(page.get("title") or "")
                existing.add(asked_for.get(title, title))

        return existing

    async def edit_page(
        self,
        session: aiohttp.ClientSession,
        title: str,
        text: str,
        summary: str,
        minor: bool = True,
    ) -> bool:
        if self._csrf_token is None:
            self._csrf_token = await self._fetch_token(session, "csrf")
        if self._csrf_token is None:
            logger.error("Could not obtain an edit token; page {} not saved.", title)
            self._audit("edit_page", "edit_not_attempted", title=title, summary=summary)
            return False

        params = {
            "action": "edit",
            "title": title,
            "text": text,
            "summary": summary,
            "token": self._csrf_token,
            "bot": "1",
            "nocreate": "1",
            "format": "json",
            "formatversion": "2",
        }
        if minor:
            params["minor"] = "1"

        data = await self._request(session, params, method="POST", operation="edit_page", title=title)
        if data is None:
            self._audit("edit_page", "edit_failed", title=title, summary=summary)
            return False

        if "error" in data:
            error = data["error"]
            code = error.get("code") if isinstance(error, dict) else None
            if code == "badtoken":
                self._csrf_token = None
            logger.error("Edit rejected for page {}: {}", title, error)
            self._audit("edit_page", "edit_rejected", title=title, summary=summary, error=code or str(error))
            return False

        edit = data.get("edit", {})
        saved = edit.get("result") == "Success"
        self._audit(
            "edit_page",
            "edit_saved" if saved else "edit_rejected",
            title=title,
            summary=summary,
            minor=minor,
            revision=edit.get("newrevid"),
            nochange=edit.get("nochange"),
        )
        return saved

    async def _fetch_token(self, session: aiohttp.ClientSession, token_type: str) -> str | None:
        params = {
            "action": "query",
            "meta": "tokens",
            "type": token_type,
            "format": "json",
            "formatversion": "2",
        }
        data = await self._request(session, params, operation=f"fetch_{token_type}_token")
        if data is None:
            return None
        token = data.get("query", {}).get("tokens", {}).get(f"{token_type}token")
        return str(token) if token else None

    async def _request(
        self,
        session: aiohttp.ClientSession,
        params: dict[str, Any],
        retries: int = 3,
        *,
        method: str = "GET",
        operation: str,
        title: str | None = None,
    ) -> dict[str, Any] | None:
        """Call the API, retrying server errors and broken responses with backoff.

        Returns the decoded JSON body, or ``None`` once the call has failed
        for good. Every attempt is written to the audit log.
        """
        timeout = aiohttp.ClientTimeout(total=45, connect=10)
        headers = {"User-Agent": self.user_agent}
        logged_params = self._redacted(params)
        for attempt in range(1, retries + 1):
            if method == "POST":
                request = session.post(self.base_url, data=params, headers=headers, timeout=timeout)
            else:
                request = session.get(self.base_url, params=params, headers=headers, timeout=timeout)
            try:
                async with request as resp:
                    if resp.status >= 500 or resp.status == 429:
                        logger.warning("Server error {}. Attempt {}/{}", resp.status, attempt, retries)
                        raise ClientResponseError(
                            resp.request_info,
                            resp.history,
                            status=resp.status,
                            message="Server Error",
                        )

                    if resp.status != 200:
                        body = await resp.text()
                        logger.error("HTTP {}: {}", resp.status, body)
                        self._audit(
                            operation,
                            "http_error",
                            title=title,
                            attempt=attempt,
                            status=resp.status,
                            params=logged_params,
                        )
                        return None

                    data = await resp.json()
                    self._audit(
                        operation,
                        "success",
                        title=title,
                        attempt=attempt,
                        status=resp.status,
                        params=logged_params,
                        warnings=data.get("warnings"),
                    )
                    return data

            except RETRYABLE_ERRORS as exc:
                self._audit(
                    operation,
                    "retryable_error",
                    title=title,
                    attempt=attempt,
                    status=getattr(exc, "status", None),
                    params=logged_params,
                    error=f"{type(exc).__name__}: {exc}",
                )
                wait_time = 2**attempt
                if attempt == retries:
                    logger.error("Failed after {} attempts. Error: {}", retries, exc)
                    return None
                logger.warning("Connection unstable ({}). Retrying in {}s...", exc, wait_time)
                await asyncio.sleep(wait_time)
            except Exception as exc:
                self._audit(
                    operation,
                    "fatal_error",
                    title=title,
                    attempt=attempt,
                    params=logged_params,
                    error=f"{type(exc).__name__}: {exc}",
                )
                logger.error("Unexpected error while calling {}: {}", operation, exc)
                return None

        return None

    @staticmethod
    def _redacted(params: dict[str, Any]) -> dict[str, Any]:
        redacted: dict[str, Any] = {}
        for key, value in params.items():
            if key in SECRET_FIELDS:
                redacted[key] = "***"
            elif key in BULKY_FIELDS:
                redacted[key] = f"<{len(str(value))} chars>"
            else:
                redacted[key] = value
        return redacted

    def _audit(self, operation: str, outcome: str, *, title: str | None = None, **details: Any) -> None:
        if self.audit_log is None:
            return
        try:
            self.audit_log.record(self.site, operation, outcome, title=title, **details)
        except (OSError, RuntimeError) as exc:
            logger.warning("Failed to write audit entry for {}: {}", operation, exc)

    @staticmethod
    def _extract_revision_content(revision: dict[str, Any]) -> str:
        content = revision.get("content")
        if isinstance(content, str):
            return content

        slots = revision.get("slots")
        if not isinstance(slots, dict):
            return ""
        main_slot = slots.get("main")
        if not isinstance(main_slot, dict):
            return ""

        slot_content = main_slot.get("content")
        if isinstance(slot_content, str):
            return slot_content

        legacy_content = main_slot.get("*")
        if isinstance(legacy_content, str):
            return legacy_content

        return ""
