"""Jira REST client implementing the :class:`Tracker` interface."""

from __future__ import annotations

from urllib.parse import quote

import httpx
import structlog

from .config import RetryConfig, TrackerConfig
from .errors import TrackerRejected, TrackerTransportFailed
from .interface import Tracker
from .models import IssueLookup
from .payload import PayloadTemplates
from .retry import with_retry

logger = structlog.get_logger()


class JiraTracker(Tracker):
    """Talks to ``/rest/api/<version>/issue`` with basic auth.

    Call :meth:`start` before use and :meth:`stop` on shutdown.  Connection
    failures are retried per :class:`RetryConfig`; any other transport error
    or a non-2xx answer surfaces immediately.
    """

    def __init__(
        self,
        config: TrackerConfig,
        templates: PayloadTemplates,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._config = config
        self._templates = templates
        self._retry_config = retry_config or RetryConfig()
        self._client: httpx.AsyncClient | None = None

    @property
    def api_root(self) -> str:
        return f"/rest/api/{self._config.api_version}"

    def _issue_url(self, key: str, suffix: str = "") -> str:
        return f"{self.api_root}/issue/{quote(key, safe='')}{suffix}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            auth=httpx.BasicAuth(
                self._config.username,
                self._config.password.get_secret_value(),
            ),
            timeout=httpx.Timeout(self._config.timeout_seconds),
        )
        logger.info("tracker_client_started", base_url=self._config.base_url)

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("tracker_client_stopped")

    # ------------------------------------------------------------------
    # Tracker interface
    # ------------------------------------------------------------------

    async def create_issue(self, summary: str, description: str) -> str:
        body = self._templates.new_issue.render(summary, description)
        response = await self._send(
            "POST",
            f"{self.api_root}/issue",
            content=body,
            headers={"Content-Type": "application/json"},
        )
        _raise_for_status("create_issue", response)
        key = _response_key(response)
        if not key:
            raise TrackerRejected("create_issue", response.status_code, response.text)
        logger.info("issue_created", ticket_key=key)
        return key

    async def get_issue(self, key: str) -> IssueLookup:
        response = await self._send("GET", self._issue_url(key), params={"fields": "key"})
        if response.status_code == 404:
            return IssueLookup.NOT_FOUND
        _raise_for_status("get_issue", response)
        return IssueLookup.EXISTS

    async def add_comment(self, key: str, summary: str, description: str) -> None:
        body = self._templates.comment.render(summary, description)
        response = await self._send(
            "POST",
            self._issue_url(key, "/comment"),
            content=body,
            headers={"Content-Type": "application/json"},
        )
        _raise_for_status("add_comment", response)
        logger.info("comment_added", ticket_key=key)

    async def add_attachment(self, key: str, filename: str, content: bytes) -> None:
        response = await self._send(
            "POST",
            self._issue_url(key, "/attachments"),
            files={"file": (filename, content)},
            headers={"X-Atlassian-Token": "no-check"},
        )
        _raise_for_status("add_attachment", response)
        logger.info("attachment_added", ticket_key=key, filename=filename, size=len(content))

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _send(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        if self._client is None:
            raise AssertionError("Tracker client not started")
        client = self._client

        @with_retry(self._retry_config)
        async def _request() -> httpx.Response:
            return await client.request(method, url, **kwargs)  # type: ignore[arg-type]

        try:
            return await _request()
        except httpx.TransportError as exc:
            logger.warning("tracker_unreachable", method=method, url=url, error=str(exc))
            raise TrackerTransportFailed(f"{method} {url}: {exc}") from exc


def _raise_for_status(operation: str, response: httpx.Response) -> None:
    if not response.is_success:
        logger.error(
            "tracker_rejected",
            operation=operation,
            status_code=response.status_code,
            response=response.text,
        )
        raise TrackerRejected(operation, response.status_code, response.text)


def _response_key(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return ""
    if not isinstance(data, dict):
        return ""
    return str(data.get("key") or "")
