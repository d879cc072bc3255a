"""Shared test fixtures for the mailbridge test suite."""

from __future__ import annotations

from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path

import pytest

from mailbridge.config import BridgeConfig, ImapConfig, RetryConfig, TrackerConfig
from mailbridge.errors import (
    MailboxOperationFailed,
    TrackerRejected,
    TrackerTransportFailed,
)
from mailbridge.interface import Mailbox, Tracker
from mailbridge.models import (
    AttachmentPart,
    InlinePart,
    IssueLookup,
    MailMessage,
    MessagePart,
    Sender,
)
from mailbridge.payload import PayloadTemplate, PayloadTemplates

NEW_ISSUE_TEMPLATE = (
    '{"fields": {"project": {"key": "OPS"}, "summary": "%SUMMARY%", '
    '"description": "%DESCRIPTION%", "issuetype": {"name": "Task"}}}'
)
COMMENT_TEMPLATE = '{"body": "*%SUMMARY%*\\n\\n%DESCRIPTION%"}'


@pytest.fixture
def imap_config() -> ImapConfig:
    return ImapConfig(
        host="imap.test.com",
        port=993,
        use_ssl=True,
        username="testuser",
        password="testpass",
        mailbox="INBOX",
        processed_keyword="$TicketSynced",
    )


@pytest.fixture
def template_files(tmp_path: Path) -> tuple[Path, Path]:
    new_issue = tmp_path / "new_issue.json"
    new_issue.write_text(NEW_ISSUE_TEMPLATE, encoding="utf-8")
    comment = tmp_path / "add_comment.json"
    comment.write_text(COMMENT_TEMPLATE, encoding="utf-8")
    return new_issue, comment


@pytest.fixture
def tracker_config(template_files: tuple[Path, Path]) -> TrackerConfig:
    new_issue, comment = template_files
    return TrackerConfig(
        base_url="https://jira.test.com",
        api_version="2",
        username="bot",
        password="token",
        timeout_seconds=5.0,
        new_issue_template=str(new_issue),
        comment_template=str(comment),
    )


@pytest.fixture
def retry_config() -> RetryConfig:
    return RetryConfig(
        max_attempts=3,
        initial_wait_seconds=0.01,
        max_wait_seconds=0.05,
        multiplier=2.0,
    )


@pytest.fixture
def templates() -> PayloadTemplates:
    return PayloadTemplates(
        new_issue=PayloadTemplate(name="new_issue.json", text=NEW_ISSUE_TEMPLATE),
        comment=PayloadTemplate(name="add_comment.json", text=COMMENT_TEMPLATE),
    )


@pytest.fixture
def bridge_config(
    imap_config: ImapConfig,
    tracker_config: TrackerConfig,
    retry_config: RetryConfig,
) -> BridgeConfig:
    return BridgeConfig(
        poll_interval_seconds=0.01,
        health_port=18080,
        imap=imap_config,
        tracker=tracker_config,
        retry=retry_config,
    )


# ------------------------------------------------------------------
# Sample EML builders
# ------------------------------------------------------------------


def _build_plain_email(
    *,
    subject: str = "Test Subject",
    from_addr: str = "Alice Example <alice@example.com>",
    to_addr: str = "support@example.com",
    body: str = "Hello, World!",
) -> bytes:
    """Build a simple plain-text email as raw bytes."""
    msg = MIMEText(body, "plain", "utf-8")
    msg["Subject"] = subject
    msg["From"] = from_addr
    msg["To"] = to_addr
    msg["Message-ID"] = "<test-001@example.com>"
    msg["Date"] = "Mon, 01 Jun 2025 12:00:00 +0000"
    return msg.as_bytes()


def _build_html_email(*, body_html: str = "<p>Hello</p>") -> bytes:
    msg = MIMEText(body_html, "html", "utf-8")
    msg["Subject"] = "HTML Email"
    msg["From"] = "sender@example.com"
    msg["To"] = "support@example.com"
    return msg.as_bytes()


def _build_multipart_email(
    *,
    subject: str = "Multipart Email",
    body_text: str | None = "Plain body",
    body_html: str | None = "<p>HTML body</p>",
    attachments: list[tuple[str, str, bytes]] | None = None,
) -> bytes:
    """Build a multipart email with text, HTML, and optional attachments."""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = subject
    msg["From"] = "Bob <bob@example.com>"
    msg["To"] = "support@example.com"

    alt = MIMEMultipart("alternative")
    if body_text is not None:
        alt.attach(MIMEText(body_text, "plain", "utf-8"))
    if body_html is not None:
        alt.attach(MIMEText(body_html, "html", "utf-8"))
    msg.attach(alt)

    for filename, content_type, payload in attachments or []:
        maintype, subtype = content_type.split("/", 1)
        part = MIMEBase(maintype, subtype)
        part.set_payload(payload)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        msg.attach(part)

    return msg.as_bytes()


@pytest.fixture
def plain_eml_bytes() -> bytes:
    return _build_plain_email()


@pytest.fixture
def multipart_eml_bytes() -> bytes:
    return _build_multipart_email(
        attachments=[
            ("report.pdf", "application/pdf", b"%PDF-1.4 fake pdf content"),
            ("data.csv", "text/csv", b"col1,col2\na,b\n"),
        ],
    )


# ------------------------------------------------------------------
# Message builders and collaborator stubs
# ------------------------------------------------------------------


def make_message(
    uid: str = "1",
    *,
    subject: str = "Login broken",
    body: str | None = "It crashes on start",
    content_type: str = "text/plain",
    attachments: list[tuple[str, bytes]] | None = None,
    sender: Sender | None = None,
) -> MailMessage:
    parts: list[MessagePart] = []
    if body is not None:
        parts.append(InlinePart(content_type=content_type, payload=body.encode("utf-8")))
    for filename, payload in attachments or []:
        parts.append(AttachmentPart(filename=filename, payload=payload))
    return MailMessage(
        uid=uid,
        subject=subject,
        sender=sender or Sender(name="Alice", address="alice@example.com"),
        parts=tuple(parts),
    )


class FakeMailbox(Mailbox):
    """In-memory mailbox honouring the processed-marker contract."""

    def __init__(self, messages: list[MailMessage] | None = None) -> None:
        self.messages: list[MailMessage] = list(messages or [])
        self.processed: set[str] = set()
        self.mark_calls: list[str] = []
        self.fail_listing = False
        self.fail_marking: set[str] = set()
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def list_unprocessed(self) -> list[MailMessage]:
        if self.fail_listing:
            raise MailboxOperationFailed("mailbox unreachable")
        return [m for m in self.messages if m.uid not in self.processed]

    async def mark_processed(self, uid: str) -> None:
        self.mark_calls.append(uid)
        if uid in self.fail_marking:
            raise MailboxOperationFailed(f"STORE failed for {uid}")
        self.processed.add(uid)


class FakeTracker(Tracker):
    """Records every call; failures are injected per operation."""

    def __init__(self, existing: set[str] | None = None) -> None:
        self.existing: set[str] = set(existing or ())
        self.calls: list[tuple] = []
        self.next_number = 100
        self.project = "OPS"
        self.fail_create: Exception | None = None
        self.fail_get: Exception | None = None
        self.fail_comment: Exception | None = None
        self.fail_attachments: dict[str, Exception] = {}

    def calls_named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    async def create_issue(self, summary: str, description: str) -> str:
        self.calls.append(("create_issue", summary, description))
        if self.fail_create is not None:
            raise self.fail_create
        self.next_number += 1
        key = f"{self.project}-{self.next_number}"
        self.existing.add(key)
        return key

    async def get_issue(self, key: str) -> IssueLookup:
        self.calls.append(("get_issue", key))
        if self.fail_get is not None:
            raise self.fail_get
        return IssueLookup.EXISTS if key in self.existing else IssueLookup.NOT_FOUND

    async def add_comment(self, key: str, summary: str, description: str) -> None:
        self.calls.append(("add_comment", key, summary, description))
        if self.fail_comment is not None:
            raise self.fail_comment

    async def add_attachment(self, key: str, filename: str, content: bytes) -> None:
        self.calls.append(("add_attachment", key, filename, content))
        if filename in self.fail_attachments:
            raise self.fail_attachments[filename]


def rejected(operation: str = "create_issue", status_code: int = 400) -> TrackerRejected:
    return TrackerRejected(operation, status_code, '{"errorMessages": ["bad request"]}')


def unreachable() -> TrackerTransportFailed:
    return TrackerTransportFailed("POST /rest/api/2/issue: connection refused")


@pytest.fixture
def mailbox() -> FakeMailbox:
    return FakeMailbox()


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()
