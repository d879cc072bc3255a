"""IMAP mailbox wrapping stdlib imaplib with asyncio.to_thread."""

from __future__ import annotations

import asyncio
import imaplib

import structlog

from .config import ImapConfig
from .errors import MailboxOperationFailed
from .interface import Mailbox
from .models import MailMessage
from .parser import MimeParser

logger = structlog.get_logger()


class ImapMailbox(Mailbox):
    """Async-friendly IMAP mailbox.

    "Unprocessed" means the message lacks the configured keyword (see
    :attr:`ImapConfig.processed_keyword`), independent of ``\\Seen``.
    Messages are fetched with ``BODY.PEEK[]`` so polling never marks them
    read.  All blocking ``imaplib`` operations are wrapped with
    ``asyncio.to_thread()``.
    """

    def __init__(self, config: ImapConfig, parser: MimeParser | None = None) -> None:
        self._config = config
        self._parser = parser or MimeParser()
        self._conn: imaplib.IMAP4_SSL | imaplib.IMAP4 | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Connect, login, and select the configured mailbox."""
        try:
            await asyncio.to_thread(self._connect_sync)
        except (imaplib.IMAP4.error, OSError) as exc:
            self._conn = None
            raise MailboxOperationFailed(f"cannot open {self._config.mailbox}: {exc}") from exc
        logger.info(
            "imap_connected",
            host=self._config.host,
            mailbox=self._config.mailbox,
        )

    def _connect_sync(self) -> None:
        if self._config.use_ssl:
            self._conn = imaplib.IMAP4_SSL(self._config.host, self._config.port)
        else:
            self._conn = imaplib.IMAP4(self._config.host, self._config.port)
        self._conn.login(self._config.username, self._config.password.get_secret_value())
        status, data = self._conn.select(_quote(self._config.mailbox))
        if status != "OK":
            raise imaplib.IMAP4.error(f"SELECT failed: {data!r}")

    async def disconnect(self) -> None:
        """Close mailbox and logout."""
        if self._conn is not None:
            await asyncio.to_thread(self._disconnect_sync)
            self._conn = None
            logger.info("imap_disconnected")

    def _disconnect_sync(self) -> None:
        assert self._conn is not None
        try:
            self._conn.close()
        except (imaplib.IMAP4.error, OSError):
            pass
        try:
            self._conn.logout()
        except (imaplib.IMAP4.error, OSError):
            pass

    async def is_connected(self) -> bool:
        """Check connection liveness with a NOOP command."""
        if self._conn is None:
            return False
        try:
            status, _ = await asyncio.to_thread(self._conn.noop)
            return status == "OK"
        except (imaplib.IMAP4.error, OSError):
            return False

    # ------------------------------------------------------------------
    # Mailbox interface
    # ------------------------------------------------------------------

    async def list_unprocessed(self) -> list[MailMessage]:
        self._require_connection()
        try:
            return await asyncio.to_thread(self._fetch_unprocessed)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxOperationFailed(f"listing messages failed: {exc}") from exc

    async def mark_processed(self, uid: str) -> None:
        self._require_connection()
        try:
            await asyncio.to_thread(self._mark_sync, uid)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxOperationFailed(f"marking {uid} failed: {exc}") from exc
        logger.debug("imap_message_marked", uid=uid, done_folder=self._config.done_folder)

    # ------------------------------------------------------------------
    # Synchronous helpers (run in thread)
    # ------------------------------------------------------------------

    def _require_connection(self) -> None:
        if self._conn is None:
            raise MailboxOperationFailed("Not connected")

    def _fetch_unprocessed(self) -> list[MailMessage]:
        assert self._conn is not None
        criteria = f"UNDELETED UNKEYWORD {self._config.processed_keyword}"
        status, data = self._conn.uid("SEARCH", None, criteria)
        if status != "OK":
            raise imaplib.IMAP4.error(f"SEARCH failed: {data!r}")
        if not data or not data[0]:
            return []

        results: list[MailMessage] = []
        for uid_bytes in data[0].split():
            uid = uid_bytes.decode()
            raw_bytes = self._fetch_one(uid)
            if raw_bytes is None:
                # Left unmarked, so the next poll tries again
                logger.warning("imap_fetch_failed", uid=uid)
                continue
            try:
                results.append(self._parser.parse(uid, raw_bytes))
            except Exception:
                logger.exception("imap_parse_failed", uid=uid, size=len(raw_bytes))

        logger.debug("imap_poll_complete", fetched=len(results))
        return results

    def _fetch_one(self, uid: str) -> bytes | None:
        assert self._conn is not None
        status, msg_data = self._conn.uid("FETCH", uid, "(BODY.PEEK[])")
        if status != "OK" or not msg_data:
            return None
        for item in msg_data:
            if isinstance(item, tuple) and len(item) >= 2 and isinstance(item[1], bytes):
                return item[1]
        return None

    def _mark_sync(self, uid: str) -> None:
        assert self._conn is not None
        flag = f"({self._config.processed_keyword})"
        status, data = self._conn.uid("STORE", uid, "+FLAGS", flag)
        if status != "OK":
            raise imaplib.IMAP4.error(f"STORE failed: {data!r}")

        # The keyword alone excludes the message from later polls; the move
        # only tidies the mailbox.
        if self._config.done_folder:
            try:
                self._move_sync(uid, self._config.done_folder)
            except (imaplib.IMAP4.error, OSError) as exc:
                logger.warning(
                    "imap_move_failed",
                    uid=uid,
                    done_folder=self._config.done_folder,
                    error=str(exc),
                )

    def _move_sync(self, uid: str, folder: str) -> None:
        assert self._conn is not None
        status, data = self._conn.uid("MOVE", uid, _quote(folder))
        if status != "OK":
            raise imaplib.IMAP4.error(f"MOVE failed: {data!r}")


def _quote(mailbox: str) -> str:
    """Quote a mailbox name for imaplib, which sends arguments verbatim."""
    if mailbox.startswith('"') or not any(c in mailbox for c in ' "\\(){%*]'):
        return mailbox
    escaped = mailbox.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
