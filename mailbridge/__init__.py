"""mailbridge: turn mailbox messages into Jira issues and comments.

Public API re-exported here for convenience::

    from mailbridge import SyncOrchestrator, classify, sanitize
"""

from .classifier import classify
from .config import BridgeConfig, ImapConfig, RetryConfig, TrackerConfig
from .dispatcher import AttachmentDispatcher
from .errors import (
    AttachmentDispatchFailed,
    DanglingTicketReference,
    MailboxOperationFailed,
    NoBodyFound,
    SyncError,
    TrackerRejected,
    TrackerTransportFailed,
)
from .extractor import ExtractedBody, extract
from .imap_client import ImapMailbox
from .interface import Mailbox, Tracker
from .models import (
    AttachmentPart,
    Classification,
    Commented,
    Created,
    Failed,
    InlinePart,
    IssueLookup,
    MailMessage,
    MessagePart,
    NewIssue,
    Reply,
    RunReport,
    Sender,
    Skipped,
    SyncOutcome,
    TicketPayload,
)
from .orchestrator import SyncOrchestrator
from .parser import MimeParser
from .payload import PayloadTemplate, PayloadTemplates
from .sanitizer import BodyType, sanitize
from .service import BridgeService
from .tracker import JiraTracker

__all__ = [
    "AttachmentDispatchFailed",
    "AttachmentDispatcher",
    "AttachmentPart",
    "BodyType",
    "BridgeConfig",
    "BridgeService",
    "Classification",
    "Commented",
    "Created",
    "DanglingTicketReference",
    "ExtractedBody",
    "Failed",
    "ImapConfig",
    "ImapMailbox",
    "InlinePart",
    "IssueLookup",
    "JiraTracker",
    "MailMessage",
    "Mailbox",
    "MailboxOperationFailed",
    "MessagePart",
    "MimeParser",
    "NewIssue",
    "NoBodyFound",
    "PayloadTemplate",
    "PayloadTemplates",
    "Reply",
    "RetryConfig",
    "RunReport",
    "Sender",
    "Skipped",
    "SyncError",
    "SyncOrchestrator",
    "SyncOutcome",
    "TicketPayload",
    "Tracker",
    "TrackerConfig",
    "TrackerRejected",
    "TrackerTransportFailed",
    "classify",
    "extract",
    "sanitize",
]
