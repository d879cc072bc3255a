"""Bridge configuration loaded from environment variables.

Every setting can be overridden via env vars; the whole tree is built once
at startup and handed to the components that need it.
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class ImapConfig(BaseSettings):
    """IMAP server connection settings."""

    model_config = {"env_prefix": "IMAP_"}

    host: str = Field(description="IMAP server hostname")
    port: int = Field(default=993, description="IMAP server port")
    use_ssl: bool = Field(default=True, description="Use SSL/TLS connection")
    username: str = Field(description="IMAP login username")
    password: SecretStr = Field(description="IMAP login password")
    mailbox: str = Field(default="INBOX", description="IMAP mailbox/folder to poll")
    processed_keyword: str = Field(
        default="$TicketSynced",
        description="IMAP keyword set on messages already reflected in the tracker",
    )
    done_folder: str | None = Field(
        default=None,
        description="Folder processed messages are moved to (None keeps them in place)",
    )


class TrackerConfig(BaseSettings):
    """Jira REST API settings."""

    model_config = {"env_prefix": "JIRA_"}

    base_url: str = Field(description="Base URL of the Jira instance")
    api_version: str = Field(default="2", description="Jira REST API version")
    username: str = Field(description="Jira user for basic auth")
    password: SecretStr = Field(description="Jira password or API token")
    timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")
    new_issue_template: str = Field(
        default="templates/new_issue.json",
        description="Path to the create-issue payload template",
    )
    comment_template: str = Field(
        default="templates/add_comment.json",
        description="Path to the add-comment payload template",
    )


class RetryConfig(BaseSettings):
    """Retry / backoff settings for tracker connection failures."""

    model_config = {"env_prefix": "RETRY_"}

    max_attempts: int = Field(default=3, description="Maximum attempts per tracker request")
    initial_wait_seconds: float = Field(
        default=1.0,
        description="Initial backoff wait in seconds",
    )
    max_wait_seconds: float = Field(
        default=30.0,
        description="Maximum backoff wait in seconds",
    )
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")


class BridgeConfig(BaseSettings):
    """Root configuration for a bridge instance.

    Nested configs are populated from their own env-var prefixes.
    """

    model_config = {"env_prefix": "BRIDGE_"}

    poll_interval_seconds: float = Field(
        default=60.0,
        description="Seconds between mailbox poll cycles",
    )
    health_port: int = Field(default=8080, description="Port for K8s health probe endpoints")
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    imap: ImapConfig = Field(default_factory=ImapConfig)
    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
