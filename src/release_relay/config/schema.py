"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SlackConfig(BaseModel):
    """Slack-specific configuration."""

    bot_token: str
    app_token: str
    signing_secret: str
    notify_channel: str
    authorized_channel: str

    @field_validator("bot_token")
    @classmethod
    def validate_bot_token(cls, v: str) -> str:
        """Validate Slack bot token format."""
        if not v.startswith("xoxb-"):
            raise ValueError("Bot token must start with xoxb-")
        return v

    @field_validator("app_token")
    @classmethod
    def validate_app_token(cls, v: str) -> str:
        """Validate Slack app token format."""
        if not v.startswith("xapp-"):
            raise ValueError("App token must start with xapp-")
        return v

    @field_validator("notify_channel", "authorized_channel")
    @classmethod
    def validate_channel(cls, v: str) -> str:
        """Channels are referenced by ID, never by #name."""
        v = v.strip()
        if not v or v.startswith("#"):
            raise ValueError(f"Channel must be a Slack channel ID, got: {v!r}")
        return v


class GitHubConfig(BaseModel):
    """GitHub Actions API configuration."""

    token: str
    owner: str
    repo: str
    api_url: str = "https://api.github.com"
    api_version: str = "2022-11-28"
    timeout: float = Field(10.0, gt=0.0, le=120.0)
    run_page_size: int = Field(1, ge=1, le=100)

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def check_repository(self) -> "GitHubConfig":
        """Validate the owner/repo pair used in API paths."""
        from ..utils.security import validate_repo_name

        if not validate_repo_name(self.full_name):
            raise ValueError(f"Invalid repository format: {self.full_name}. Expected: owner/repo")
        return self

    @property
    def full_name(self) -> str:
        """Repository in owner/repo form."""
        return f"{self.owner}/{self.repo}"


class WorkflowConfig(BaseModel):
    """Branch lock workflow defaults."""

    workflow_file: str = "change-branch-lock-status.yml"
    ref: str = "master"
    target_branch: str = "develop/subscriptions"
    settle_delay: float = Field(5.0, ge=0.0, le=60.0)

    @field_validator("workflow_file")
    @classmethod
    def validate_workflow_file(cls, v: str) -> str:
        """Workflow must be referenced by its file name."""
        if "/" in v or not v.endswith((".yml", ".yaml")):
            raise ValueError(f"Workflow file must be a .yml/.yaml file name: {v}")
        return v


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("/var/log/release-relay/relay.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    file: FileLoggingConfig = FileLoggingConfig()


class RelayConfig(BaseSettings):
    """Root configuration for Release Relay."""

    slack: SlackConfig
    github: GitHubConfig
    workflow: WorkflowConfig = WorkflowConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
    )
