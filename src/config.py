"""
Application Configuration Module.

Manages application settings and environment variables using Pydantic for validation.
Provides centralized configuration management with type safety and validation.

Features:
- Environment variable loading and validation
- Secure credential management
- Pipeline tuning (concurrency, retries, cache behaviour)
- Path normalization for output and cache directories
"""

import os
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logger import LogManager


class Settings(BaseSettings):
    """
    Application configuration settings with validation.

    Credential and organization default to empty values so the pipeline can be
    imported without them; the command line entry point rejects empty values
    before doing any network activity.

    Attributes:
        app_name (str): Name of the application
        dev (bool): Human-readable logging
        log_dir (str): Directory for log files
        log_level (int): Logging level (default: info)
        gh_token (SecretStr): GitHub API bearer token
        gh_org (str): Organization whose repositories are ingested
        github_api_url (str): REST API base URL
        data_dir (str): Directory where snapshots are written
        cache_dir (str): Directory of the on-disk response cache
        request_timeout (float): Per-request timeout in seconds
        max_retries (int): Retry cap for rate limit and quota errors
        rate_limit_backoff_seconds (int): First backoff delay for primary rate limits
        quota_backoff_seconds (int): First backoff delay for secondary quotas
        concurrency_strategy (str): "sequential" or "batched" PR aggregation
        concurrency_limit (int): Number of PRs aggregated per batch
        fail_fast (bool): Abort a batch when any PR in it fails
        visibility (str): "all" repositories or only "private" ones
        private_fallback (bool): Use all repositories when none is private
        window_field (str): PR timestamp the time window applies to
        force_cache (bool): Serve only from the cache, never from the network
    """

    # Application settings
    app_name: str = Field(default="Pullscope", description="Application name")
    dev: bool = Field(default=False, description="Debug mode")
    log_dir: str = Field(default="logs", description="Logging directory")
    log_level: int = Field(default=20, description="Logging level, default info")

    # GitHub configuration
    gh_token: SecretStr = Field(default=SecretStr(""), description="GitHub token")
    gh_org: str = Field(default="", description="GitHub organization")
    github_api_url: str = Field(
        default="https://api.github.com", description="GitHub REST API base URL"
    )

    # Storage
    data_dir: str = Field(default="data", description="Snapshot output directory")
    cache_dir: str = Field(default="cache", description="Response cache directory")

    # Request client
    request_timeout: float = Field(default=60.0, description="Request timeout (s)")
    max_retries: int = Field(default=3, ge=0, description="Quota error retry cap")
    rate_limit_backoff_seconds: int = Field(
        default=30, ge=0, description="Primary rate limit backoff base (s)"
    )
    quota_backoff_seconds: int = Field(
        default=60, ge=0, description="Secondary quota backoff base (s)"
    )

    # Pipeline
    concurrency_strategy: Literal["sequential", "batched"] = Field(
        default="batched", description="PR aggregation strategy"
    )
    concurrency_limit: int = Field(default=5, ge=1, description="PRs per batch")
    fail_fast: bool = Field(
        default=False, description="Abort the batch when one PR fails"
    )
    visibility: Literal["all", "private"] = Field(
        default="all", description="Repository visibility filter"
    )
    private_fallback: bool = Field(
        default=True,
        description="Use all repositories when the private filter matches none",
    )
    window_field: Literal["created", "updated"] = Field(
        default="created", description="PR timestamp used for the time window"
    )
    force_cache: bool = Field(default=False, description="Offline cache-only mode")

    @property
    def batch_size(self) -> int:
        """
        Get the effective number of concurrently aggregated PRs.

        Returns:
            int: 1 for the sequential strategy, the concurrency limit otherwise
        """
        if self.concurrency_strategy == "sequential":
            return 1
        return self.concurrency_limit

    @field_validator("data_dir", "cache_dir")
    def ensure_absolute_path(cls, v: str) -> str:
        """
        Ensure storage directory paths are absolute.

        Converts relative paths to absolute paths based on current working directory.

        Args:
            v (str): Directory path to validate

        Returns:
            str: Absolute path to the directory
        """
        if not os.path.isabs(v):
            return os.path.abspath(v)
        return v

    # Configure env file loading
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )


# Create global settings instance
settings = Settings()

# Initialize logging configuration
logger = LogManager(
    app_name=settings.app_name.lower(),
    log_dir=settings.log_dir,
    development=settings.dev,
    level=settings.log_level,
).logger
