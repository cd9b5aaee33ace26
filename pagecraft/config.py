"""pagecraft configuration loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class RetryConfig(BaseSettings):
    """Retry / backoff settings driven by Tenacity."""

    model_config = {"env_prefix": "PAGECRAFT_RETRY_"}

    max_attempts: int = Field(default=3, description="Maximum attempts per Notion request")
    initial_wait_seconds: float = Field(
        default=1.0,
        description="Initial backoff wait in seconds",
    )
    max_wait_seconds: float = Field(
        default=20.0,
        description="Maximum backoff wait in seconds",
    )
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")


class NotionConfig(BaseSettings):
    """Notion API client settings."""

    model_config = {"env_prefix": "PAGECRAFT_NOTION_"}

    api_key: str | None = Field(
        default=None,
        description="Integration token (secret_... or ntn_...)",
    )
    base_url: str = Field(
        default="https://api.notion.com/v1",
        description="Base URL of the Notion API",
    )
    api_version: str = Field(
        default="2022-06-28",
        description="Value sent in the Notion-Version header",
    )
    page_size: int = Field(default=100, description="Children fetched per paginated request")
    timeout_seconds: float = Field(default=30.0, description="HTTP request timeout")
    max_concurrent_requests: int = Field(
        default=3,
        description="Upper bound on in-flight child-block requests",
    )


class ImageConfig(BaseSettings):
    """Remote image embedding settings."""

    model_config = {"env_prefix": "PAGECRAFT_IMAGES_"}

    timeout_seconds: float = Field(default=15.0, description="Per-image fetch timeout")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; pagecraft/0.1; +image-embedder)",
        description="User-Agent sent with image fetches",
    )
    max_concurrent_fetches: int = Field(
        default=8,
        description="Upper bound on concurrent image downloads",
    )


class RenderConfig(BaseSettings):
    """Headless Chromium settings."""

    model_config = {"env_prefix": "PAGECRAFT_RENDER_"}

    timeout_seconds: float = Field(
        default=60.0,
        description="Wall-clock budget for one document render",
    )
    font_wait_seconds: float = Field(
        default=5.0,
        description="Maximum wait for document.fonts.ready",
    )
    settle_seconds: float = Field(
        default=0.5,
        description="Delay after content load before printing",
    )
    launch_args: list[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
            "--font-render-hinting=none",
        ],
        description="Extra Chromium command-line switches",
    )


class PagecraftConfig(BaseSettings):
    """Root configuration for pagecraft.

    Nested configs are populated from their own env-var prefixes.
    """

    model_config = {"env_prefix": "PAGECRAFT_"}

    max_content_chars: int = Field(
        default=1_000_000,
        description="Inputs longer than this are rejected before conversion",
    )
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    notion: NotionConfig = Field(default_factory=NotionConfig)
    images: ImageConfig = Field(default_factory=ImageConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
