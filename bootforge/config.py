"""Application configuration via environment variables."""

from pydantic import BaseModel
from pydantic_settings import BaseSettings
from typing import List, Optional


class GitHubProviderSettings(BaseModel):
    """One GitHub Actions workflow that can process jobs."""
    owner: str
    repo: str
    workflow_id: str = "process.yml"
    ref: str = "master"
    token: Optional[str] = None
    api_url: str = "https://api.github.com"


class CirrusProviderSettings(BaseModel):
    """One Cirrus CI repository that can process jobs."""
    owner: str
    repo: str
    branch: str = "master"
    token: Optional[str] = None
    max_concurrent_tasks: int = 2  # free tier limit
    graphql_url: str = "https://api.cirrus-ci.com/graphql"


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Job store
    job_store_backend: str = "memory"  # "memory" or "supabase"
    jobs_table: str = "queue_jobs"
    posts_table: str = "posts"

    # CI providers, registry order is github first then cirrus.
    # Lists are read from JSON, e.g.
    # GITHUB_PROVIDERS='[{"owner": "me", "repo": "worker", "token": "..."}]'
    github_providers: List[GitHubProviderSettings] = []
    cirrus_providers: List[CirrusProviderSettings] = []
    provider_timeout_seconds: float = 15.0

    # Dispatch
    max_dispatch_attempts: int = 5

    # Telegram display surface
    telegram_bot_token: Optional[str] = None
    telegram_channel_id: str = "@testchannelmagiboot"
    telegram_api_url: str = "https://api.telegram.org"

    # Shared secrets
    cron_secret: Optional[str] = None
    webhook_secret: Optional[str] = None

    # Server
    port: int = 8001
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
