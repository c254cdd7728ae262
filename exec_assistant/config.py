"""
Application Configuration

Environment-driven settings for the webhook server and providers.
Values are read when an AppConfig is created, so call load_dotenv() first.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

DEFAULT_PORT = 3000
DEFAULT_CONTEXT_FILE = "./data/life-context.json"


@dataclass
class AppConfig:
    """Runtime configuration from environment variables."""

    port: int = field(default_factory=lambda: int(os.getenv("PORT", str(DEFAULT_PORT))))
    airtable_api_key: Optional[str] = field(default_factory=lambda: os.getenv("AIRTABLE_API_KEY"))
    github_token: Optional[str] = field(default_factory=lambda: os.getenv("GITHUB_TOKEN"))
    context_file: str = field(default_factory=lambda: os.getenv("CONTEXT_FILE", DEFAULT_CONTEXT_FILE))

    @property
    def airtable_available(self) -> bool:
        """Check if the Airtable API key is set."""
        return bool(self.airtable_api_key)

    @property
    def github_available(self) -> bool:
        """Check if the GitHub token is set."""
        return bool(self.github_token)


def get_config() -> AppConfig:
    """Get current application configuration."""
    return AppConfig()
