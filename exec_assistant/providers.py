"""
Context Providers

Request descriptions and payload parsers for Airtable and the GitHub
KnowledgeBase repository.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from .config import AppConfig
from .provider_client import ProviderConfig

logger = logging.getLogger(__name__)

AIRTABLE = "airtable"
GITHUB = "github"

AIRTABLE_BASES_URL = "https://api.airtable.com/v0/meta/bases"

GITHUB_OWNER = "thorisomots"
GITHUB_REPO = "KnowledgeBase"
GITHUB_CONTENTS_URL = f"https://api.github.com/repos/{GITHUB_OWNER}/{GITHUB_REPO}/contents"

# Files matching one of these (and ending in .md) are vision documents
KNOWLEDGE_KEYWORDS = ["career", "wealth", "core-values", "personal-growth", "goals", "vision"]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _base_name(base: Any) -> str:
    name = base["name"]
    if not isinstance(name, str):
        raise TypeError(f"base name is {type(name).__name__}, expected str")
    return name


def parse_airtable_bases(data: Any) -> Optional[Dict[str, Any]]:
    """
    Extract base count and names from the Airtable meta API.

    Returns None when the account has no bases.
    """
    bases = data["bases"]
    if not isinstance(bases, list):
        raise TypeError("'bases' is not a list")

    logger.info(f"Airtable bases found: {len(bases)}")
    if not bases:
        return None

    return {
        "connected": True,
        "bases_count": len(bases),
        "base_names": [_base_name(b) for b in bases],
        "last_checked": _now(),
    }


def find_relevant_files(file_names: List[str]) -> List[str]:
    """Filter markdown files whose name mentions a knowledge keyword."""
    return [
        name for name in file_names
        if name.endswith(".md") and any(key in name.lower() for key in KNOWLEDGE_KEYWORDS)
    ]


def parse_github_contents(data: Any) -> Optional[Dict[str, Any]]:
    """Summarize a GitHub repository contents listing."""
    if not isinstance(data, list):
        raise TypeError("contents listing is not a list")

    file_names = [f["name"] for f in data]
    return {
        "connected": True,
        "files_found": len(file_names),
        "file_names": file_names,
        "relevant_files": find_relevant_files(file_names),
        "last_checked": _now(),
    }


def airtable_provider(api_key: Optional[str]) -> ProviderConfig:
    return ProviderConfig(
        name=AIRTABLE,
        url=AIRTABLE_BASES_URL,
        parse=parse_airtable_bases,
        headers={"Authorization": f"Bearer {api_key}"},
        description="Airtable bases (habits, budget, impact, learning)",
        enabled=bool(api_key),
    )


def github_provider(token: Optional[str]) -> ProviderConfig:
    return ProviderConfig(
        name=GITHUB,
        url=GITHUB_CONTENTS_URL,
        parse=parse_github_contents,
        headers={
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3+json",
        },
        description=f"{GITHUB_OWNER}/{GITHUB_REPO} vision documents",
        enabled=bool(token),
    )


def default_providers(config: AppConfig) -> List[ProviderConfig]:
    """Providers queried by /morning-focus, in section order."""
    return [
        airtable_provider(config.airtable_api_key),
        github_provider(config.github_token),
    ]
