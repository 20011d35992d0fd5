"""Configuration schema definitions.

This module defines the typed dataclasses representing combine-prs
configuration.
"""

from dataclasses import dataclass
from pathlib import Path

from combine_prs.core.types import DiscoveryMode, RepositoryTarget

DEFAULT_RETRIES = 3
DEFAULT_FETCH_RETRIES = 5
DEFAULT_IDENTITY_NAME = "github-actions[bot]"
DEFAULT_IDENTITY_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"


@dataclass(frozen=True)
class CombineConfig:
    """Fully resolved configuration for one run.

    Loaded from a TOML file and/or CLI options (which also read the GitHub
    Actions INPUT_* environment variables).
    """

    repositories: tuple[RepositoryTarget, ...]
    path: Path
    generate_metadata: bool = False
    metadata_in_working_copy: bool = False
    skip_identity: bool = False
    retries: int = DEFAULT_RETRIES
    fetch_retries: int = DEFAULT_FETCH_RETRIES
    discovery: DiscoveryMode = "search"
    host: str = "github.com"
    api_concurrency: int = 8
    identity_name: str = DEFAULT_IDENTITY_NAME
    identity_email: str = DEFAULT_IDENTITY_EMAIL
