import json
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from combine_prs.cli.config_schema import (
    DEFAULT_FETCH_RETRIES,
    DEFAULT_IDENTITY_EMAIL,
    DEFAULT_IDENTITY_NAME,
    DEFAULT_RETRIES,
    CombineConfig,
)
from combine_prs.cli.output import user_output
from combine_prs.core.errors import ConfigError
from combine_prs.core.retry import MAX_RETRY_ATTEMPTS
from combine_prs.core.types import RepositoryTarget


def load_config_file(config_path: Path) -> dict[str, Any]:
    """Read a combine-prs TOML file.

    Example config:
      path = "checkout"
      generate_metadata = true
      fetch_retries = 5

      [[repositories]]
      owner = "acme"
      repo = "service"
      labels = ["merge-to:indev"]
      token = "ghp_..."
    """
    try:
        return tomllib.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e


def parse_repositories_json(text: str) -> list[dict[str, Any]]:
    """Parse the repository list given as JSON (the action's `repositories` input)."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Repositories must be a JSON list: {e}") from e
    if not isinstance(data, list):
        raise ConfigError("Repositories must be a JSON list of objects")
    return data


def parse_repository(entry: Any) -> RepositoryTarget:
    if not isinstance(entry, Mapping):
        raise ConfigError(f"Repository entry must be a table/object, got {entry!r}")

    owner = entry.get("owner")
    repo = entry.get("repo")
    if not isinstance(owner, str) or not owner:
        raise ConfigError(f"Repository entry is missing 'owner': {dict(entry)!r}")
    if not isinstance(repo, str) or not repo:
        raise ConfigError(f"Repository entry is missing 'repo': {dict(entry)!r}")

    labels = entry.get("labels", [])
    if not isinstance(labels, list) or not all(isinstance(label, str) for label in labels):
        raise ConfigError(f"'labels' of {owner}/{repo} must be a list of strings")

    token = entry.get("token")
    if token is not None and not isinstance(token, str):
        raise ConfigError(f"'token' of {owner}/{repo} must be a string")

    return RepositoryTarget(
        owner=owner,
        name=repo,
        labels=frozenset(label for label in labels if label),
        credential=token or None,
    )


def normalize_retry_count(value: Any, default: int, name: str) -> int:
    """Validate a retry count, falling back to default with a warning.

    Accepts integers and integer strings in [1, MAX_RETRY_ATTEMPTS].
    """
    if value is None:
        return default

    count: int | None = None
    if isinstance(value, int) and not isinstance(value, bool):
        count = value
    elif isinstance(value, str):
        try:
            count = int(value.strip())
        except ValueError:
            count = None

    if count is None or not 1 <= count <= MAX_RETRY_ATTEMPTS:
        user_output(
            f"Warning: invalid {name} value {value!r} "
            f"(expected an integer from 1 to {MAX_RETRY_ATTEMPTS}); using {default}"
        )
        return default
    return count


def _bool(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}")
    return value


def build_config(data: Mapping[str, Any], *, base_dir: Path) -> CombineConfig:
    """Build a CombineConfig from merged file data and CLI overrides.

    Args:
        data: Top-level config keys; None values are treated as unset
        base_dir: Directory relative working-copy paths resolve against
    """
    data = {key: value for key, value in data.items() if value is not None}

    raw_repositories = data.get("repositories", [])
    if not isinstance(raw_repositories, list):
        raise ConfigError("'repositories' must be a list")
    repositories = tuple(parse_repository(entry) for entry in raw_repositories)
    if not repositories:
        raise ConfigError("No repositories configured")

    path = Path(str(data.get("path", ".")))
    if not path.is_absolute():
        path = base_dir / path

    discovery = data.get("discovery", "search")
    if discovery not in ("search", "list"):
        raise ConfigError(f"'discovery' must be 'search' or 'list', got {discovery!r}")

    api_concurrency = data.get("api_concurrency", 8)
    if not isinstance(api_concurrency, int) or isinstance(api_concurrency, bool) or api_concurrency < 1:
        raise ConfigError(f"'api_concurrency' must be a positive integer, got {api_concurrency!r}")

    identity = data.get("identity", {})
    if not isinstance(identity, Mapping):
        raise ConfigError("'identity' must be a table with 'name' and 'email'")

    return CombineConfig(
        repositories=repositories,
        path=path,
        generate_metadata=_bool(data, "generate_metadata", False),
        metadata_in_working_copy=_bool(data, "metadata_in_working_copy", False),
        skip_identity=_bool(data, "skip_identity", False),
        retries=normalize_retry_count(data.get("retries"), DEFAULT_RETRIES, "retries"),
        fetch_retries=normalize_retry_count(
            data.get("fetch_retries"), DEFAULT_FETCH_RETRIES, "fetch_retries"
        ),
        discovery=discovery,
        host=str(data.get("host", "github.com")),
        api_concurrency=api_concurrency,
        identity_name=str(identity.get("name", DEFAULT_IDENTITY_NAME)),
        identity_email=str(identity.get("email", DEFAULT_IDENTITY_EMAIL)),
    )
