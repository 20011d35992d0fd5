"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from combine_prs.cli.config import (
    build_config,
    load_config_file,
    normalize_retry_count,
    parse_repositories_json,
    parse_repository,
)
from combine_prs.cli.config_schema import DEFAULT_FETCH_RETRIES, DEFAULT_RETRIES
from combine_prs.core.errors import ConfigError

REPOSITORY = {"owner": "acme", "repo": "service", "labels": ["merge-to:indev"]}


def test_load_config_file(tmp_path: Path) -> None:
    config_file = tmp_path / "combine.toml"
    config_file.write_text(
        'path = "checkout"\n'
        "fetch_retries = 7\n"
        "\n"
        "[[repositories]]\n"
        'owner = "acme"\n'
        'repo = "service"\n'
        'labels = ["merge-to:indev"]\n',
        encoding="utf-8",
    )

    config = build_config(load_config_file(config_file), base_dir=tmp_path)

    assert config.path == tmp_path / "checkout"
    assert config.fetch_retries == 7
    assert config.retries == DEFAULT_RETRIES
    assert config.repositories[0].full_name == "acme/service"


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config_file(tmp_path / "missing.toml")


def test_invalid_toml(tmp_path: Path) -> None:
    config_file = tmp_path / "bad.toml"
    config_file.write_text("path = \n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config_file(config_file)


def test_parse_repositories_json_requires_a_list() -> None:
    with pytest.raises(ConfigError):
        parse_repositories_json('{"owner": "acme"}')
    with pytest.raises(ConfigError):
        parse_repositories_json("not json")

    assert parse_repositories_json("[]") == []


def test_parse_repository_drops_empty_labels_and_token() -> None:
    target = parse_repository({**REPOSITORY, "labels": ["a", "", "b"], "token": ""})

    assert target.labels == frozenset({"a", "b"})
    assert target.credential is None


def test_parse_repository_requires_owner() -> None:
    with pytest.raises(ConfigError, match="owner"):
        parse_repository({"repo": "service"})


def test_parse_repository_rejects_non_string_labels() -> None:
    with pytest.raises(ConfigError, match="labels"):
        parse_repository({**REPOSITORY, "labels": "merge-to:indev"})


def test_credential_hidden_from_repr() -> None:
    target = parse_repository({**REPOSITORY, "token": "ghp_secret"})

    assert target.credential == "ghp_secret"
    assert "ghp_secret" not in repr(target)


@pytest.mark.parametrize("value, expected", [(None, 3), (1, 1), ("5", 5), (100, 100)])
def test_normalize_retry_count_accepts_valid_values(value: object, expected: int) -> None:
    assert normalize_retry_count(value, 3, "retries") == expected


@pytest.mark.parametrize("value", [0, 101, "-2", "abc", "", "²", True, 2.5])
def test_normalize_retry_count_falls_back_with_warning(
    value: object, capsys: pytest.CaptureFixture[str]
) -> None:
    assert normalize_retry_count(value, DEFAULT_FETCH_RETRIES, "fetch_retries") == DEFAULT_FETCH_RETRIES

    assert "Warning: invalid fetch_retries value" in capsys.readouterr().err


def test_build_config_requires_repositories(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="No repositories"):
        build_config({"repositories": []}, base_dir=tmp_path)


def test_build_config_ignores_unset_values(tmp_path: Path) -> None:
    config = build_config(
        {"repositories": [REPOSITORY], "path": None, "retries": None, "discovery": None},
        base_dir=tmp_path,
    )

    assert config.path == tmp_path
    assert config.retries == DEFAULT_RETRIES
    assert config.discovery == "search"


def test_build_config_keeps_absolute_path(tmp_path: Path) -> None:
    config = build_config({"repositories": [REPOSITORY], "path": "/srv/build"}, base_dir=tmp_path)

    assert config.path == Path("/srv/build")


def test_build_config_rejects_unknown_discovery_mode(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="discovery"):
        build_config({"repositories": [REPOSITORY], "discovery": "graphql"}, base_dir=tmp_path)


def test_build_config_rejects_non_bool_flags(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="generate_metadata"):
        build_config({"repositories": [REPOSITORY], "generate_metadata": "yes"}, base_dir=tmp_path)


def test_build_config_identity_override(tmp_path: Path) -> None:
    config = build_config(
        {
            "repositories": [REPOSITORY],
            "identity": {"name": "Build Bot", "email": "bot@example.com"},
        },
        base_dir=tmp_path,
    )

    assert config.identity_name == "Build Bot"
    assert config.identity_email == "bot@example.com"
