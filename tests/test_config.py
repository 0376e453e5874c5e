"""Tests for cf_operations.config."""

from __future__ import annotations

import pytest

from cf_operations.config import ENV_PREFIX, OperationsConfig, load_config
from cf_operations.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for field_name in OperationsConfig.model_fields:
        monkeypatch.delenv(f"{ENV_PREFIX}{field_name.upper()}", raising=False)


def _write(tmp_path, text: str):
    path = tmp_path / "cf.yaml"
    path.write_text(text)
    return path


class TestOperationsConfig:
    def test_defaults(self):
        config = OperationsConfig()
        assert config.api_url == "http://localhost"
        assert config.page_size == 50
        assert config.poll_interval_seconds == 1.0
        assert config.poll_timeout_seconds == 300.0
        assert config.organization is None

    def test_api_url_trailing_slash_stripped(self):
        assert OperationsConfig(api_url="https://api.test/").api_url == "https://api.test"

    def test_api_url_requires_scheme(self):
        with pytest.raises(ValueError):
            OperationsConfig(api_url="api.test")

    def test_blank_space_is_none(self):
        assert OperationsConfig(space="  ").space is None

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            OperationsConfig(region="eu")

    def test_page_size_bounds(self):
        with pytest.raises(ValueError):
            OperationsConfig(page_size=0)
        with pytest.raises(ValueError):
            OperationsConfig(page_size=101)

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("CF_OPERATIONS_TOKEN", "secret")
        monkeypatch.setenv("CF_OPERATIONS_VERIFY_SSL", "false")
        config = OperationsConfig()
        assert config.token == "secret"
        assert config.verify_ssl is False


class TestLoadConfig:
    def test_no_sources(self):
        assert load_config() == OperationsConfig()

    def test_yaml_file(self, tmp_path):
        path = _write(
            tmp_path,
            "api_url: https://api.test\norganization: test-org\npoll_timeout_seconds: 600\n",
        )
        config = load_config(path)
        assert config.api_url == "https://api.test"
        assert config.organization == "test-org"
        assert config.poll_timeout_seconds == 600.0

    def test_empty_file(self, tmp_path):
        assert load_config(_write(tmp_path, "")) == OperationsConfig()

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "organization: from-file\nspace: file-space\n")
        monkeypatch.setenv("CF_OPERATIONS_ORGANIZATION", "from-env")
        monkeypatch.setenv("CF_OPERATIONS_TOKEN", "secret")
        monkeypatch.setenv("CF_OPERATIONS_PAGE_SIZE", "10")

        config = load_config(path)

        assert config.organization == "from-env"
        assert config.space == "file-space"
        assert config.token == "secret"
        assert config.page_size == 10

    def test_overrides_win_and_none_is_ignored(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "organization: from-file\nspace: file-space\n")
        monkeypatch.setenv("CF_OPERATIONS_ORGANIZATION", "from-env")

        config = load_config(path, organization="from-flag", space=None)

        assert config.organization == "from-flag"
        assert config.space == "file-space"

    def test_invalid_override(self):
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(api_url="api.test")

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("CF_OPERATIONS_PAGE_SIZE", "500")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(_write(tmp_path, "api_url: [unclosed\n"))

    def test_non_mapping_root(self, tmp_path):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_invalid_value(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(_write(tmp_path, "page_size: 500\n"))
