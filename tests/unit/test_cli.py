"""Unit tests for the rollcall CLI."""

import json
from unittest.mock import patch

import pytest
import structlog
from click.testing import CliRunner

from rollcall.cli.main import cli
from rollcall.core.config import Settings
from rollcall.manager import StoreManager


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store(cache_transport, metrics_transport, store_config, metrics_redis):
    metrics_redis.hashes["deploymentKeyLabels:dk_prod"] = {
        "v2:Active": "7",
        "v2:DeploymentSucceeded": "9",
        "v1:Active": "-2",
    }
    manager = StoreManager(
        store_config, cache_transport=cache_transport, metrics_transport=metrics_transport
    )
    with patch("rollcall.cli.main.StoreManager") as mock_manager_class:
        mock_manager_class.from_settings.return_value = manager
        yield manager


class TestCLI:
    def test_health(self, runner, store):
        result = runner.invoke(cli, ["health"])

        assert result.exit_code == 0
        assert "ok" in result.output

    def test_health_disabled(self, runner, disabled_config):
        with patch("rollcall.cli.main.StoreManager") as mock_manager_class:
            mock_manager_class.from_settings.return_value = StoreManager(disabled_config)
            result = runner.invoke(cli, ["health"])

        assert result.exit_code == 1
        assert "NOT_ENABLED" in result.output

    def test_metrics_json(self, runner, store):
        result = runner.invoke(cli, ["metrics", "dk_prod", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "v1:Active": -2,
            "v2:Active": 7,
            "v2:DeploymentSucceeded": 9,
        }

    def test_metrics_table(self, runner, store):
        result = runner.invoke(cli, ["metrics", "dk_prod"])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0].split() == ["v1:Active", "-2"]
        assert len(lines) == 3

    def test_metrics_for_label(self, runner, store):
        result = runner.invoke(cli, ["metrics", "dk_prod", "--label", "v2", "--json"])

        assert json.loads(result.output) == {
            "active": 7,
            "downloaded": 0,
            "succeeded": 9,
            "failed": 0,
        }

    def test_metrics_empty(self, runner, store):
        result = runner.invoke(cli, ["metrics", "dk_unknown"])

        assert result.exit_code == 0
        assert "No metrics recorded" in result.output

    def test_invalidate(self, runner, store, cache_redis):
        cache_redis.hashes["deploymentKey:dk_prod"] = {"/updateCheck": b"{}"}

        result = runner.invoke(cli, ["invalidate", "dk_prod"])

        assert result.exit_code == 0
        assert "deploymentKey:dk_prod" not in cache_redis.hashes

    def test_clear_metrics_requires_confirmation(self, runner, store, metrics_redis):
        result = runner.invoke(cli, ["clear-metrics", "dk_prod"], input="n\n")

        assert result.exit_code == 1
        assert "deploymentKeyLabels:dk_prod" in metrics_redis.hashes

    def test_clear_metrics(self, runner, store, metrics_redis):
        result = runner.invoke(cli, ["clear-metrics", "dk_prod", "--yes"])

        assert result.exit_code == 0
        assert "deploymentKeyLabels:dk_prod" not in metrics_redis.hashes

    def test_store_built_from_settings(self, runner, store, monkeypatch):
        monkeypatch.setenv("REDIS_CACHE_TTL", "120")

        with patch("rollcall.cli.main.StoreManager") as mock_manager_class:
            mock_manager_class.from_settings.return_value = store
            result = runner.invoke(cli, ["health"])

        assert result.exit_code == 0
        (settings,) = mock_manager_class.from_settings.call_args.args
        assert isinstance(settings, Settings)
        assert settings.redis_cache_ttl == 120

    def test_deployment_key_bound_to_logs(self, runner, store):
        seen = {}

        async def read_metrics(deployment_key):
            seen.update(structlog.contextvars.get_contextvars())
            return {}

        with patch.object(store.metrics, "read_metrics", side_effect=read_metrics):
            result = runner.invoke(cli, ["metrics", "dk_prod"])

        assert result.exit_code == 0
        assert seen == {"deployment_key": "dk_prod"}
        assert structlog.contextvars.get_contextvars() == {}
