"""Tests for CLI interface"""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from syncro.application.subscription_client import SubscriptionError
from syncro.cli import _die, cli, setup_logging
from syncro.domain.models import CancellationResult, CancellationStatus, Subscription
from syncro.infrastructure.batch import BatchItem, BatchResult
from syncro.infrastructure.http_client import TransportFailure


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("SYNCRO_API_KEY", "SYNCRO_BASE_URL", "SYNCRO_MAX_RETRIES"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_client():
    """Patch SyncroClient.from_config to return an async-context-managed mock"""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.get_subscription = AsyncMock()
    client.cancel_subscription = AsyncMock()
    client.cancel_subscriptions = AsyncMock()
    with patch("syncro.cli.SyncroClient") as mock_cls:
        mock_cls.from_config.return_value = client
        yield client, mock_cls


def _result(sub_id: str, redirect_url=None) -> CancellationResult:
    return CancellationResult(
        success=True,
        status=CancellationStatus.CANCELLED,
        subscription=Subscription(id=sub_id, name="Netflix", status="cancelled"),
        redirect_url=redirect_url,
    )


class TestSetupLogging:
    def test_setup_logging_info_level(self):
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG


class TestDie:
    def test_die_without_exception(self):
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=False)

    def test_die_with_exception_verbose(self):
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=True, exc=ValueError("boom"))


class TestGetCommand:
    def test_get_prints_json(self, runner, mock_client):
        client, mock_cls = mock_client
        client.get_subscription.return_value = Subscription(id="s1", name="Spotify", price=9.99)

        result = runner.invoke(cli, ["--api-key", "k", "get", "s1"], obj={})

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output[result.output.index("{"):])
        assert payload["id"] == "s1"
        assert payload["name"] == "Spotify"
        client.get_subscription.assert_awaited_once_with("s1")
        config = mock_cls.from_config.call_args.args[0]
        assert config.api.api_key == "k"

    def test_get_failure(self, runner, mock_client):
        client, _ = mock_client
        client.get_subscription.side_effect = TransportFailure(
            "Request failed with status code 404", status=404
        )

        result = runner.invoke(cli, ["--api-key", "k", "get", "s1"], obj={})

        assert result.exit_code == 1
        assert "Failed to fetch s1" in result.output

    def test_missing_api_key(self, runner):
        result = runner.invoke(cli, ["get", "s1"], obj={})

        assert result.exit_code == 1
        assert "API key is required" in result.output

    def test_base_url_override(self, runner, mock_client, monkeypatch):
        client, mock_cls = mock_client
        client.get_subscription.return_value = Subscription(id="s1")
        monkeypatch.setenv("SYNCRO_API_KEY", "env-key")

        result = runner.invoke(cli, ["--base-url", "http://cli.test", "get", "s1"], obj={})

        assert result.exit_code == 0, result.output
        config = mock_cls.from_config.call_args.args[0]
        assert config.api.base_url == "http://cli.test"
        assert config.api.api_key == "env-key"

    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("retry:\n  max_retries: 99\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(path), "get", "s1"], obj={})

        assert result.exit_code == 1
        assert "Configuration validation failed" in result.output


class TestCancelCommand:
    def test_cancel_single(self, runner, mock_client):
        client, _ = mock_client
        client.cancel_subscription.return_value = _result("s1", redirect_url="https://finish")

        result = runner.invoke(cli, ["--api-key", "k", "cancel", "s1"], obj={})

        assert result.exit_code == 0, result.output
        assert "Cancelled s1 (cancelled)" in result.output
        assert "https://finish" in result.output
        client.cancel_subscriptions.assert_not_awaited()

    def test_cancel_single_failure(self, runner, mock_client):
        client, _ = mock_client
        client.cancel_subscription.side_effect = SubscriptionError(
            "Cancellation failed: Fatal Error", "s1", "Fatal Error"
        )

        result = runner.invoke(cli, ["--api-key", "k", "cancel", "s1"], obj={})

        assert result.exit_code == 1
        assert "Cancellation failed: Fatal Error" in result.output

    def test_cancel_batch_all_succeed(self, runner, mock_client):
        client, _ = mock_client
        client.cancel_subscriptions.return_value = BatchResult(
            results=[
                BatchItem(id="a", success=True, data=_result("a")),
                BatchItem(id="b", success=True, data=_result("b")),
            ],
            success_count=2,
            failure_count=0,
        )

        result = runner.invoke(cli, ["--api-key", "k", "cancel", "a", "b"], obj={})

        assert result.exit_code == 0, result.output
        assert "2 succeeded, 0 failed" in result.output
        client.cancel_subscriptions.assert_awaited_once_with(["a", "b"])

    def test_cancel_batch_partial_failure_exits_nonzero(self, runner, mock_client):
        client, _ = mock_client
        client.cancel_subscriptions.return_value = BatchResult(
            results=[
                BatchItem(id="a", success=True, data=_result("a")),
                BatchItem(id="b", success=False, error="Nope"),
            ],
            success_count=1,
            failure_count=1,
        )

        result = runner.invoke(cli, ["--api-key", "k", "cancel", "a", "b"], obj={})

        assert result.exit_code == 1
        assert "FAILED  b: Nope" in result.output
        assert "1 succeeded, 1 failed" in result.output

    def test_cancel_requires_ids(self, runner):
        result = runner.invoke(cli, ["cancel"], obj={})

        assert result.exit_code == 2
