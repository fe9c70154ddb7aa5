"""Tests for the API key admin CLI."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from scripts.api_keys import cli


@pytest.fixture
def runner(store):
    with patch("scripts.api_keys.get_credential_store", return_value=store):
        yield CliRunner()


def test_create_key(runner, store, user):
    result = runner.invoke(
        cli, ["create-key", "--email", user.email, "--name", "cli", "--rate-limit", "5"]
    )

    assert result.exit_code == 0, result.output
    keys = store.list_api_keys(user.id)
    assert len(keys) == 1
    assert keys[0].rate_limit == 5
    assert keys[0].key in result.output


def test_create_key_for_unknown_user(runner):
    result = runner.invoke(
        cli, ["create-key", "--email", "nobody@example.com", "--name", "cli"]
    )

    assert result.exit_code != 0
    assert "No user with email" in result.output


def test_reset_usage(runner, store, make_api_key):
    api_key = make_api_key(usage=100, rate_limit=100)

    result = runner.invoke(cli, ["reset-usage", "--key-id", api_key.id])

    assert result.exit_code == 0, result.output
    assert store.find_api_key_by_id(api_key.id).usage == 0


def test_reset_usage_unknown_key(runner):
    result = runner.invoke(cli, ["reset-usage", "--key-id", "missing"])

    assert result.exit_code != 0
