"""
Tests for the bootstrap command line entry point.
"""

from unittest.mock import patch

import pytest

from garage_bootstrap.process import SpawnError
from garage_bootstrap.scripts.bootstrap import describe_error, main


@patch("garage_bootstrap.scripts.bootstrap.GarageBootstrap")
def test_exits_with_server_code(mock_bootstrap, mock_env_vars):
    mock_bootstrap.return_value.run.return_value = 0

    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 0
    config = mock_bootstrap.call_args[0][0]
    assert [b.name for b in config.buckets] == ["site", "data"]


@patch("garage_bootstrap.scripts.bootstrap.GarageBootstrap")
def test_flags_override_config(mock_bootstrap, mock_env_vars):
    mock_bootstrap.return_value.run.return_value = 0

    with pytest.raises(SystemExit):
        main(["--verify", "--no-purge-keys"])

    config = mock_bootstrap.call_args[0][0]
    assert config.verify_buckets is True
    assert config.purge_keys is False


@patch("garage_bootstrap.scripts.bootstrap.GarageBootstrap")
def test_failure_exits_one(mock_bootstrap, mock_env_vars, caplog):
    error = SpawnError("/garage")
    error.__cause__ = FileNotFoundError("No such file or directory")
    mock_bootstrap.return_value.run.side_effect = error

    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 1
    assert "failed to spawn garage process /garage: No such file or directory" in caplog.text


def test_config_error_exits_one(monkeypatch):
    monkeypatch.delenv("GARAGE_ACCESS_KEY_ID", raising=False)
    monkeypatch.delenv("GARAGE_BOOTSTRAP_CONFIG", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code == 1


def test_describe_error_chain():
    try:
        try:
            raise ConnectionRefusedError("connection refused")
        except ConnectionRefusedError as e:
            raise RuntimeError("status check failed") from e
    except RuntimeError as e:
        assert describe_error(e) == "status check failed: connection refused"
