"""Tests for the demo command line."""

import os
import tempfile

from click.testing import CliRunner

from tracelink.demo import cli as cli_module


def test_help_lists_commands():
    result = CliRunner().invoke(cli_module.cli, ["--help"])

    assert result.exit_code == 0
    assert "server" in result.output
    assert "client" in result.output


def test_invalid_config_file_is_reported():
    with tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False) as f:
        f.write("invalid [toml content")

    try:
        result = CliRunner().invoke(cli_module.cli, ["--config", f.name, "server"])
    finally:
        os.unlink(f.name)

    assert result.exit_code != 0
    assert "Invalid TOML" in result.output


def test_server_command_passes_options(monkeypatch):
    captured = {}

    def fake_run_server(config):
        captured["config"] = config

    monkeypatch.setattr("tracelink.demo.server.run_server", fake_run_server)
    result = CliRunner().invoke(
        cli_module.cli,
        ["--config", "/nonexistent/file.toml", "--debug", "server", "--port", "9123"],
    )

    assert result.exit_code == 0, result.output
    assert captured["config"].server.port == 9123
    assert captured["config"].logging.debug is True


def test_client_command_passes_options(monkeypatch):
    captured = {}

    def fake_run_client(config, max_requests=None):
        captured["config"] = config
        captured["max_requests"] = max_requests
        return 0

    monkeypatch.setattr("tracelink.demo.client.run_client", fake_run_client)
    result = CliRunner().invoke(
        cli_module.cli,
        ["--config", "/nonexistent/file.toml", "client", "--url", "http://x.test/", "--count", "2"],
    )

    assert result.exit_code == 0, result.output
    assert captured["config"].client.url == "http://x.test/"
    assert captured["max_requests"] == 2
