"""Tests for the CLI module."""

import argparse
import io
import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from moonwave_mcp.aggregator import Aggregator
from moonwave_mcp.cli import _load_registry, cmd_check, cmd_serve, cmd_snapshot, cmd_sources, main
from moonwave_mcp.config import Config
from moonwave_mcp.sources import RegistryError, SourceKind, SourceRegistry

from .helpers import EXTRA_URL, ROOT_URL, FakeFetcher


@pytest.fixture
def config(tmp_path: Path) -> Config:
	return Config(config_dir=tmp_path / "config", data_dir=tmp_path / "data")


def make_args(**kwargs) -> argparse.Namespace:
	defaults = {"url": None, "include_raw": [], "include_github": [], "config": None}
	return argparse.Namespace(**{**defaults, **kwargs})


def fake_aggregator(fetcher: FakeFetcher):
	"""Patch the CLI's Aggregator so every command uses the fake fetcher."""
	return patch("moonwave_mcp.cli.Aggregator", side_effect=lambda **kwargs: Aggregator(fetch_json=fetcher))


def recording_console() -> Console:
	return Console(file=io.StringIO(), width=200)


def test_load_registry_from_options(config: Config):
	args = make_args(url="https://docs.example.com/lib/", include_github=["o/r"])
	registry = _load_registry(args, config)
	assert registry.names == ["docs.example.com", "o/r"]


def test_load_registry_from_config_dir(config: Config):
	"""Without options the registry comes from the configured sources file."""
	config.ensure_dirs()
	config.resolved_sources_file.write_text(json.dumps({"sources": [{"name": "a", "url": ROOT_URL}]}))
	assert _load_registry(make_args(), config).names == ["a"]


def test_load_registry_nothing_configured(config: Config):
	with pytest.raises(RegistryError, match="No documentation sources configured"):
		_load_registry(make_args(), config)


def test_cmd_sources(config: Config):
	console = recording_console()
	cmd_sources(make_args(include_raw=[ROOT_URL], include_github=["o/r"]), config, console=console)
	output = console.file.getvalue()
	assert ROOT_URL in output
	assert "o/r" in output
	assert "github" in output


def test_cmd_sources_exits_without_sources(config: Config):
	with pytest.raises(SystemExit) as exc_info:
		cmd_sources(make_args(), config, console=recording_console())
	assert exc_info.value.code == 1


def test_cmd_check_all_ok(config: Config):
	console = recording_console()
	with fake_aggregator(FakeFetcher()):
		cmd_check(make_args(include_raw=[ROOT_URL, EXTRA_URL]), config, console=console)
	output = console.file.getvalue()
	assert "OK" in output
	assert "4 classes from 2/2 sources" in output


def test_cmd_check_exits_1_on_failure(config: Config):
	console = recording_console()
	with fake_aggregator(FakeFetcher({ROOT_URL: []})):
		with pytest.raises(SystemExit) as exc_info:
			cmd_check(make_args(include_raw=[ROOT_URL, EXTRA_URL]), config, console=console)
	assert exc_info.value.code == 1
	output = console.file.getvalue()
	assert "FAILED" in output
	assert "HTTP 404" in output


def test_cmd_snapshot(config: Config, tmp_path: Path):
	"""Snapshots embed each fetched source; failed sources are left out."""
	output = tmp_path / "snapshot.json"
	args = make_args(include_raw=[ROOT_URL, EXTRA_URL, "https://gone.example.com/raw.json"], output=str(output))
	with fake_aggregator(FakeFetcher()):
		cmd_snapshot(args, config)

	registry = SourceRegistry.from_file(output)
	assert registry.names == [ROOT_URL, EXTRA_URL]
	assert registry.is_static
	source = next(iter(registry))
	assert source.kind is SourceKind.EMBEDDED
	assert source.origin == ROOT_URL
	assert [r["name"] for r in source.records] == ["Promise", "Status"]
	# Aggregation metadata is not written into the snapshot
	assert all("_source" not in r and "_sourceUrl" not in r for r in source.records)


def test_cmd_snapshot_default_output(config: Config):
	with fake_aggregator(FakeFetcher()):
		cmd_snapshot(make_args(include_raw=[ROOT_URL], output=None), config)
	assert (config.snapshot_dir / "snapshot.json").exists()


def test_cmd_snapshot_all_failed(config: Config, tmp_path: Path):
	output = tmp_path / "snapshot.json"
	with fake_aggregator(FakeFetcher({})):
		with pytest.raises(SystemExit) as exc_info:
			cmd_snapshot(make_args(include_raw=[ROOT_URL], output=str(output)), config)
	assert exc_info.value.code == 1
	assert not output.exists()


def test_cmd_serve_http(config: Config):
	args = make_args(include_raw=[ROOT_URL], stdio=False, host="0.0.0.0", port=9999)
	with patch("moonwave_mcp.web.run_server") as run_server:
		cmd_serve(args, config)
	registry, passed_config = run_server.call_args.args
	assert registry.names == [ROOT_URL]
	assert passed_config is config
	assert run_server.call_args.kwargs == {"host": "0.0.0.0", "port": 9999}


def test_cmd_serve_stdio(config: Config):
	args = make_args(include_raw=[ROOT_URL], stdio=True, host=None, port=None)
	with patch("moonwave_mcp.server.create_stdio_server") as create:
		cmd_serve(args, config)
	create.return_value.run.assert_called_once_with()


def test_main_version(capsys):
	with patch("sys.argv", ["moonwave-mcp", "--version"]):
		with pytest.raises(SystemExit) as exc_info:
			main()
	assert exc_info.value.code == 0
	assert "1.0.0" in capsys.readouterr().out


def test_main_without_command():
	with patch("sys.argv", ["moonwave-mcp"]):
		with pytest.raises(SystemExit) as exc_info:
			main()
	assert exc_info.value.code == 1


def test_subcommands_registered():
	"""Every subcommand should accept --help."""
	for command in ("serve", "sources", "check", "snapshot"):
		with patch("sys.argv", ["moonwave-mcp", command, "--help"]):
			with pytest.raises(SystemExit) as exc_info:
				main()
			assert exc_info.value.code == 0


def test_main_sources(tmp_path: Path, capsys):
	env = {
		"MOONWAVE_MCP_CONFIG_DIR": str(tmp_path / "config"),
		"MOONWAVE_MCP_DATA_DIR": str(tmp_path / "data"),
	}
	with patch.dict(os.environ, env):
		with patch("sys.argv", ["moonwave-mcp", "--log-level", "warning", "sources", "--include-github", "o/r"]):
			main()
	assert "o/r" in capsys.readouterr().out
