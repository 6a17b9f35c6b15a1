"""CLI for moonwave-mcp: serve, sources, check and snapshot commands."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from . import __version__
from .aggregator import AggregationResult, Aggregator
from .config import Config, load_config
from .sources import DocSource, RegistryError, SourceRegistry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
SNAPSHOT_FILE_NAME = "snapshot.json"


def _configure_logging(level: str) -> None:
	"""Log to stderr; stdout belongs to command output and the stdio transport."""
	logging.basicConfig(
		level=getattr(logging, level.upper(), logging.INFO),
		format=LOG_FORMAT,
		stream=sys.stderr,
	)


def _load_registry(args: argparse.Namespace, config: Config) -> SourceRegistry:
	"""Registry from command-line options, else from the configured sources file."""
	include_raw = getattr(args, "include_raw", None) or []
	include_github = getattr(args, "include_github", None) or []
	config_path = getattr(args, "config", None)
	docs_url = getattr(args, "url", None)

	if docs_url or include_raw or include_github or config_path:
		return SourceRegistry.from_options(
			docs_url=docs_url,
			include_raw=include_raw,
			include_github=include_github,
			config_path=Path(config_path) if config_path else None,
		)

	path = config.resolved_sources_file
	if not path.exists():
		raise RegistryError(
			"No documentation sources configured. "
			f"Use --url, --include-raw, --include-github or --config, or create {path}"
		)
	return SourceRegistry.from_file(path)


def _registry_or_exit(args: argparse.Namespace, config: Config) -> SourceRegistry:
	try:
		return _load_registry(args, config)
	except RegistryError as e:
		print(f"Error: {e}", file=sys.stderr)
		sys.exit(1)


def _aggregate(registry: SourceRegistry, config: Config) -> AggregationResult:
	return asyncio.run(Aggregator(timeout=config.fetch_timeout).aggregate(registry))


def cmd_serve(args: argparse.Namespace, config: Config) -> None:
	"""Run the MCP server over HTTP, or over stdio with --stdio."""
	registry = _registry_or_exit(args, config)
	logger.info(f"Serving {len(registry)} documentation sources: {', '.join(registry.names)}")
	if registry.is_static:
		logger.info("All sources are embedded snapshots; requests never touch the network")

	if args.stdio:
		from .server import create_stdio_server
		create_stdio_server(registry, Aggregator(timeout=config.fetch_timeout)).run()
		return

	from .web import run_server
	run_server(registry, config, host=args.host or "", port=args.port or 0)


def cmd_sources(args: argparse.Namespace, config: Config, console: Optional[Console] = None) -> None:
	"""Print the configured sources."""
	console = console or Console()
	registry = _registry_or_exit(args, config)

	table = Table(title="Documentation Sources")
	table.add_column("Name", style="cyan")
	table.add_column("Type")
	table.add_column("Location")
	table.add_column("Records", justify="right")

	for summary in registry.summaries():
		records = summary.get("records")
		table.add_row(summary["name"], summary["type"], summary["url"], "" if records is None else str(records))

	console.print(table)


def cmd_check(args: argparse.Namespace, config: Config, console: Optional[Console] = None) -> None:
	"""Aggregate once and report how every source fared."""
	console = console or Console()
	registry = _registry_or_exit(args, config)
	result = _aggregate(registry, config)
	failures = {f.source: f for f in result.failures}

	table = Table(title="Source Check")
	table.add_column("Source", style="cyan")
	table.add_column("Status", justify="center")
	table.add_column("Classes", justify="right")
	table.add_column("Detail")

	for source in registry:
		failure = failures.get(source.name)
		if failure:
			table.add_row(source.name, "[red]FAILED[/red]", "0", failure.reason)
		else:
			table.add_row(source.name, "[green]OK[/green]", str(result.count_for(source.name)), source.locator)

	console.print(table)
	console.print(f"{len(result.records)} classes from {len(registry) - len(failures)}/{len(registry)} sources")
	if failures:
		sys.exit(1)


def cmd_snapshot(args: argparse.Namespace, config: Config) -> None:
	"""Fetch every source now and write a registry of embedded snapshots."""
	registry = _registry_or_exit(args, config)
	result = _aggregate(registry, config)
	failed = {f.source for f in result.failures}

	snapshots = []
	for source in registry:
		if source.name in failed:
			continue
		records = [r.to_raw() for r in result.records if r.source_name == source.name]
		snapshots.append(DocSource.embedded(source.name, records, origin=source.locator))
		print(f"  {source.name}: {len(records)} classes")

	for failure in result.failures:
		print(f"  {failure.source}: FAILED ({failure.reason})", file=sys.stderr)

	if not snapshots:
		print("Error: no source could be fetched, snapshot not written", file=sys.stderr)
		sys.exit(1)

	output = Path(args.output) if args.output else config.snapshot_dir / SNAPSHOT_FILE_NAME
	output.parent.mkdir(parents=True, exist_ok=True)
	output.write_text(SourceRegistry(snapshots).to_json(), encoding="utf-8")
	print(f"Wrote {len(snapshots)} embedded sources to {output}")


def _add_registry_options(parser: argparse.ArgumentParser) -> None:
	parser.add_argument("--url", type=str, default=None, help="URL of the primary Moonwave documentation site")
	parser.add_argument(
		"--include-raw",
		action="append",
		default=[],
		metavar="URL",
		help="Additional raw.json URL to include (can be repeated)",
	)
	parser.add_argument(
		"--include-github",
		action="append",
		default=[],
		metavar="OWNER/REPO",
		help="GitHub repo with Moonwave docs, e.g. 'owner/repo' (can be repeated)",
	)
	parser.add_argument("--config", type=str, default=None, help="Path to a moonwave-mcp.json sources file")


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog="moonwave-mcp",
		description="MCP server for browsing Moonwave API documentation",
	)
	parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
	parser.add_argument(
		"--log-level",
		type=str.upper,
		default=None,
		choices=["DEBUG", "INFO", "WARNING", "ERROR"],
		help="Log level (default: from config, else INFO)",
	)
	subparsers = parser.add_subparsers(dest="command")

	# serve
	serve_parser = subparsers.add_parser("serve", help="Run the MCP server (HTTP, or stdio with --stdio)")
	_add_registry_options(serve_parser)
	serve_parser.add_argument("--host", type=str, default=None, help="Bind address (default: from config)")
	serve_parser.add_argument("--port", type=int, default=None, help="Port (default: from config)")
	serve_parser.add_argument("--stdio", action="store_true", help="Serve over stdio instead of HTTP")
	serve_parser.set_defaults(func=cmd_serve)

	# sources
	sources_parser = subparsers.add_parser("sources", help="List configured documentation sources")
	_add_registry_options(sources_parser)
	sources_parser.set_defaults(func=cmd_sources)

	# check
	check_parser = subparsers.add_parser("check", help="Fetch every source once and report failures")
	_add_registry_options(check_parser)
	check_parser.set_defaults(func=cmd_check)

	# snapshot
	snapshot_parser = subparsers.add_parser("snapshot", help="Write a sources file with embedded snapshots")
	_add_registry_options(snapshot_parser)
	snapshot_parser.add_argument(
		"-o", "--output",
		type=str,
		default=None,
		help=f"Output file (default: <data dir>/snapshots/{SNAPSHOT_FILE_NAME})",
	)
	snapshot_parser.set_defaults(func=cmd_snapshot)

	return parser


def main() -> None:
	"""CLI entry point."""
	parser = build_parser()
	args = parser.parse_args()

	if not args.command:
		parser.print_help()
		sys.exit(1)

	load_dotenv()
	config = load_config()
	_configure_logging(args.log_level or config.log_level)
	args.func(args, config)
