"""Tests for the source registry."""

import json
from pathlib import Path

import pytest

from moonwave_mcp.sources import (
	DocSource,
	RegistryError,
	SourceKind,
	SourceRegistry,
	normalize_repo,
)

from .helpers import make_class


def test_normalize_repo_variants():
	assert normalize_repo("evaera/roblox-lua-promise") == "evaera/roblox-lua-promise"
	assert normalize_repo("https://github.com/evaera/roblox-lua-promise") == "evaera/roblox-lua-promise"
	assert normalize_repo("https://github.com/evaera/roblox-lua-promise.git/") == "evaera/roblox-lua-promise"


def test_normalize_repo_rejects_garbage():
	with pytest.raises(RegistryError):
		normalize_repo("just-a-name")
	with pytest.raises(RegistryError):
		normalize_repo("a/b/c")


def test_docs_url_source_points_at_raw():
	"""A docs site serves its raw data from /raw at the host root."""
	source = DocSource.from_docs_url("https://eryn.io/roblox-lua-promise/")
	assert source.kind is SourceKind.URL
	assert source.fetch_url == "https://eryn.io/raw"
	assert source.name == "eryn.io"


def test_github_source_resolves_raw_json():
	source = DocSource.from_github("https://github.com/sleitnick/RbxUtil")
	assert source.kind is SourceKind.GITHUB
	assert source.name == "sleitnick/RbxUtil"
	assert source.fetch_url == "https://raw.githubusercontent.com/sleitnick/RbxUtil/gh-pages/raw.json"
	assert source.locator == source.fetch_url


def test_github_source_custom_branch():
	source = DocSource(name="util", repo="owner/repo", branch="docs")
	assert source.fetch_url == "https://raw.githubusercontent.com/owner/repo/docs/raw.json"


def test_embedded_source():
	source = DocSource.embedded("snap", [make_class("A"), make_class("B")])
	assert source.kind is SourceKind.EMBEDDED
	assert source.fetch_url is None
	assert source.locator == "embedded:snap"
	assert source.summary() == {"name": "snap", "type": "embedded", "url": "embedded:snap", "records": 2}


def test_embedded_source_keeps_origin():
	source = DocSource.embedded("snap", [], origin="https://x/raw.json")
	assert source.locator == "https://x/raw.json"


def test_source_requires_exactly_one_origin():
	with pytest.raises(ValueError, match="exactly one"):
		DocSource(name="none")
	with pytest.raises(ValueError, match="exactly one"):
		DocSource(name="both", url="https://x/raw.json", repo="a/b")


def test_source_is_frozen():
	source = DocSource.from_raw_url("https://x/raw.json", name="x")
	with pytest.raises(ValueError):
		source.name = "y"


def test_registry_rejects_duplicate_names():
	with pytest.raises(RegistryError, match="Duplicate source name: x"):
		SourceRegistry([
			DocSource.from_raw_url("https://a/raw.json", name="x"),
			DocSource.from_raw_url("https://b/raw.json", name="x"),
		])


def test_registry_order_and_lookup():
	registry = SourceRegistry([
		DocSource.from_raw_url("https://a/raw.json", name="a"),
		DocSource.from_github("o/r"),
		DocSource.embedded("e", []),
	])
	assert registry.names == ["a", "o/r", "e"]
	assert len(registry) == 3
	assert [s.kind for s in registry] == [SourceKind.URL, SourceKind.GITHUB, SourceKind.EMBEDDED]
	assert not registry.is_static


def test_registry_is_static():
	registry = SourceRegistry([DocSource.embedded("a", []), DocSource.embedded("b", [])])
	assert registry.is_static


def test_registry_summaries():
	registry = SourceRegistry([
		DocSource.from_raw_url("https://a/raw.json", name="a"),
		DocSource.from_github("o/r"),
	])
	assert registry.summaries() == [
		{"name": "a", "type": "url", "url": "https://a/raw.json"},
		{"name": "o/r", "type": "github", "url": "https://raw.githubusercontent.com/o/r/gh-pages/raw.json"},
	]


def test_registry_json_round_trip():
	"""A registry serializes into the structure from_json loads."""
	registry = SourceRegistry([
		DocSource.from_raw_url("https://a/raw.json", name="a"),
		DocSource.from_github("o/r", branch="main"),
		DocSource.embedded("e", [make_class("A")], origin="https://e/raw.json"),
	])
	data = json.loads(registry.to_json())
	assert data["sources"][0] == {"name": "a", "url": "https://a/raw.json"}
	assert data["sources"][1] == {"name": "o/r", "repo": "o/r", "branch": "main"}

	loaded = SourceRegistry.from_json(registry.to_json())
	assert loaded.summaries() == registry.summaries()
	assert list(loaded)[2].records == list(registry)[2].records


def test_from_data_accepts_bare_list():
	registry = SourceRegistry.from_data([{"name": "a", "url": "https://a/raw.json"}])
	assert registry.names == ["a"]


def test_from_data_reports_bad_entry():
	with pytest.raises(RegistryError, match="Invalid source #2"):
		SourceRegistry.from_data({"sources": [
			{"name": "a", "url": "https://a/raw.json"},
			{"name": "b"},
		]})


def test_from_json_rejects_invalid_json():
	with pytest.raises(RegistryError, match="not valid JSON"):
		SourceRegistry.from_json("{nope")


def test_from_data_rejects_wrong_shape():
	with pytest.raises(RegistryError):
		SourceRegistry.from_data({"sources": "a"})


def test_from_file_missing(tmp_path: Path):
	with pytest.raises(RegistryError, match="Cannot read registry file"):
		SourceRegistry.from_file(tmp_path / "missing.json")


def test_from_options_order(tmp_path: Path):
	"""Docs URL first, then raw URLs, then GitHub repos, then the config file."""
	config_file = tmp_path / "moonwave-mcp.json"
	config_file.write_text(json.dumps({"sources": [{"name": "extra", "url": "https://extra/raw.json"}]}))

	registry = SourceRegistry.from_options(
		docs_url="https://docs.example.com/lib/",
		include_raw=["https://raw.example.com/raw.json"],
		include_github=["o/r"],
		config_path=config_file,
	)
	assert registry.names == ["docs.example.com", "https://raw.example.com/raw.json", "o/r", "extra"]


def test_from_options_empty():
	with pytest.raises(RegistryError, match="No documentation sources configured"):
		SourceRegistry.from_options()


def test_from_options_bad_repo():
	with pytest.raises(RegistryError):
		SourceRegistry.from_options(include_github=["not-a-repo"])
