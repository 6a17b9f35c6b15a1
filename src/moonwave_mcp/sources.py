"""
Source Registry - the documentation sources a server deployment answers for.

A source is either fetched at request time (a raw-data URL, a docs site or a
GitHub repository) or carries an embedded snapshot captured ahead of time.
Registries are built once at startup and never mutated afterwards.

Usage:
	registry = SourceRegistry.from_options(
		docs_url="https://evaera.github.io/roblox-lua-promise/",
		include_github=["sleitnick/RbxUtil"],
	)
	registry.to_json()  # structured, loadable with SourceRegistry.from_json
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional
from urllib.parse import urljoin, urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "gh-pages"
GITHUB_RAW_TEMPLATE = "https://raw.githubusercontent.com/{repo}/{branch}/raw.json"


class RegistryError(ValueError):
	"""Raised when the source configuration is invalid."""
	pass


class SourceKind(str, Enum):
	"""Where a source's records come from."""
	URL = "url"
	GITHUB = "github"
	EMBEDDED = "embedded"


def normalize_repo(repo: str) -> str:
	"""Reduce a GitHub URL or 'owner/repo' string to 'owner/repo'."""
	value = repo.strip()
	if "://" in value:
		value = urlparse(value).path
	value = value.strip("/")
	if value.endswith(".git"):
		value = value[:-4]
	parts = [p for p in value.split("/") if p]
	if len(parts) != 2:
		raise RegistryError(f"Invalid GitHub repository: {repo!r} (expected 'owner/repo')")
	return "/".join(parts)


class DocSource(BaseModel):
	"""One documentation source. Exactly one of url, repo or records is set."""
	model_config = ConfigDict(frozen=True)

	name: str = Field(min_length=1, description="Unique name within a registry")
	url: Optional[str] = Field(default=None, description="Direct raw-data URL")
	repo: Optional[str] = Field(default=None, description="GitHub 'owner/repo'")
	branch: str = Field(default=DEFAULT_BRANCH, description="Branch holding raw.json for repo sources")
	records: Optional[tuple[dict[str, Any], ...]] = Field(default=None, description="Embedded snapshot")
	origin: Optional[str] = Field(default=None, description="Where an embedded snapshot was captured from")

	@field_validator("repo")
	@classmethod
	def _normalize_repo(cls, value: Optional[str]) -> Optional[str]:
		return None if value is None else normalize_repo(value)

	@model_validator(mode="after")
	def _exactly_one_origin(self) -> "DocSource":
		given = [key for key in ("url", "repo", "records") if getattr(self, key) is not None]
		if len(given) != 1:
			raise ValueError(
				f"source '{self.name}' must set exactly one of url, repo or records (got {given or 'none'})"
			)
		return self

	@property
	def kind(self) -> SourceKind:
		if self.records is not None:
			return SourceKind.EMBEDDED
		if self.repo is not None:
			return SourceKind.GITHUB
		return SourceKind.URL

	@property
	def fetch_url(self) -> Optional[str]:
		"""The URL to fetch at request time, None for embedded snapshots."""
		if self.kind is SourceKind.GITHUB:
			return GITHUB_RAW_TEMPLATE.format(repo=self.repo, branch=self.branch)
		return self.url

	@property
	def locator(self) -> str:
		"""Human-readable origin, stamped on records as _sourceUrl."""
		if self.kind is SourceKind.EMBEDDED:
			return self.origin or f"embedded:{self.name}"
		return self.fetch_url

	def summary(self) -> dict[str, Any]:
		data: dict[str, Any] = {"name": self.name, "type": self.kind.value, "url": self.locator}
		if self.kind is SourceKind.EMBEDDED:
			data["records"] = len(self.records)
		return data

	@classmethod
	def from_docs_url(cls, docs_url: str, name: Optional[str] = None) -> "DocSource":
		"""A Moonwave docs site; its raw data is served from /raw."""
		return cls(name=name or urlparse(docs_url).netloc or docs_url, url=urljoin(docs_url, "/raw"))

	@classmethod
	def from_raw_url(cls, raw_url: str, name: Optional[str] = None) -> "DocSource":
		return cls(name=name or raw_url, url=raw_url)

	@classmethod
	def from_github(cls, repo: str, name: Optional[str] = None, branch: str = DEFAULT_BRANCH) -> "DocSource":
		repo = normalize_repo(repo)
		return cls(name=name or repo, repo=repo, branch=branch)

	@classmethod
	def embedded(
		cls,
		name: str,
		records: Iterable[dict[str, Any]],
		origin: Optional[str] = None,
	) -> "DocSource":
		return cls(name=name, records=tuple(records), origin=origin)


class SourceRegistry:
	"""Ordered, name-unique collection of documentation sources."""

	def __init__(self, sources: Iterable[DocSource]):
		self._sources: tuple[DocSource, ...] = tuple(sources)
		seen: set[str] = set()
		for source in self._sources:
			if source.name in seen:
				raise RegistryError(f"Duplicate source name: {source.name}")
			seen.add(source.name)

	def __iter__(self) -> Iterator[DocSource]:
		return iter(self._sources)

	def __len__(self) -> int:
		return len(self._sources)

	@property
	def names(self) -> list[str]:
		return [s.name for s in self._sources]

	@property
	def is_static(self) -> bool:
		"""True when every source is an embedded snapshot."""
		return all(s.kind is SourceKind.EMBEDDED for s in self._sources)

	def summaries(self) -> list[dict[str, Any]]:
		return [s.summary() for s in self._sources]

	def to_dict(self) -> dict[str, Any]:
		return {
			"sources": [
				s.model_dump(mode="json", exclude_none=True, exclude_defaults=True)
				for s in self._sources
			]
		}

	def to_json(self, indent: int = 2) -> str:
		return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

	@classmethod
	def from_data(cls, data: Any) -> "SourceRegistry":
		"""Build from the registry file structure: {"sources": [...]} or a bare list."""
		entries = data.get("sources") if isinstance(data, dict) else data
		if not isinstance(entries, list):
			raise RegistryError("Registry must be a JSON array or an object with a 'sources' array")
		sources = []
		for index, entry in enumerate(entries):
			try:
				sources.append(DocSource.model_validate(entry))
			except ValidationError as e:
				raise RegistryError(f"Invalid source #{index + 1}: {e}") from e
		return cls(sources)

	@classmethod
	def from_json(cls, text: str) -> "SourceRegistry":
		try:
			data = json.loads(text)
		except json.JSONDecodeError as e:
			raise RegistryError(f"Registry is not valid JSON: {e}") from e
		return cls.from_data(data)

	@classmethod
	def from_file(cls, path: Path) -> "SourceRegistry":
		try:
			text = Path(path).read_text(encoding="utf-8")
		except OSError as e:
			raise RegistryError(f"Cannot read registry file {path}: {e}") from e
		registry = cls.from_json(text)
		logger.debug(f"Loaded {len(registry)} sources from {path}")
		return registry

	@classmethod
	def from_options(
		cls,
		docs_url: Optional[str] = None,
		include_raw: Iterable[str] = (),
		include_github: Iterable[str] = (),
		config_path: Optional[Path] = None,
	) -> "SourceRegistry":
		"""Combine command-line style options; the config file's sources come last."""
		sources: list[DocSource] = []
		try:
			if docs_url:
				sources.append(DocSource.from_docs_url(docs_url))
			sources.extend(DocSource.from_raw_url(url) for url in include_raw)
			sources.extend(DocSource.from_github(repo) for repo in include_github)
		except ValidationError as e:
			raise RegistryError(str(e)) from e
		if config_path is not None:
			sources.extend(cls.from_file(config_path))
		if not sources:
			raise RegistryError("No documentation sources configured")
		return cls(sources)
