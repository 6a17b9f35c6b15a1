"""
Documentation Aggregator - merges every registered source into one corpus.

Features:
- Embedded snapshots are copied without any network access
- Remote sources are fetched concurrently with aiohttp and joined
- A failing source contributes no records and is reported, never raised
- Every record is stamped with _source and _sourceUrl
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional

import aiohttp
from pydantic import ValidationError

from . import __version__
from .models import ClassRecord
from .sources import DocSource, SourceKind

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 15.0
USER_AGENT = f"moonwave-mcp/{__version__}"

FetchJSON = Callable[[str], Awaitable[Any]]

METADATA_KEYS = frozenset({"_source", "_sourceUrl", "source_name", "source_url"})


class SourceFetchError(Exception):
	"""Raised when a single source cannot be fetched or parsed."""
	pass


@dataclass
class SourceFailure:
	"""Why one source contributed nothing to an aggregation."""
	source: str
	url: str
	reason: str


@dataclass
class AggregationResult:
	"""Merged corpus plus the per-source failures of one aggregation run."""
	records: list[ClassRecord] = field(default_factory=list)
	failures: list[SourceFailure] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not self.failures

	def count_for(self, source: str) -> int:
		return sum(1 for r in self.records if r.source_name == source)


def parse_records(payload: Any, source: DocSource) -> list[ClassRecord]:
	"""
	Validate a raw-data payload and stamp each record with its source.

	The whole payload is rejected if any entry is malformed, so a source
	never contributes a partial corpus.
	"""
	if not isinstance(payload, list):
		raise SourceFetchError(f"expected a JSON array of classes, got {type(payload).__name__}")

	records = []
	for index, raw in enumerate(payload):
		if not isinstance(raw, dict):
			raise SourceFetchError(f"entry #{index} is {type(raw).__name__}, not an object")
		# Metadata keys in the payload, under either spelling, are replaced by the stamp
		stamped = {k: v for k, v in raw.items() if k not in METADATA_KEYS}
		stamped.update({"_source": source.name, "_sourceUrl": source.locator})
		try:
			records.append(ClassRecord.model_validate(stamped))
		except ValidationError as e:
			raise SourceFetchError(f"entry #{index} is not a valid class record ({e.error_count()} errors)") from e
	return records


class Aggregator:
	"""
	Resolves a set of sources into one source-tagged corpus.

	Usage:
		aggregator = Aggregator(timeout=10)
		result = await aggregator.aggregate(registry)
		result.records   # list[ClassRecord] in registry order
		result.failures  # list[SourceFailure]
	"""

	def __init__(
		self,
		timeout: float = DEFAULT_FETCH_TIMEOUT,
		fetch_json: Optional[FetchJSON] = None,
	):
		"""
		Initialize the aggregator.

		Args:
			timeout: Total timeout per aggregation's HTTP session, in seconds
			fetch_json: Optional replacement for the aiohttp fetch (url -> parsed JSON)
		"""
		self.timeout = timeout
		self._fetch_json = fetch_json

	async def aggregate(self, sources: Iterable[DocSource]) -> AggregationResult:
		sources = list(sources)
		remote = [s for s in sources if s.kind is not SourceKind.EMBEDDED]

		outcomes: list[Any] = await self._fetch_remote(remote) if remote else []
		remote_outcomes = {id(s): outcome for s, outcome in zip(remote, outcomes)}

		result = AggregationResult()
		for source in sources:
			if source.kind is SourceKind.EMBEDDED:
				try:
					outcome: Any = parse_records(list(source.records), source)
				except SourceFetchError as e:
					outcome = e
			else:
				outcome = remote_outcomes[id(source)]

			if isinstance(outcome, BaseException):
				reason = str(outcome) or type(outcome).__name__
				logger.warning(f"Source '{source.name}' skipped ({source.locator}): {reason}")
				result.failures.append(SourceFailure(source=source.name, url=source.locator, reason=reason))
				continue
			result.records.extend(outcome)

		logger.debug(
			f"Aggregated {len(result.records)} classes from {len(sources)} sources "
			f"({len(result.failures)} failed)"
		)
		return result

	async def _fetch_remote(self, sources: list[DocSource]) -> list[Any]:
		"""Fetch all remote sources at once; each outcome is records or an exception."""
		if self._fetch_json is not None:
			return await asyncio.gather(
				*(self._load(self._fetch_json, s) for s in sources),
				return_exceptions=True,
			)

		async with aiohttp.ClientSession(
			headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
			timeout=aiohttp.ClientTimeout(total=self.timeout),
		) as session:

			async def fetch(url: str) -> Any:
				return await _http_fetch_json(session, url)

			return await asyncio.gather(
				*(self._load(fetch, s) for s in sources),
				return_exceptions=True,
			)

	async def _load(self, fetch: FetchJSON, source: DocSource) -> list[ClassRecord]:
		url = source.fetch_url
		logger.debug(f"Fetching '{source.name}' from {url}")
		try:
			payload = await fetch(url)
		except SourceFetchError:
			raise
		except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
			raise SourceFetchError(f"{type(e).__name__}: {e}") from e
		return parse_records(payload, source)


async def _http_fetch_json(session: aiohttp.ClientSession, url: str) -> Any:
	async with session.get(url) as response:
		if response.status != 200:
			raise SourceFetchError(f"HTTP {response.status} from {url}")
		# Raw data is often served as text/plain from static hosts
		return await response.json(content_type=None)
