"""
Query Engine - read-only lookups over an aggregated corpus.

Every function here is pure: records are never modified, and the same
arguments against the same corpus always give the same result. Lookups
that find nothing, or find the same name in several sources, return an
explanatory string instead of raising, so callers can retry with a
narrower query.
"""

from typing import Any, Optional, Sequence, Union

from .models import ClassRecord, FunctionRecord
from .sources import SourceRegistry

Corpus = Sequence[ClassRecord]


def _contains(haystack: str, needle: Optional[str]) -> bool:
	return not needle or needle.lower() in haystack.lower()


def _in_source(record: ClassRecord, source: Optional[str]) -> bool:
	return not source or record.source_name == source


def _source_suffix(source: Optional[str]) -> str:
	return f" in source '{source}'" if source else ""


def list_sources(registry: SourceRegistry) -> list[dict[str, Any]]:
	"""Name and locator of every configured source. Fetches nothing."""
	return registry.summaries()


def get_raw_api_data(corpus: Corpus, source: Optional[str] = None) -> list[dict[str, Any]]:
	return [r.to_dict() for r in corpus if _in_source(r, source)]


def search_classes(
	corpus: Corpus,
	query: Optional[str] = None,
	tag: Optional[str] = None,
	source: Optional[str] = None,
) -> list[dict[str, Any]]:
	"""Classes whose name contains query (case-insensitive), carrying tag, from source."""
	return [
		{
			"name": r.name,
			"tags": r.tags,
			"description": r.desc,
			"source": r.source_name,
		}
		for r in corpus
		if _contains(r.name, query) and (not tag or r.has_tag(tag)) and _in_source(r, source)
	]


def get_class(corpus: Corpus, name: str, source: Optional[str] = None) -> Union[dict[str, Any], str]:
	matches = [r for r in corpus if r.name == name and _in_source(r, source)]
	if not matches:
		return f"Class '{name}' not found{_source_suffix(source)}"
	if len(matches) > 1:
		sources = ", ".join(r.source_name or "?" for r in matches)
		return (
			f"Found {len(matches)} classes named '{name}' in sources: {sources}. "
			"Specify 'source' to pick one."
		)
	return matches[0].to_dict()


def search_functions(
	corpus: Corpus,
	query: Optional[str] = None,
	class_name: Optional[str] = None,
	source: Optional[str] = None,
) -> list[dict[str, Any]]:
	results = []
	for record in corpus:
		if not _in_source(record, source):
			continue
		if class_name and record.name != class_name:
			continue
		for func in record.functions:
			if _contains(func.name, query):
				results.append({
					"className": record.name,
					"name": func.name,
					"type": func.function_type,
					"description": func.desc,
					"source": record.source_name,
				})
	return results


def _annotate(func: FunctionRecord, owner: ClassRecord) -> dict[str, Any]:
	return {**func.to_dict(), "className": owner.name, "_source": owner.source_name}


def get_function(
	corpus: Corpus,
	class_name: str,
	function_name: str,
	source: Optional[str] = None,
) -> Union[dict[str, Any], list[dict[str, Any]], str]:
	"""
	Look up one function of a class.

	Returns:
		The annotated function record for a single match, a list of them when
		the same class and function exist in several sources, or a not-found
		message.
	"""
	candidates = [r for r in corpus if r.name == class_name and _in_source(r, source)]
	if not candidates:
		return f"Class '{class_name}' not found{_source_suffix(source)}"

	matches = [
		_annotate(func, owner)
		for owner in candidates
		for func in owner.functions
		if func.name == function_name
	]
	if not matches:
		return f"Function '{function_name}' not found in class '{class_name}'{_source_suffix(source)}"
	if len(matches) == 1:
		return matches[0]
	return matches
