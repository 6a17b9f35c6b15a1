"""
Record Models - Pydantic schemas for Moonwave raw API documentation.

Records are open: fields the query tools never look at (params, returns,
properties, source positions, ...) are kept as extras and dumped back
exactly as they arrived.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FunctionRecord(BaseModel):
	"""A documented function, method or event of a class."""
	model_config = ConfigDict(extra="allow")

	name: str = Field(description="Function name")
	function_type: Optional[str] = Field(default=None, description="static, method, event, ...")
	desc: Optional[str] = Field(default=None, description="Markdown description")

	def to_dict(self) -> dict[str, Any]:
		"""Dump the record with the keys it was created from."""
		return self.model_dump(by_alias=True, exclude_unset=True)


class ClassRecord(BaseModel):
	"""A documented class, stamped with the source it was aggregated from."""
	model_config = ConfigDict(extra="allow")

	name: str = Field(description="Class name")
	desc: Optional[str] = Field(default=None)
	tags: Optional[list[str]] = Field(default=None)
	functions: list[FunctionRecord] = Field(default_factory=list)

	# Aggregation metadata, not part of the extracted record
	source_name: Optional[str] = Field(default=None, alias="_source")
	source_url: Optional[str] = Field(default=None, alias="_sourceUrl")

	@field_validator("functions", mode="before")
	@classmethod
	def _null_functions(cls, value: Any) -> Any:
		return [] if value is None else value

	def has_tag(self, tag: str) -> bool:
		return bool(self.tags) and tag in self.tags

	def to_dict(self) -> dict[str, Any]:
		"""Dump the full record, aggregation metadata included."""
		return self.model_dump(by_alias=True, exclude_unset=True)

	def to_raw(self) -> dict[str, Any]:
		"""Dump the record as it was extracted, without aggregation metadata."""
		return self.model_dump(by_alias=True, exclude_unset=True, exclude={"source_name", "source_url"})
