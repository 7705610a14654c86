"""Restricted JSON-Schema to pydantic validator translation.

Tool schemas are stored as a flat JSON mapping of field name to
``{"type": ..., "description": ...}``, e.g.::

	{"message": {"type": "string", "description": "Text to echo"}}

Each entry becomes a ``FieldSpec`` tagged with a ``FieldKind``. Unknown or
missing types fall back to ``FieldKind.ANY`` so one odd field never blocks the
whole tool. Only text that is not a JSON object at all is rejected.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr, create_model


class SchemaTranslationError(ValueError):
	"""The schema text is not a JSON object."""


class FieldKind(str, Enum):
	STRING = "string"
	NUMBER = "number"
	INTEGER = "integer"
	BOOLEAN = "boolean"
	ARRAY = "array"
	OBJECT = "object"
	ANY = "any"

	@classmethod
	def parse(cls, value: Any) -> FieldKind:
		"""Map a declared type to a kind; anything unrecognised is ANY."""
		if not isinstance(value, str):
			return cls.ANY
		try:
			return cls(value)
		except ValueError:
			return cls.ANY


_PYTHON_TYPES: dict[FieldKind, Any] = {
	FieldKind.STRING: StrictStr,
	FieldKind.NUMBER: Union[StrictInt, StrictFloat],
	FieldKind.INTEGER: StrictInt,
	FieldKind.BOOLEAN: StrictBool,
	FieldKind.ARRAY: list[Any],
	FieldKind.OBJECT: dict[str, Any],
	FieldKind.ANY: Any,
}


@dataclass(frozen=True)
class FieldSpec:
	"""One declared field of a tool schema."""

	name: str
	kind: FieldKind = FieldKind.ANY
	description: str = ""


def parse_fields(schema_text: str) -> list[FieldSpec]:
	"""Parse stored schema text into field specs.

	Raises:
		SchemaTranslationError: If the text is not valid JSON or not an object.
	"""
	try:
		data = json.loads(schema_text)
	except (json.JSONDecodeError, TypeError) as exc:
		raise SchemaTranslationError(f"Schema is not valid JSON: {exc}") from exc
	if not isinstance(data, dict):
		raise SchemaTranslationError(
			f"Schema must be a JSON object, got {type(data).__name__}",
		)

	fields: list[FieldSpec] = []
	for name, entry in data.items():
		if isinstance(entry, dict):
			description = entry.get("description")
			fields.append(FieldSpec(
				name=name,
				kind=FieldKind.parse(entry.get("type")),
				description=description if isinstance(description, str) else "",
			))
		else:
			fields.append(FieldSpec(name=name))
	return fields


def build_model(model_name: str, fields: list[FieldSpec]) -> type[BaseModel]:
	"""Build a pydantic model validating values of the given shape.

	Declared names are kept as aliases so keys that are not Python identifiers
	(or clash with BaseModel attributes) still validate and serialize as-is.
	ANY fields are optional; all other kinds are required.
	"""
	definitions: dict[str, Any] = {}
	for index, spec in enumerate(fields):
		extra: dict[str, Any] = {"alias": spec.name}
		if spec.description:
			extra["description"] = spec.description
		default = None if spec.kind is FieldKind.ANY else ...
		definitions[f"field_{index}"] = (_PYTHON_TYPES[spec.kind], Field(default, **extra))
	return create_model(
		model_name,
		__config__=ConfigDict(extra="ignore"),
		**definitions,
	)


def translate_schema(schema_text: str, model_name: str = "ToolSchema") -> type[BaseModel]:
	"""Parse and build in one step."""
	return build_model(model_name, parse_fields(schema_text))


def describe(model: type[BaseModel]) -> dict[str, Any]:
	"""JSON Schema advertised to MCP clients for a translated model."""
	return model.model_json_schema(by_alias=True)
