"""Tests for schema translation into pydantic validators."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from honeycomb.schema import (
	FieldKind,
	FieldSpec,
	SchemaTranslationError,
	build_model,
	describe,
	parse_fields,
	translate_schema,
)


class TestFieldKind:
	@pytest.mark.parametrize("value", ["string", "number", "integer", "boolean", "array", "object"])
	def test_known_kinds(self, value: str) -> None:
		assert FieldKind.parse(value).value == value

	@pytest.mark.parametrize("value", ["date", "", None, 3, ["string"]])
	def test_unknown_falls_back_to_any(self, value: object) -> None:
		assert FieldKind.parse(value) is FieldKind.ANY


class TestParseFields:
	def test_parses_type_and_description(self) -> None:
		fields = parse_fields('{"city": {"type": "string", "description": "City name"}}')
		assert fields == [FieldSpec(name="city", kind=FieldKind.STRING, description="City name")]

	def test_missing_type_is_any(self) -> None:
		fields = parse_fields('{"blob": {"description": "whatever"}}')
		assert fields[0].kind is FieldKind.ANY
		assert fields[0].description == "whatever"

	def test_non_mapping_entry_is_any(self) -> None:
		fields = parse_fields('{"raw": "string"}')
		assert fields == [FieldSpec(name="raw", kind=FieldKind.ANY)]

	def test_empty_object(self) -> None:
		assert parse_fields("{}") == []

	@pytest.mark.parametrize("text", ["not json", "", "[1, 2]", '"string"', "42", "null"])
	def test_rejects_non_object(self, text: str) -> None:
		with pytest.raises(SchemaTranslationError):
			parse_fields(text)


class TestBuildModel:
	def _model(self, **kinds: str):
		return translate_schema(json.dumps({k: {"type": v} for k, v in kinds.items()}))

	def test_string_accepts_str_rejects_number(self) -> None:
		model = self._model(x="string")
		assert model.model_validate({"x": "hi"}).model_dump(by_alias=True) == {"x": "hi"}
		with pytest.raises(ValidationError):
			model.model_validate({"x": 5})

	def test_integer_is_strict(self) -> None:
		model = self._model(n="integer")
		model.model_validate({"n": 3})
		for bad in (3.5, True, "3"):
			with pytest.raises(ValidationError):
				model.model_validate({"n": bad})

	def test_number_accepts_int_and_float(self) -> None:
		model = self._model(v="number")
		assert model.model_validate({"v": 2}).model_dump(by_alias=True)["v"] == 2
		assert model.model_validate({"v": 2.5}).model_dump(by_alias=True)["v"] == 2.5
		with pytest.raises(ValidationError):
			model.model_validate({"v": False})

	def test_boolean(self) -> None:
		model = self._model(flag="boolean")
		model.model_validate({"flag": False})
		with pytest.raises(ValidationError):
			model.model_validate({"flag": "yes"})

	def test_array_and_object(self) -> None:
		model = self._model(items="array", meta="object")
		value = model.model_validate({"items": [1, "a"], "meta": {"k": 1}})
		assert value.model_dump(by_alias=True) == {"items": [1, "a"], "meta": {"k": 1}}
		with pytest.raises(ValidationError):
			model.model_validate({"items": {"a": 1}, "meta": {}})
		with pytest.raises(ValidationError):
			model.model_validate({"items": [], "meta": [1]})

	def test_typed_fields_are_required(self) -> None:
		model = self._model(x="string")
		with pytest.raises(ValidationError):
			model.model_validate({})

	def test_any_accepts_anything_including_absence(self) -> None:
		model = self._model(anything="mystery")
		model.model_validate({})
		model.model_validate({"anything": [1, {"a": None}]})
		model.model_validate({"anything": 7})

	def test_unknown_keys_ignored(self) -> None:
		model = self._model(x="string")
		value = model.model_validate({"x": "a", "extra": 1})
		assert value.model_dump(by_alias=True) == {"x": "a"}

	def test_internal_field_names_not_accepted(self) -> None:
		model = self._model(x="string")
		with pytest.raises(ValidationError):
			model.model_validate({"field_0": "hi"})

	def test_awkward_field_names(self) -> None:
		model = translate_schema('{"model_config": {"type": "string"}, "with-dash": {"type": "integer"}}')
		value = model.model_validate({"model_config": "ok", "with-dash": 1})
		assert value.model_dump(by_alias=True) == {"model_config": "ok", "with-dash": 1}

	def test_description_carried_to_json_schema(self) -> None:
		model = build_model("Weather", [FieldSpec("city", FieldKind.STRING, "City name")])
		described = describe(model)
		assert described["type"] == "object"
		assert described["properties"]["city"]["description"] == "City name"
		assert described["properties"]["city"]["type"] == "string"
		assert described["required"] == ["city"]

	def test_empty_schema_accepts_any_object(self) -> None:
		model = translate_schema("{}")
		assert model.model_validate({"a": 1}).model_dump(by_alias=True) == {}
