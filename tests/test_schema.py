import pytest
from pydantic import ValidationError as PydanticValidationError

from webapi_mcp.parser.base import MethodDefinition, ParamSpec
from webapi_mcp.schema import build_schema, json_schema, validate_arguments


def _method(**params: ParamSpec) -> MethodDefinition:
    return MethodDefinition(name="search items", endpoint="/search", parameters=params)


class TestBuildSchema:
    def test_model_name(self):
        assert build_schema(_method()).__name__ == "SearchItemsArguments"

    def test_required_and_optional(self):
        schema = build_schema(_method(
            q=ParamSpec(type="string", required=True, description="Query"),
            page=ParamSpec(type="number"),
        ))
        doc = json_schema(schema)
        assert doc["required"] == ["q"]
        assert doc["properties"]["q"]["description"] == "Query"
        assert set(doc["properties"]) == {"q", "page"}

    def test_default_is_applied(self):
        schema = build_schema(_method(units=ParamSpec(default="metric")))
        assert validate_arguments(schema, {}) == {"units": "metric"}
        assert json_schema(schema)["properties"]["units"]["default"] == "metric"

    def test_names_that_clash_with_model_attributes(self):
        schema = build_schema(_method(json=ParamSpec(required=True), **{"user-id": ParamSpec()}))
        assert validate_arguments(schema, {"json": "x", "user-id": "7"}) == {"json": "x", "user-id": "7"}


class TestValidateArguments:
    def test_omitted_optional_arguments_are_dropped(self):
        schema = build_schema(_method(q=ParamSpec(required=True), page=ParamSpec(type="number")))
        assert validate_arguments(schema, {"q": "books"}) == {"q": "books"}

    def test_number_keeps_integers(self):
        schema = build_schema(_method(id=ParamSpec(type="number", required=True)))
        assert validate_arguments(schema, {"id": 42}) == {"id": 42}
        assert validate_arguments(schema, {"id": 1.5}) == {"id": 1.5}

    def test_array_and_object(self):
        schema = build_schema(_method(
            tags=ParamSpec(type="array", required=True),
            filter=ParamSpec(type="object", required=True),
        ))
        args = validate_arguments(schema, {"tags": ["a", 1], "filter": {"x": [1]}})
        assert args == {"tags": ["a", 1], "filter": {"x": [1]}}

    def test_missing_required_argument(self):
        schema = build_schema(_method(q=ParamSpec(required=True)))
        with pytest.raises(PydanticValidationError):
            validate_arguments(schema, {})

    def test_wrong_type(self):
        schema = build_schema(_method(flag=ParamSpec(type="boolean", required=True)))
        with pytest.raises(PydanticValidationError):
            validate_arguments(schema, {"flag": {"not": "a bool"}})

    def test_none_arguments(self):
        assert validate_arguments(build_schema(_method()), None) == {}
