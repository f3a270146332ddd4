from types import MappingProxyType

import pytest

from webapi_mcp.errors import ValidationError
from webapi_mcp.normalizer import coerce_required, normalize


def _flat(**overrides) -> dict:
    doc = {"name": "Weather", "url": "https://api.example.com/v1/current"}
    doc.update(overrides)
    return doc


class TestNormalizeFlat:
    def test_fills_defaults(self):
        api = normalize(_flat())
        assert api.kind == "single"
        assert api.description == "Weather API"
        assert api.headers == {}
        method = api.methods[0]
        assert method.name == "Weather"
        assert method.method == "GET"
        assert method.parameters == {}
        assert method.timeout == 30000

    def test_defaults_are_written_back_into_raw(self):
        raw = _flat(parameters={"city": {}})
        normalize(raw)
        assert raw["method"] == "GET"
        assert raw["description"] == "Weather API"
        assert raw["parameters"]["city"] == {"type": "string", "required": False, "description": "city 参数"}

    def test_method_is_upper_cased(self):
        assert normalize(_flat(method="patch")).methods[0].method == "PATCH"

    def test_endpoint_alias(self):
        raw = {"name": "Ping", "endpoint": "/ping", "baseUrl": "https://example.com"}
        api = normalize(raw)
        assert api.methods[0].endpoint == "/ping"
        assert api.base_url == "https://example.com"

    def test_parameter_type_is_lower_cased(self):
        api = normalize(_flat(parameters={"days": {"type": "Number"}}))
        assert api.methods[0].parameters["days"].type == "number"

    def test_parameter_list_form(self):
        api = normalize(_flat(parameters=[{"name": "city", "type": "string", "required": True}]))
        assert api.methods[0].parameters["city"].required is True

    def test_header_values_become_strings(self):
        api = normalize(_flat(headers={"X-Retry": 3}))
        assert api.headers == {"X-Retry": "3"}

    def test_idempotent(self):
        api = normalize(_flat(method="post", parameters={"city": {"type": "string", "required": "是"}}))
        assert normalize(api) == api
        assert normalize(api.to_document()) == api


class TestNormalizeMulti:
    def test_methods_are_normalized(self):
        api = normalize({
            "name": "GitHub",
            "baseUrl": "https://api.github.com",
            "methods": [
                {"name": "Get Repo", "endpoint": "/repos/:owner/:repo"},
                {"name": "Create Issue", "endpoint": "/repos/:owner/:repo/issues", "method": "post"},
            ],
        })
        assert api.kind == "multi"
        assert [m.method for m in api.methods] == ["GET", "POST"]
        assert api.methods[0].description == "GitHub - Get Repo"
        assert api.tool_names() == ["github_get_repo", "github_create_issue"]

    def test_url_is_accepted_as_base_url(self):
        api = normalize({"name": "A", "url": "https://a.example.com", "methods": [{"name": "x", "endpoint": "/x"}]})
        assert api.base_url == "https://a.example.com"

    def test_empty_methods_rejected(self):
        with pytest.raises(ValidationError):
            normalize({"name": "A", "methods": []})

    def test_method_without_endpoint_rejected(self):
        with pytest.raises(ValidationError, match="endpoint"):
            normalize({"name": "A", "methods": [{"name": "x"}]})

    def test_method_without_name_rejected(self):
        with pytest.raises(ValidationError):
            normalize({"name": "A", "methods": [{"endpoint": "/x"}]})


class TestNormalizeRejects:
    @pytest.mark.parametrize("raw", [None, {}, []])
    def test_empty_definition(self, raw):
        with pytest.raises(ValidationError, match="empty"):
            normalize(raw)

    def test_missing_name(self):
        with pytest.raises(ValidationError, match="name"):
            normalize({"url": "https://example.com"})

    def test_missing_url_and_endpoint(self):
        with pytest.raises(ValidationError, match="URL"):
            normalize({"name": "Ping"})

    def test_unknown_http_method(self):
        with pytest.raises(ValidationError, match="HTTP method"):
            normalize(_flat(method="FETCH"))

    def test_unknown_parameter_type(self):
        with pytest.raises(ValidationError, match="parameter type"):
            normalize(_flat(parameters={"when": {"type": "date"}}))

    def test_parameter_not_a_mapping(self):
        with pytest.raises(ValidationError, match="must be a mapping"):
            normalize(_flat(parameters={"city": "string"}))

    def test_invalid_timeout(self):
        with pytest.raises(ValidationError):
            normalize(_flat(timeout=-1))


class TestCoerceRequired:
    @pytest.mark.parametrize("value", [True, "true", "TRUE", " 是 ", 1])
    def test_truthy(self, value):
        assert coerce_required(value) is True

    @pytest.mark.parametrize("value", [False, "false", "yes", "否", "", 0, None])
    def test_falsy(self, value):
        assert coerce_required(value) is False


class TestNormalizeReadOnlyMapping:
    def test_read_only_mapping_is_copied(self):
        raw = MappingProxyType({"name": "Ping", "url": "https://example.com/ping"})
        api = normalize(raw)
        assert api.methods[0].method == "GET"
        assert "method" not in raw

    def test_non_mapping_rejected(self):
        with pytest.raises(ValidationError, match="must be a mapping"):
            normalize(["name", "url"])
