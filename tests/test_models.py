from webapi_mcp.parser.base import ApiDefinition, MethodDefinition, ParamSpec, slugify, tool_name_for


class TestToolNames:
    def test_slugify_lowercases_and_joins_whitespace(self):
        assert slugify("  My   Weather\tAPI ") == "my_weather_api"

    def test_single_shape_uses_api_name_only(self):
        assert tool_name_for("Weather API") == "weather_api"

    def test_method_name_is_appended(self):
        assert tool_name_for("GitHub", "Get Repo") == "github_get_repo"

    def test_definition_tool_names(self):
        api = ApiDefinition(
            name="GitHub",
            kind="multi",
            methods=[
                MethodDefinition(name="Get Repo", endpoint="/repos/:owner/:repo"),
                MethodDefinition(name="List  Issues", endpoint="/issues"),
            ],
        )
        assert api.tool_names() == ["github_get_repo", "github_list_issues"]


class TestParamSpec:
    def test_defaults(self):
        p = ParamSpec()
        assert p.type == "string"
        assert p.required is False
        assert p.default is None


class TestMethodDefinition:
    def test_defaults(self):
        m = MethodDefinition(name="current", endpoint="/v1/current")
        assert m.method == "GET"
        assert m.timeout == 30000
        assert m.response_type == "json"
        assert m.result_path is None

    def test_accepts_camel_case_aliases(self):
        m = MethodDefinition(name="current", endpoint="/v1/current", resultPath="data.items", responseType="text")
        assert m.result_path == "data.items"
        assert m.response_type == "text"


class TestToDocument:
    def test_single_shape_document(self):
        api = ApiDefinition(
            name="Weather",
            description="Weather API",
            base_url="https://api.example.com",
            headers={"X-Api-Key": "demo"},
            methods=[
                MethodDefinition(
                    name="Weather",
                    endpoint="/v1/current",
                    parameters={"city": ParamSpec(required=True, description="City")},
                    result_path="data",
                )
            ],
        )
        doc = api.to_document()
        assert doc["url"] == "/v1/current"
        assert doc["baseUrl"] == "https://api.example.com"
        assert doc["method"] == "GET"
        assert doc["resultPath"] == "data"
        assert doc["parameters"] == {"city": {"type": "string", "required": True, "description": "City"}}
        assert "methods" not in doc

    def test_multi_shape_document(self):
        api = ApiDefinition(
            name="GitHub",
            kind="multi",
            base_url="https://api.github.com",
            methods=[MethodDefinition(name="Get Repo", endpoint="/repos/:owner/:repo")],
        )
        doc = api.to_document()
        assert doc["baseUrl"] == "https://api.github.com"
        assert doc["methods"][0]["endpoint"] == "/repos/:owner/:repo"
        assert "resultPath" not in doc["methods"][0]
        assert "url" not in doc
