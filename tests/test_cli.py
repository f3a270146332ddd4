from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from webapi_mcp.cli import main

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliCheck:
    def test_check_json(self):
        result = CliRunner().invoke(main, ["check", str(FIXTURES / "weather.json")])
        assert result.exit_code == 0
        assert "Weather: 1 method(s)" in result.output
        assert "weather  GET https://api.example.com/v1/current" in result.output

    def test_check_multi_method_yaml(self):
        result = CliRunner().invoke(main, ["check", str(FIXTURES / "github.yaml")])
        assert result.exit_code == 0
        assert "GitHub: 2 method(s)" in result.output
        assert "github_create_issue  POST" in result.output

    def test_check_markdown(self):
        result = CliRunner().invoke(main, ["check", str(FIXTURES / "translate.md")])
        assert result.exit_code == 0
        assert "翻译: 1 method(s)" in result.output

    def test_check_unsupported_file(self):
        result = CliRunner().invoke(main, ["check", str(FIXTURES / "apis" / "notes.txt")])
        assert result.exit_code != 0
        assert "Unsupported file format" in result.output

    def test_check_unparseable_file(self):
        result = CliRunner().invoke(main, ["check", str(FIXTURES / "apis" / "broken.md")])
        assert result.exit_code != 0
        assert "Could not parse" in result.output

    def test_check_invalid_definition(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"name": "Bad", "url": "https://x.example.com", "method": "FETCH"}', encoding="utf-8")
        result = CliRunner().invoke(main, ["check", str(path)])
        assert result.exit_code != 0
        assert "Unsupported HTTP method" in result.output


class TestCliStart:
    @patch("webapi_mcp.cli.configure_logging")
    @patch("webapi_mcp.server.ApiServer")
    def test_start_bootstraps_and_runs(self, MockServer, mock_logging):
        server = MagicMock()
        MockServer.return_value = server

        result = CliRunner().invoke(main, [
            "start",
            "--api-directory", str(FIXTURES / "apis"),
            "--config", str(FIXTURES / "config.yaml"),
            "-P", "**/*.json",
        ])

        assert result.exit_code == 0
        settings = MockServer.call_args[0][0]
        assert settings.api_directory == FIXTURES / "apis"
        assert settings.api_pattern == "**/*.json"
        assert settings.config_file == FIXTURES / "config.yaml"
        server.bootstrap.assert_called_once()
        server.run.assert_called_once()

    def test_start_rejects_missing_directory(self, tmp_path):
        result = CliRunner().invoke(main, ["start", "-a", str(tmp_path / "missing")])
        assert result.exit_code != 0
