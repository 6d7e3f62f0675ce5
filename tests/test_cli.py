"""Tests for the command line interface."""

import json
import tempfile
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from wordpress_mcp.cli.main import cli, handle_request
from wordpress_mcp.files import FileManager, FileManagerConfig, FileTools


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def root(temp_dir):
    root = temp_dir / "wordpress"
    root.mkdir()
    (root / "index.php").write_text("<?php\necho 'home';\n")
    return root


@pytest.fixture
def config_file(temp_dir, root):
    path = temp_dir / "config.yaml"
    path.write_text(yaml.safe_dump({
        "files": {
            "root_directory": str(root),
            "backup_directory": str(temp_dir / "backups"),
        },
        "watch_on_start": False,
    }))
    return str(path)


@pytest.fixture
def runner():
    return CliRunner()


class TestToolsCommand:
    """Tests for `wordpress-mcp tools`."""

    def test_tools_json(self, runner, config_file):
        result = runner.invoke(cli, ["-c", config_file, "tools", "--json"])

        assert result.exit_code == 0, result.output
        schemas = json.loads(result.stdout)
        assert "read_file" in {s["name"] for s in schemas}

    def test_tools_table(self, runner, config_file):
        result = runner.invoke(cli, ["-c", config_file, "tools"])

        assert result.exit_code == 0, result.output
        assert "search_in_files" in result.output

    def test_missing_config_file(self, runner, temp_dir):
        result = runner.invoke(cli, ["-c", str(temp_dir / "nope.yaml"), "tools"])
        assert result.exit_code == 2

    def test_invalid_config(self, runner, temp_dir):
        path = temp_dir / "bad.yaml"
        path.write_text("files: [1, 2]\n")

        result = runner.invoke(cli, ["-c", str(path), "tools"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output


class TestCallCommand:
    """Tests for `wordpress-mcp call`."""

    def test_call_read_file(self, runner, config_file):
        result = runner.invoke(
            cli, ["-c", config_file, "call", "read_file", '{"filePath": "index.php"}']
        )

        assert result.exit_code == 0, result.output
        envelope = json.loads(result.stdout)
        assert envelope["success"] is True
        assert envelope["content"] == "<?php\necho 'home';\n"

    def test_call_without_arguments(self, runner, config_file):
        result = runner.invoke(cli, ["-c", config_file, "call", "list_files"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["files"] == ["index.php"]

    def test_call_failure_exit_code(self, runner, config_file):
        result = runner.invoke(
            cli, ["-c", config_file, "call", "read_file", '{"filePath": "missing.php"}']
        )

        assert result.exit_code == 1
        assert json.loads(result.stdout)["success"] is False

    def test_unknown_tool(self, runner, config_file):
        result = runner.invoke(cli, ["-c", config_file, "call", "rm_rf", "{}"])

        assert result.exit_code == 1
        assert "Unknown tool: rm_rf" in result.output

    def test_invalid_json_arguments(self, runner, config_file):
        result = runner.invoke(cli, ["-c", config_file, "call", "read_file", "{oops"])

        assert result.exit_code == 1
        assert "not valid JSON" in result.output


class TestStdioCommand:
    """Tests for `wordpress-mcp stdio`."""

    def test_json_lines(self, runner, config_file):
        requests = "\n".join([
            json.dumps({"id": 1, "tool": "read_file", "arguments": {"filePath": "index.php"}}),
            "",
            "not json",
            json.dumps({"id": 2, "tool": "rm_rf"}),
            json.dumps({"tool": "list_files"}),
        ]) + "\n"

        result = runner.invoke(cli, ["-c", config_file, "stdio"], input=requests)

        assert result.exit_code == 0, result.output
        responses = [json.loads(line) for line in result.stdout.splitlines()]
        assert len(responses) == 4

        assert responses[0]["id"] == 1
        assert responses[0]["success"] is True
        assert responses[1]["success"] is False
        assert responses[1]["error_type"] == "JSONDecodeError"
        assert responses[2] == {
            "id": 2,
            "success": False,
            "message": "Unknown tool: rm_rf",
            "error_type": "UnknownTool",
        }
        assert responses[3]["files"] == ["index.php"]


class TestHandleRequest:
    """Tests for single request handling."""

    @pytest.fixture
    def tools(self, temp_dir, root):
        manager = FileManager(
            FileManagerConfig(root_directory=root, backup_directory=temp_dir / "backups")
        )
        yield FileTools(manager)
        manager.close()

    @pytest.mark.asyncio
    async def test_request_without_tool(self, tools):
        result = await handle_request(tools, '{"arguments": {}}')
        assert result["success"] is False
        assert result["error_type"] == "InvalidRequest"

    @pytest.mark.asyncio
    async def test_arguments_must_be_object(self, tools):
        result = await handle_request(tools, '{"tool": "read_file", "arguments": [1]}')
        assert result["success"] is False
        assert result["message"] == "'arguments' must be an object"

    @pytest.mark.asyncio
    async def test_id_echoed(self, tools):
        result = await handle_request(tools, '{"id": "abc", "tool": "stop_file_watching"}')
        assert result["id"] == "abc"
        assert result["success"] is True


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
