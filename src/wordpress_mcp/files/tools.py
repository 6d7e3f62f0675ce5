"""
Tool interface over the file manager.

Declares each file operation as a named tool with a description and a JSON
input schema, validates incoming arguments, and wraps every outcome in a
``{"success": ..., ...}`` envelope. Errors never escape a tool call.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wordpress_mcp.files.exceptions import FileManagerError
from wordpress_mcp.files.manager import FileManager
from wordpress_mcp.files.models import FileEdit
from wordpress_mcp.llm.exceptions import LLMError

if TYPE_CHECKING:
    from wordpress_mcp.analysis import ChangeAnalyzer

logger = logging.getLogger(__name__)


class _ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FilePathArgs(_ToolArgs):
    file_path: str = Field(alias="filePath", min_length=1)


class WriteFileArgs(FilePathArgs):
    content: str


class EditFileArgs(FilePathArgs):
    edits: list[FileEdit]


class ListFilesArgs(_ToolArgs):
    directory: Optional[str] = None
    pattern: Optional[str] = None


class SearchInFilesArgs(_ToolArgs):
    search_term: str = Field(alias="searchTerm", min_length=1)
    file_pattern: Optional[str] = Field(default=None, alias="filePattern")


class StartWatchingArgs(_ToolArgs):
    patterns: Optional[list[str]] = None


class NoArgs(_ToolArgs):
    pass


class ChangeInput(_ToolArgs):
    path: str
    type: str
    content: Optional[str] = None


class AnalyzeChangesArgs(_ToolArgs):
    changes: list[ChangeInput]


_FILE_PATH_SCHEMA = {
    "type": "object",
    "properties": {
        "filePath": {"type": "string", "description": "Path relative to WordPress root"},
    },
    "required": ["filePath"],
}


@dataclass
class Tool:
    """A callable tool: name, description, input schema and handler."""

    name: str
    description: str
    input_schema: dict[str, Any]
    arguments: type[_ToolArgs]
    handler: Callable[[Any], Awaitable[dict[str, Any]]]

    def schema(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class FileTools:
    """
    File management tools for remote callers.

    Usage:
        tools = FileTools(FileManager(config), analyzer=analyzer)

        # Tool listing for clients
        schemas = tools.get_tool_schemas()

        # Execute a call
        result = await tools.execute_tool(
            "read_file", {"filePath": "wp-content/themes/site/functions.php"}
        )
        if result["success"]:
            print(result["content"])
    """

    def __init__(
        self,
        manager: FileManager,
        analyzer: Optional["ChangeAnalyzer"] = None,
    ):
        self.manager = manager
        self.analyzer = analyzer
        self._tools = {tool.name: tool for tool in self._build_tools()}

    def _build_tools(self) -> list[Tool]:
        return [
            Tool(
                name="read_file",
                description="Read the contents of a WordPress file",
                input_schema=_FILE_PATH_SCHEMA,
                arguments=FilePathArgs,
                handler=self._read_file,
            ),
            Tool(
                name="write_file",
                description="Write content to a WordPress file, creating parent directories",
                input_schema={
                    "type": "object",
                    "properties": {
                        "filePath": {"type": "string", "description": "Path relative to WordPress root"},
                        "content": {"type": "string", "description": "New file content"},
                    },
                    "required": ["filePath", "content"],
                },
                arguments=WriteFileArgs,
                handler=self._write_file,
            ),
            Tool(
                name="edit_file",
                description="Edit specific lines of a WordPress file (replace, insert or append)",
                input_schema={
                    "type": "object",
                    "properties": {
                        "filePath": {"type": "string", "description": "Path relative to WordPress root"},
                        "edits": {
                            "type": "array",
                            "description": "Edits applied in order",
                            "items": {
                                "type": "object",
                                "properties": {
                                    "line": {"type": "integer", "minimum": 1},
                                    "content": {"type": "string"},
                                    "type": {"type": "string", "enum": ["replace", "insert", "append"]},
                                },
                                "required": ["content", "type"],
                            },
                        },
                    },
                    "required": ["filePath", "edits"],
                },
                arguments=EditFileArgs,
                handler=self._edit_file,
            ),
            Tool(
                name="delete_file",
                description="Delete a WordPress file",
                input_schema=_FILE_PATH_SCHEMA,
                arguments=FilePathArgs,
                handler=self._delete_file,
            ),
            Tool(
                name="backup_file",
                description="Create a timestamped backup of a WordPress file",
                input_schema=_FILE_PATH_SCHEMA,
                arguments=FilePathArgs,
                handler=self._backup_file,
            ),
            Tool(
                name="list_files",
                description="Recursively list files in a WordPress directory",
                input_schema={
                    "type": "object",
                    "properties": {
                        "directory": {"type": "string", "description": "Directory relative to WordPress root"},
                        "pattern": {"type": "string", "description": "Glob or regex matched against file names"},
                    },
                },
                arguments=ListFilesArgs,
                handler=self._list_files,
            ),
            Tool(
                name="search_in_files",
                description="Case-insensitive text search in WordPress files",
                input_schema={
                    "type": "object",
                    "properties": {
                        "searchTerm": {"type": "string"},
                        "filePattern": {"type": "string", "description": "File name pattern (default: *.php)"},
                    },
                    "required": ["searchTerm"],
                },
                arguments=SearchInFilesArgs,
                handler=self._search_in_files,
            ),
            Tool(
                name="get_file_stats",
                description="Get size and timestamps of a WordPress file",
                input_schema=_FILE_PATH_SCHEMA,
                arguments=FilePathArgs,
                handler=self._get_file_stats,
            ),
            Tool(
                name="start_file_watching",
                description="Start monitoring WordPress files for changes",
                input_schema={
                    "type": "object",
                    "properties": {
                        "patterns": {"type": "array", "items": {"type": "string"}},
                    },
                },
                arguments=StartWatchingArgs,
                handler=self._start_file_watching,
            ),
            Tool(
                name="stop_file_watching",
                description="Stop monitoring WordPress files for changes",
                input_schema={"type": "object", "properties": {}},
                arguments=NoArgs,
                handler=self._stop_file_watching,
            ),
            Tool(
                name="analyze_file_changes",
                description="Analyze file changes using AI for security and performance insights",
                input_schema={
                    "type": "object",
                    "properties": {
                        "changes": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {
                                    "path": {"type": "string"},
                                    "type": {"type": "string"},
                                    "content": {"type": "string"},
                                },
                                "required": ["path", "type"],
                            },
                        },
                    },
                    "required": ["changes"],
                },
                arguments=AnalyzeChangesArgs,
                handler=self._analyze_file_changes,
            ),
        ]

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """Name, description and input schema of every tool."""
        return [tool.schema() for tool in self._tools.values()]

    async def execute_tool(
        self, tool_name: str, arguments: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Validate arguments and run a tool.

        Returns:
            ``{"success": True, ...}`` with the tool's data, or
            ``{"success": False, "message": ..., "error_type": ...}``

        Raises:
            ValueError: If the tool name is unknown
        """
        tool = self._tools.get(tool_name)
        if tool is None:
            raise ValueError(f"Unknown tool: {tool_name}")

        try:
            args = tool.arguments.model_validate(arguments or {})
            return await tool.handler(args)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            logger.warning(f"{tool_name} called with invalid arguments: {details}")
            return self._failure(f"Invalid arguments for {tool_name}: {details}", "ValidationError")
        except (FileManagerError, LLMError) as e:
            logger.warning(f"{tool_name} failed: {e}")
            return self._failure(str(e), type(e).__name__)
        except Exception as e:
            logger.error(f"{tool_name} unexpected error: {e}")
            return self._failure(f"Unexpected error: {e}", "UnexpectedError")

    @staticmethod
    def _failure(message: str, error_type: str) -> dict[str, Any]:
        return {"success": False, "message": message, "error_type": error_type}

    async def _read_file(self, args: FilePathArgs) -> dict[str, Any]:
        content = await self.manager.read_file(args.file_path)
        return {
            "success": True,
            "content": content,
            "filePath": args.file_path,
            "message": f"File {args.file_path} read successfully",
        }

    async def _write_file(self, args: WriteFileArgs) -> dict[str, Any]:
        await self.manager.write_file(args.file_path, args.content)
        return {
            "success": True,
            "filePath": args.file_path,
            "message": f"File {args.file_path} written successfully",
        }

    async def _edit_file(self, args: EditFileArgs) -> dict[str, Any]:
        await self.manager.edit_file(args.file_path, args.edits)
        return {
            "success": True,
            "filePath": args.file_path,
            "editsApplied": len(args.edits),
            "message": f"File {args.file_path} edited successfully",
        }

    async def _delete_file(self, args: FilePathArgs) -> dict[str, Any]:
        await self.manager.delete_file(args.file_path)
        return {
            "success": True,
            "filePath": args.file_path,
            "message": f"File {args.file_path} deleted successfully",
        }

    async def _backup_file(self, args: FilePathArgs) -> dict[str, Any]:
        backup_path = await self.manager.backup_file(args.file_path)
        return {
            "success": True,
            "originalFile": args.file_path,
            "backupPath": str(backup_path),
            "message": f"Backed up to {backup_path}",
        }

    async def _list_files(self, args: ListFilesArgs) -> dict[str, Any]:
        files = await self.manager.list_files(args.directory or "", args.pattern)
        return {
            "success": True,
            "files": files,
            "count": len(files),
            "directory": args.directory or "root",
        }

    async def _search_in_files(self, args: SearchInFilesArgs) -> dict[str, Any]:
        matches = await self.manager.search_in_files(args.search_term, args.file_pattern)
        return {
            "success": True,
            "results": [m.model_dump() for m in matches],
            "count": len(matches),
        }

    async def _get_file_stats(self, args: FilePathArgs) -> dict[str, Any]:
        stats = await self.manager.get_file_stats(args.file_path)
        return {
            "success": True,
            "filePath": args.file_path,
            "stats": stats.model_dump(mode="json"),
        }

    async def _start_file_watching(self, args: StartWatchingArgs) -> dict[str, Any]:
        patterns = await asyncio.to_thread(self.manager.start_watching, args.patterns)
        return {"success": True, "patterns": patterns}

    async def _stop_file_watching(self, args: NoArgs) -> dict[str, Any]:
        await asyncio.to_thread(self.manager.stop_watching)
        return {"success": True, "message": "File watching stopped"}

    async def _analyze_file_changes(self, args: AnalyzeChangesArgs) -> dict[str, Any]:
        if self.analyzer is None:
            return self._failure("AI analysis is not configured", "ConfigurationError")

        changes = [change.model_dump(exclude_none=True) for change in args.changes]
        analysis = await self.analyzer.analyze_file_changes(changes)
        return {
            "success": True,
            "analysis": analysis.model_dump(),
            "changesCount": len(changes),
        }
