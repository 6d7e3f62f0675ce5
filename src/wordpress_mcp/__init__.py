"""
WordPress MCP - file management tools for a WordPress site.

This package exposes a WordPress tree as callable tools: reading, writing,
line-level editing, backups, search and change watching, plus optional
AI-assisted review of changes.
"""

__version__ = "0.1.0"

from wordpress_mcp.files import (
    ChangeType,
    EditType,
    FileChange,
    FileEdit,
    FileManager,
    FileManagerConfig,
    FileManagerError,
    FileOperationError,
    FileStats,
    FileTools,
    InvalidPathError,
    SearchMatch,
    Subscription,
)

from wordpress_mcp.llm import (
    DummyProvider,
    DummyProviderConfig,
    LLMConfig,
    LLMError,
    LLMProvider,
    LLMResponse,
    OpenAIProvider,
    ProviderType,
    get_provider,
)

from wordpress_mcp.analysis import ChangeAnalysis, ChangeAnalyzer

from wordpress_mcp.settings import LLMSettings, ServerConfig

__all__ = [
    # Version
    "__version__",
    # Files
    "FileManager",
    "FileManagerConfig",
    "FileTools",
    "Subscription",
    "ChangeType",
    "EditType",
    "FileChange",
    "FileEdit",
    "FileStats",
    "SearchMatch",
    "FileManagerError",
    "FileOperationError",
    "InvalidPathError",
    # LLM
    "LLMConfig",
    "DummyProviderConfig",
    "ProviderType",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "DummyProvider",
    "get_provider",
    "LLMError",
    # Analysis
    "ChangeAnalyzer",
    "ChangeAnalysis",
    # Settings
    "ServerConfig",
    "LLMSettings",
]
