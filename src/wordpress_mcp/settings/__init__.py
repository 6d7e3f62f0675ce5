"""
Settings and configuration for the WordPress MCP server.

Example:
    ```python
    from wordpress_mcp.settings import ServerConfig

    config = ServerConfig.from_file("~/.wordpress-mcp/config.yaml")
    print(config.files.root_directory)
    ```
"""

from wordpress_mcp.settings.config import (
    DEFAULT_BASE_URLS,
    EnvironmentSettings,
    LLMSettings,
    ServerConfig,
)

__all__ = [
    "DEFAULT_BASE_URLS",
    "EnvironmentSettings",
    "LLMSettings",
    "ServerConfig",
]
