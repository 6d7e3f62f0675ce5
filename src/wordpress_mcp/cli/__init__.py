"""
CLI module for wordpress-mcp.

Provides the console transport for the file tools.
"""

from wordpress_mcp.cli.main import cli

__all__ = ["cli"]
