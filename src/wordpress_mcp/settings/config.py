"""
Server configuration.

This module provides configuration management for the server: where the
WordPress tree lives, where backups go, and which LLM endpoint (if any) backs
the change analysis tool. Configuration comes from a YAML/JSON file or from
environment variables (optionally via a ``.env`` file).
"""

import json
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from wordpress_mcp.files.config import FileManagerConfig
from wordpress_mcp.llm.config import LLMConfig, ProviderType

DEFAULT_BASE_URLS = {
    ProviderType.OPENAI: "https://api.openai.com/v1",
    ProviderType.OLLAMA: "http://localhost:11434/v1",
    ProviderType.LMSTUDIO: "http://localhost:1234/v1",
    ProviderType.DUMMY: "http://localhost",
}


class LLMSettings(BaseModel):
    """
    LLM provider settings.

    SECURITY: The API key is a SecretStr and is masked in string
    representations and in ``to_dict()`` unless secrets are requested.

    Example:
        ```python
        settings = LLMSettings(
            provider="ollama",
            model="llama3.1",
            base_url="http://localhost:11434/v1",
        )
        provider = get_provider(settings.to_llm_config())
        ```
    """

    model_config = {"extra": "forbid"}

    provider: ProviderType = Field(
        default=ProviderType.OPENAI,
        description="LLM provider type (openai, ollama, lmstudio, dummy)",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model name to use",
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL for the API (defaults based on provider)",
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key (if required)",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: Optional[int] = Field(
        default=None,
        description="Maximum tokens to generate",
    )

    def get_api_key(self) -> Optional[str]:
        """Get the API key as a plain string. Internal use only."""
        if self.api_key:
            return self.api_key.get_secret_value()
        return None

    def to_llm_config(self) -> LLMConfig:
        """Build the provider configuration."""
        return LLMConfig(
            provider=self.provider,
            model=self.model,
            base_url=self.base_url or DEFAULT_BASE_URLS[self.provider],
            api_key=self.api_key,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    def __repr__(self) -> str:
        """Safe representation that hides the API key."""
        api_key_str = "'***'" if self.api_key else "None"
        return (
            f"LLMSettings(provider={self.provider.value!r}, model={self.model!r}, "
            f"api_key={api_key_str})"
        )

    def __str__(self) -> str:
        return f"LLMSettings(provider={self.provider.value}, model={self.model})"


class EnvironmentSettings(BaseSettings):
    """
    Settings read from the process environment and ``.env``.

    Environment variables:
        WORDPRESS_ROOT_PATH - WordPress root directory
        BACKUP_DIRECTORY - Backup directory
        LLM_PROVIDER - LLM provider type (enables analysis when set)
        LLM_MODEL - Model name
        LLM_BASE_URL - LLM API base URL
        LLM_API_KEY - LLM API key
        LLM_TEMPERATURE - Sampling temperature
        WATCH_ON_START - Start watching when the stdio server starts
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    wordpress_root_path: Optional[Path] = None
    backup_directory: Optional[Path] = None
    llm_provider: Optional[ProviderType] = None
    llm_model: Optional[str] = None
    llm_base_url: Optional[str] = None
    llm_api_key: Optional[SecretStr] = None
    llm_temperature: Optional[float] = None
    watch_on_start: bool = True


class ServerConfig(BaseModel):
    """
    Complete server configuration.

    SECURITY: String representations and ``to_dict()`` mask the LLM API key.

    Example:
        ```python
        config = ServerConfig(
            files=FileManagerConfig(root_directory="/var/www/html"),
            llm=LLMSettings(provider="openai", api_key="sk-..."),
        )

        # Load from file
        config = ServerConfig.from_file("~/.wordpress-mcp/config.yaml")

        # Or from the environment
        config = ServerConfig.from_env()
        ```
    """

    model_config = {"extra": "forbid"}

    files: FileManagerConfig = Field(
        default_factory=FileManagerConfig,
        description="File manager configuration",
    )
    llm: Optional[LLMSettings] = Field(
        default=None,
        description="LLM settings for change analysis (disabled when missing)",
    )
    watch_on_start: bool = Field(
        default=True,
        description="Start the change watcher when the server starts",
    )

    def __repr__(self) -> str:
        return (
            f"ServerConfig(files={self.files!r}, llm={self.llm!r}, "
            f"watch_on_start={self.watch_on_start})"
        )

    def __str__(self) -> str:
        return f"ServerConfig(root={self.files.root_directory})"

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ServerConfig":
        """
        Load configuration from a YAML or JSON file.

        File format (YAML):
            ```yaml
            files:
              root_directory: /var/www/html
              backup_directory: /var/backups/wordpress
              watch_patterns: ["**/*.php", "**/*.js"]

            llm:
              provider: ollama
              model: llama3.1
              base_url: http://localhost:11434/v1

            watch_on_start: true
            ```

        Raises:
            FileNotFoundError: If the config file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text()

        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "ServerConfig":
        return cls(**data)

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = ".env") -> "ServerConfig":
        """
        Load configuration from environment variables.

        See EnvironmentSettings for the variable names. Unset variables keep
        their defaults; the LLM section is only created when LLM_PROVIDER is set.
        """
        env = EnvironmentSettings(_env_file=env_file)

        files: dict[str, Any] = {}
        if env.wordpress_root_path:
            files["root_directory"] = env.wordpress_root_path
        if env.backup_directory:
            files["backup_directory"] = env.backup_directory

        llm = None
        if env.llm_provider:
            llm_data: dict[str, Any] = {"provider": env.llm_provider}
            if env.llm_model:
                llm_data["model"] = env.llm_model
            if env.llm_base_url:
                llm_data["base_url"] = env.llm_base_url
            if env.llm_api_key:
                llm_data["api_key"] = env.llm_api_key
            if env.llm_temperature is not None:
                llm_data["temperature"] = env.llm_temperature
            llm = LLMSettings(**llm_data)

        return cls(
            files=FileManagerConfig(**files),
            llm=llm,
            watch_on_start=env.watch_on_start,
        )

    def to_dict(self, include_secrets: bool = False) -> dict:
        """
        Export configuration to a dictionary.

        Args:
            include_secrets: If True, include the API key in clear text
        """
        data: dict[str, Any] = {
            "files": self.files.model_dump(mode="json"),
            "watch_on_start": self.watch_on_start,
        }

        if self.llm:
            data["llm"] = {
                "provider": self.llm.provider.value,
                "model": self.llm.model,
                "temperature": self.llm.temperature,
            }
            if self.llm.base_url:
                data["llm"]["base_url"] = self.llm.base_url
            if self.llm.api_key:
                data["llm"]["api_key"] = self.llm.get_api_key() if include_secrets else "***"
            if self.llm.max_tokens:
                data["llm"]["max_tokens"] = self.llm.max_tokens

        return data
