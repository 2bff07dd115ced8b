"""Configuration management for Krevetka."""

import os
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Paths
DEFAULT_CONFIG_PATH = Path("~/.krevetka/config.yaml").expanduser()
LOCAL_CONFIG_FILENAME = ".krevetka.yaml"

# Provider keys accepted when no Krevetka-specific key is configured.
FALLBACK_API_KEY_ENV_VARS = ("OPENROUTER_API_KEY", "OPENAI_API_KEY")

_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}


class ModelConfig(BaseModel):
    """Backend and model configuration."""

    base_url: str = "https://openrouter.ai/api/v1"
    api_key: str = ""
    model: str = "anthropic/claude-3.5-sonnet"
    max_tokens: int = Field(default=8192, gt=0)


class ToolsConfig(BaseModel):
    """Tools configuration."""

    skip_shell_approval: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "console"


class Config(BaseSettings):
    """Main configuration for Krevetka."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    system_prompt_extra: str = ""

    model_config = SettingsConfigDict(
        env_prefix="KREVETKA_",
        env_file=".env",
        env_nested_delimiter="__",
    )

    @staticmethod
    def _read_yaml(path: Path) -> dict[str, Any]:
        """Read a YAML mapping, treating a missing file as empty."""
        if not path.exists():
            return {}
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data

    @staticmethod
    def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge `override` into a copy of `base`."""
        merged = dict(base)
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = Config._merge(current, value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def from_yaml(cls, path: Path | str | None = None) -> "Config":
        """Load configuration from a single YAML file."""
        config_path = Path(path).expanduser() if path else DEFAULT_CONFIG_PATH
        return cls(**cls._read_yaml(config_path))

    @classmethod
    def load(cls, overrides: dict[str, Any] | None = None) -> "Config":
        """Load layered configuration.

        Precedence, highest first: explicit overrides, `./.krevetka.yaml`,
        `~/.krevetka/config.yaml`, `KREVETKA_*` environment variables,
        defaults. Pydantic-settings gives init kwargs priority over the
        environment, so the YAML layers are passed as kwargs.
        """
        data = cls._read_yaml(DEFAULT_CONFIG_PATH)
        data = cls._merge(data, cls._read_yaml(Path.cwd() / LOCAL_CONFIG_FILENAME))
        if overrides:
            data = cls._merge(data, overrides)

        config = cls(**data)
        if not config.model.api_key:
            for env_var in FALLBACK_API_KEY_ENV_VARS:
                value = os.environ.get(env_var, "").strip()
                if value:
                    config.model.api_key = value
                    break
        return config

    def is_local_backend(self) -> bool:
        """Whether the configured base URL points at this machine."""
        try:
            host = httpx.URL(self.model.base_url).host
        except httpx.InvalidURL:
            return False
        return host.lower() in _LOCAL_HOSTS

    def display(self) -> dict[str, Any]:
        """Flattened view of the configuration with the API key masked."""
        api_key = self.model.api_key
        masked = f"{api_key[:8]}..." if api_key else "(not set)"
        return {
            "base_url": self.model.base_url,
            "api_key": masked,
            "model": self.model.model,
            "max_tokens": self.model.max_tokens,
            "skip_shell_approval": self.tools.skip_shell_approval,
            "system_prompt_extra": self.system_prompt_extra or "(none)",
        }


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
