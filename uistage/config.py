"""Configuration settings for uistage.

Uses pydantic-settings for config parsing from environment variables and
defaults, with an optional YAML config file. Configuration precedence:
CLI flags > env vars > config file > defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_FILE = "uistage.yaml"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the UISTAGE_ prefix.
    Relative ``build_dir`` and ``target_dir`` are resolved against the
    project directory, the way the pipeline sees them after changing into it.
    """

    model_config = SettingsConfigDict(
        env_prefix="UISTAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    project_dir: Path = Field(
        default=Path("duo-ui/jaeger-ui"),
        description="Front-end project directory holding the package manifest",
    )
    build_dir: Path = Field(
        default=Path("packages/jaeger-ui/build"),
        description="Build output directory, relative to the project directory",
    )
    target_dir: Path = Field(
        default=Path("../../duo/ui"),
        description="Target staging directory, relative to the project directory",
    )
    overlay_dir: Path | None = Field(
        default=None,
        description="Modified packages copied into <project>/packages before install",
    )

    # Package manager
    package_manager: str = Field(
        default="yarn",
        min_length=1,
        description="Package manager executable",
    )
    install_args: list[str] = Field(
        default_factory=list,
        description="Arguments for the install command",
    )
    build_args: list[str] = Field(
        default_factory=lambda: ["build"],
        description="Arguments for the build command",
    )

    # Staging
    prune_patterns: list[str] = Field(
        default_factory=lambda: ["*runtime*.js", "*.map"],
        description="Filename globs deleted from the build output",
    )
    staged_entries: list[str] = Field(
        default_factory=lambda: ["index.html", "static"],
        description="Build output entries copied into the target directory",
    )
    legacy_clear_check: bool = Field(
        default=False,
        description="Reproduce the literal-wildcard existence check on the target",
    )

    # Timeouts (in seconds, None = no timeout)
    install_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for the install command",
    )
    build_timeout: int | None = Field(
        default=None,
        ge=1,
        description="Timeout for the build command",
    )

    # Logging
    log_file: Path | None = Field(
        default=None,
        description="Capture install/build output to this file instead of the terminal",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    def resolved_project_dir(self, base: Path | None = None) -> Path:
        """Return the absolute project directory."""
        if base is None:
            base = Path.cwd()
        return (base / self.project_dir).resolve()

    def resolved_build_dir(self, base: Path | None = None) -> Path:
        """Return the absolute build output directory."""
        return (self.resolved_project_dir(base) / self.build_dir).resolve()

    def resolved_target_dir(self, base: Path | None = None) -> Path:
        """Return the absolute target staging directory."""
        return (self.resolved_project_dir(base) / self.target_dir).resolve()


def load_config_file(path: Path) -> dict[str, Any]:
    """Load settings values from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Mapping of setting names to raw values.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the content is not a mapping or has unknown keys.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")

    unknown = sorted(set(data) - set(Settings.model_fields))
    if unknown:
        raise ValueError(f"Unknown settings in {path}: {', '.join(unknown)}")
    return data


def get_settings(
    config_path: Path | None = None,
    **overrides: Any,
) -> Settings:
    """Get the effective application settings.

    Args:
        config_path: Optional YAML config file. When not given, ``uistage.yaml``
            in the current directory is used if present.
        **overrides: CLI-level overrides; ``None`` values are ignored.

    Returns:
        Settings instance.
    """
    if config_path is None:
        default_path = Path.cwd() / DEFAULT_CONFIG_FILE
        if default_path.is_file():
            config_path = default_path

    file_values = load_config_file(config_path) if config_path else {}
    if not file_values and not overrides:
        return Settings()

    env_settings = Settings()
    env_values = {
        name: getattr(env_settings, name) for name in env_settings.model_fields_set
    }
    cli_values = {k: v for k, v in overrides.items() if v is not None}

    return Settings(**{**file_values, **env_values, **cli_values})


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "Settings",
    "get_settings",
    "load_config_file",
    "print_settings_json",
]
