"""Configuration management for codepaste.

This module defines the supported project languages, the per-language defaults
(source extensions, manifest file, ignore patterns, check command) and the
`Config` dataclass loaded from a JSON config file.
"""

import json
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from codepaste.exceptions import ConfigError


class Language(Enum):
    """Enumeration of supported project languages."""

    RUST = "rust"
    PYTHON = "python"

    @property
    def title(self) -> str:
        return self.value.capitalize()


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "codepaste" / "config.json"
LOCAL_CONFIG_NAME = "codepaste.json"


@dataclass
class Config:
    """Configuration for building a paste.

    Attributes:
        manifest (bool | None): Include the project manifest (Cargo.toml, pyproject.toml).
        readme (bool | None): Include README files.
        ignore_patterns (list[str]): Extra glob-style patterns to ignore during scanning.
        exclude_patterns (list[str]): Patterns excluded from the command line.
    """

    manifest: bool | None = None
    readme: bool | None = None
    ignore_patterns: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> "Config":
        """Load configuration from a JSON file.

        If no path is provided, attempts to load from default locations:
        - `codepaste.json` in current directory
        - `~/.config/codepaste/config.json`

        Args:
            path (str | Path | None): Path to JSON config file, or None for auto-search.

        Returns:
            Config: A configuration instance (defaults when no file exists).

        Raises:
            ConfigError: If the file exists but is not a valid config.
        """
        if not path:
            for default_path in (Path.cwd() / LOCAL_CONFIG_NAME, DEFAULT_CONFIG_PATH):
                if default_path.exists():
                    path = default_path
                    break
            else:
                return cls()

        path = Path(path)
        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

        for key in ("manifest", "readme"):
            if not isinstance(data.get(key), (bool, type(None))):
                raise ConfigError(f"Config key '{key}' in {path} must be true, false or null")
        for key in ("ignore", "exclude"):
            value = data.get(key, [])
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ConfigError(f"Config key '{key}' in {path} must be a list of strings")

        return cls(
            manifest=data.get("manifest"),
            readme=data.get("readme"),
            ignore_patterns=list(data.get("ignore", [])),
            exclude_patterns=list(data.get("exclude", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            dict[str, Any]: Dictionary representation of configuration.
        """
        return {
            "manifest": self.manifest,
            "readme": self.readme,
            "ignore": self.ignore_patterns,
            "exclude": self.exclude_patterns,
        }


def write_default_config(path: str | Path | None = None) -> Path:
    """Write a default config file, creating parent directories.

    Args:
        path (str | Path | None): Target path, `~/.config/codepaste/config.json` if None.

    Returns:
        Path: The path that was written.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(Config().to_dict(), f, indent=2)
        f.write("\n")
    return config_path


# Source file extensions per language
SOURCE_EXTENSIONS = {
    Language.RUST: [".rs"],
    Language.PYTHON: [".py", ".pyi"],
}

MANIFEST_FILES = {
    Language.RUST: "Cargo.toml",
    Language.PYTHON: "pyproject.toml",
}

README_FILES = ["README", "README.md", "README.txt", "README.rst"]

# Default ignore patterns by language
DEFAULT_IGNORE_PATTERNS = {
    Language.RUST: [
        "target/",
        "node_modules/",
        "*.rs.bk",
    ],
    Language.PYTHON: [
        "__pycache__/",
        "node_modules/",
        "venv/",
        "env/",
        "ENV/",
        "dist/",
        "build/",
        "*.egg-info/",
        "htmlcov/",
        "*.pyc",
        "*.pyo",
        "*.pyd",
    ],
}

CHECK_COMMANDS = {
    Language.RUST: ["cargo", "check", "--message-format=human"],
    Language.PYTHON: [sys.executable, "-m", "compileall", "-q", "."],
}
