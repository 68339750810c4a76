"""Configuration management for p4file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli_w

from p4file.diff.models import DEFAULT_CONTEXT_LINES, MAX_FILESIZE, DiffOptions
from p4file.exceptions import ConfigParseError, ConfigValidationError
from p4file.filter.query import SORT_CLAUSE_COUNT_2010_2, QueryBuilder
from p4file.utils.p4 import P4Runner


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".config" / "p4file" / "config.toml"


@dataclass
class Config:
    """Library configuration.

    Attributes:
        p4_executable: Name or path of the p4 binary.
        p4_port: Server address; None defers to P4PORT.
        p4_user: User name; None defers to P4USER.
        p4_client: Client workspace; None defers to P4CLIENT.
        p4_charset: Character set for unicode servers.
        diff_ignore_whitespace: Ignore whitespace changes when diffing.
        diff_context_lines: Lines of context around each hunk.
        diff_max_filesize: Byte cap for add/delete content.
        diff_utf8_convert: Convert Windows-1252/Mac Roman content to UTF-8.
        diff_utf8_sanitize: Replace invalid UTF-8 with U+FFFD.
        sort_clause_count: Sort clauses the server supports.
        colored_output: Whether to use colored terminal output.
        config_path: Path where config was loaded from (None if defaults).
    """

    p4_executable: str = "p4"
    p4_port: str | None = None
    p4_user: str | None = None
    p4_client: str | None = None
    p4_charset: str | None = None
    diff_ignore_whitespace: bool = False
    diff_context_lines: int = DEFAULT_CONTEXT_LINES
    diff_max_filesize: int = MAX_FILESIZE
    diff_utf8_convert: bool = False
    diff_utf8_sanitize: bool = False
    sort_clause_count: int = SORT_CLAUSE_COUNT_2010_2
    colored_output: bool = True
    config_path: Path | None = None

    def validate(self) -> list[str]:
        """Validate configuration values.

        Returns:
            List of warning messages for non-fatal issues.
        """
        warnings: list[str] = []

        if self.diff_context_lines < 0:
            warnings.append(
                f"diff.context_lines={self.diff_context_lines} is negative; using 0"
            )
            self.diff_context_lines = 0

        if self.diff_max_filesize <= 0:
            warnings.append(
                f"diff.max_filesize={self.diff_max_filesize} must be positive; "
                f"using {MAX_FILESIZE}"
            )
            self.diff_max_filesize = MAX_FILESIZE

        if self.sort_clause_count < 1:
            warnings.append(
                f"query.sort_clause_count={self.sort_clause_count} must be at least 1; "
                f"using {SORT_CLAUSE_COUNT_2010_2}"
            )
            self.sort_clause_count = SORT_CLAUSE_COUNT_2010_2

        return warnings

    def diff_options(self) -> DiffOptions:
        """Diff options built from the [diff] section."""
        return DiffOptions(
            ignore_whitespace=self.diff_ignore_whitespace,
            utf8_convert=self.diff_utf8_convert,
            utf8_sanitize=self.diff_utf8_sanitize,
            max_filesize=self.diff_max_filesize,
            context_lines=self.diff_context_lines,
        )

    def create_runner(self) -> P4Runner:
        """A p4 runner using the [p4] section."""
        return P4Runner(
            self.p4_executable,
            port=self.p4_port,
            user=self.p4_user,
            client=self.p4_client,
            charset=self.p4_charset,
        )

    def create_query(self, options: dict[str, Any] | None = None) -> QueryBuilder:
        """A query builder limited to the configured sort clause count."""
        return QueryBuilder(options, sort_clause_count=self.sort_clause_count)


def load_config(config_path: Path | None = None) -> tuple[Config, list[str]]:
    """Load configuration from file or use defaults.

    Args:
        config_path: Explicit config file path. If None, uses default location.

    Returns:
        Tuple of (Config object, list of warning messages).

    Raises:
        ConfigParseError: If config file exists but has invalid syntax.
        ConfigValidationError: If config values are invalid.
    """
    warnings: list[str] = []

    if config_path is None:
        config_path = get_default_config_path()

    config_path = config_path.expanduser().resolve()

    if not config_path.exists():
        config = Config()
        warnings.append(f"No config file found at {config_path}. Using defaults.")
        return config, warnings + config.validate()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(config_path, str(e)) from e

    config = _parse_config_dict(data, config_path)
    return config, warnings + config.validate()


def _read_optional_str(section: dict[str, Any], section_name: str, key: str) -> str | None:
    value = section[key]
    if value is not None and not isinstance(value, str):
        raise ConfigValidationError(f"{section_name}.{key}", value, "must be a string or null")
    return value


def _read_bool(section: dict[str, Any], section_name: str, key: str) -> bool:
    value = section[key]
    if not isinstance(value, bool):
        raise ConfigValidationError(f"{section_name}.{key}", value, "must be a boolean")
    return value


def _read_int(section: dict[str, Any], section_name: str, key: str) -> int:
    value = section[key]
    # bool is an int subclass; "true" is not a line count
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigValidationError(f"{section_name}.{key}", value, "must be an integer")
    return value


def _parse_config_dict(data: dict[str, Any], config_path: Path) -> Config:
    """Parse configuration dictionary into Config object."""
    config = Config(config_path=config_path)

    # Parse [p4] section
    p4 = data.get("p4", {})
    if "executable" in p4:
        value = p4["executable"]
        if not isinstance(value, str) or not value:
            raise ConfigValidationError("p4.executable", value, "must be a non-empty string")
        config.p4_executable = value
    if "port" in p4:
        config.p4_port = _read_optional_str(p4, "p4", "port")
    if "user" in p4:
        config.p4_user = _read_optional_str(p4, "p4", "user")
    if "client" in p4:
        config.p4_client = _read_optional_str(p4, "p4", "client")
    if "charset" in p4:
        config.p4_charset = _read_optional_str(p4, "p4", "charset")

    # Parse [diff] section
    diff = data.get("diff", {})
    if "ignore_whitespace" in diff:
        config.diff_ignore_whitespace = _read_bool(diff, "diff", "ignore_whitespace")
    if "context_lines" in diff:
        config.diff_context_lines = _read_int(diff, "diff", "context_lines")
    if "max_filesize" in diff:
        config.diff_max_filesize = _read_int(diff, "diff", "max_filesize")
    if "utf8_convert" in diff:
        config.diff_utf8_convert = _read_bool(diff, "diff", "utf8_convert")
    if "utf8_sanitize" in diff:
        config.diff_utf8_sanitize = _read_bool(diff, "diff", "utf8_sanitize")

    # Parse [query] section
    query = data.get("query", {})
    if "sort_clause_count" in query:
        config.sort_clause_count = _read_int(query, "query", "sort_clause_count")

    # Parse [display] section
    display = data.get("display", {})
    if "colored_output" in display:
        config.colored_output = _read_bool(display, "display", "colored_output")

    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Path to save to. If None, uses config.config_path or default.
    """
    if config_path is None:
        config_path = config.config_path or get_default_config_path()

    config_path = config_path.expanduser().resolve()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    p4_data: dict[str, Any] = {"executable": config.p4_executable}
    for key in ("port", "user", "client", "charset"):
        value = getattr(config, f"p4_{key}")
        if value is not None:
            p4_data[key] = value

    data: dict[str, Any] = {
        "p4": p4_data,
        "diff": {
            "ignore_whitespace": config.diff_ignore_whitespace,
            "context_lines": config.diff_context_lines,
            "max_filesize": config.diff_max_filesize,
            "utf8_convert": config.diff_utf8_convert,
            "utf8_sanitize": config.diff_utf8_sanitize,
        },
        "display": {
            "colored_output": config.colored_output,
        },
    }

    # Only written when it differs from the 2010.2 default
    if config.sort_clause_count != SORT_CLAUSE_COUNT_2010_2:
        data["query"] = {"sort_clause_count": config.sort_clause_count}

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
