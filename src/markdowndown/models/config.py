"""Pydantic configuration models for markdowndown."""

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..errors import ConfigError, ConfigErrorKind, ErrorContext

CONFIG_FILE_NAME = "markdowndown.yaml"


class HttpConfig(BaseModel):
    """Configuration for the HTTP client."""

    timeout: float = Field(30.0, gt=0, description="Request timeout in seconds")
    user_agent: Optional[str] = Field(None, description="Custom User-Agent header")
    max_retries: int = Field(3, ge=0, description="Maximum retry attempts for failed requests")
    retry_delay: float = Field(1.0, ge=0, description="Base delay for exponential backoff (seconds)")
    max_redirects: int = Field(10, ge=0, description="Maximum redirects to follow")

    model_config = {"extra": "forbid"}


def _expand_env_var(value: Optional[str]) -> Optional[str]:
    """Expand environment variable references in a string.

    Supports $VAR and ${VAR} syntax. Returns original value if
    the env var is not set.
    """
    import re

    if value is None:
        return None

    pattern = r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)"

    def replace(match: re.Match) -> str:
        var_name = match.group(1) or match.group(2)
        return os.environ.get(var_name, match.group(0))

    return re.sub(pattern, replace, value)


class AuthConfig(BaseModel):
    """Credentials attached to requests by the converters.

    Supports environment variable expansion using $VAR or ${VAR} syntax:
        auth:
          github_token: $GITHUB_TOKEN
    """

    github_token: Optional[str] = Field(None, description="GitHub personal access token")
    office365_token: Optional[str] = Field(None, description="Office 365 bearer token")
    google_api_key: Optional[str] = Field(None, description="Google API key")

    model_config = {"extra": "forbid"}

    def model_post_init(self, __context: object) -> None:
        """Expand environment variables in token fields after init."""
        for name in ("github_token", "office365_token", "google_api_key"):
            value = getattr(self, name)
            if value:
                object.__setattr__(self, name, _expand_env_var(value))


class OutputConfig(BaseModel):
    """Configuration for Markdown output."""

    include_frontmatter: bool = Field(True, description="Prepend YAML frontmatter to output")
    custom_frontmatter_fields: dict[str, str] = Field(
        default_factory=dict,
        description="Extra key/value pairs added to every frontmatter block",
    )
    format: Literal["markdown", "json", "yaml"] = Field("markdown", description="Output format")
    max_consecutive_blank_lines: int = Field(
        2,
        ge=1,
        description="Collapse longer runs of blank lines in converted output",
    )

    model_config = {"extra": "forbid"}


class BatchConfig(BaseModel):
    """Configuration for batch conversion."""

    concurrency: int = Field(5, ge=1, description="Maximum conversions in flight")
    task_timeout: float = Field(60.0, gt=0, description="Safety timeout per URL in seconds")
    skip_failures: bool = Field(True, description="Keep going when a URL fails")
    show_progress: bool = Field(True, description="Show a progress bar")

    model_config = {"extra": "forbid"}


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("WARNING", description="Logging level")
    file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}


class HtmlConfig(BaseModel):
    """Configuration for HTML main-content extraction."""

    remove_navigation: bool = Field(True, description="Strip nav, header and footer elements")
    remove_sidebars: bool = Field(True, description="Strip aside and sidebar elements")
    remove_ads: bool = Field(True, description="Strip ad, cookie and popup elements")

    model_config = {"extra": "forbid"}


class MarkdownDownConfig(BaseModel):
    """
    Root configuration model for markdowndown.

    Example:
        config = MarkdownDownConfig(
            http=HttpConfig(timeout=10),
            auth=AuthConfig(github_token="ghp_..."),
        )

    YAML format:
        http:
          timeout: 10
          max_retries: 5
        auth:
          github_token: $GITHUB_TOKEN
        batch:
          concurrency: 8
    """

    http: HttpConfig = Field(default_factory=HttpConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    html: HtmlConfig = Field(default_factory=HtmlConfig)

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "MarkdownDownConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "MarkdownDownConfig":
        """Load config from YAML file."""
        return cls.from_yaml(Path(path).read_text())

    @classmethod
    def from_env(cls) -> "MarkdownDownConfig":
        """Build a default config with environment overrides applied."""
        return cls().with_env_overrides()

    def with_env_overrides(self) -> "MarkdownDownConfig":
        """
        Return a copy with environment variables applied on top.

        Recognised variables: GITHUB_TOKEN, OFFICE365_TOKEN, GOOGLE_API_KEY,
        MARKDOWNDOWN_TIMEOUT, MARKDOWNDOWN_USER_AGENT, MARKDOWNDOWN_MAX_RETRIES.
        """
        data = self.model_dump()
        auth_vars = {
            "github_token": "GITHUB_TOKEN",
            "office365_token": "OFFICE365_TOKEN",
            "google_api_key": "GOOGLE_API_KEY",
        }
        for field_name, var in auth_vars.items():
            if os.environ.get(var):
                data["auth"][field_name] = os.environ[var]

        http_vars = {
            "timeout": "MARKDOWNDOWN_TIMEOUT",
            "user_agent": "MARKDOWNDOWN_USER_AGENT",
            "max_retries": "MARKDOWNDOWN_MAX_RETRIES",
        }
        for field_name, var in http_vars.items():
            if os.environ.get(var):
                data["http"][field_name] = os.environ[var]

        return type(self).model_validate(data)


def find_config_file() -> Optional[Path]:
    """
    Locate a config file in the standard search paths.

    Search order:
        ./markdowndown.yaml, ./.markdowndown.yaml, ~/.markdowndown.yaml,
        ~/.config/markdowndown/config.yaml, $XDG_CONFIG_HOME/markdowndown/config.yaml
    """
    candidates = [
        Path.cwd() / CONFIG_FILE_NAME,
        Path.cwd() / f".{CONFIG_FILE_NAME}",
        Path.home() / f".{CONFIG_FILE_NAME}",
        Path.home() / ".config" / "markdowndown" / "config.yaml",
    ]
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_home:
        candidates.append(Path(xdg_home) / "markdowndown" / "config.yaml")

    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Optional[Path] = None) -> MarkdownDownConfig:
    """
    Load configuration from a file (or the search paths) plus the environment.

    Args:
        path: Explicit config file. When None, find_config_file() is used and
            defaults apply if nothing is found.

    Returns:
        Validated config with environment overrides applied

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    import yaml

    source = path or find_config_file()
    context = ErrorContext(str(source or ""), "Load configuration", "Config")
    try:
        if source is None:
            return MarkdownDownConfig.from_env()
        return MarkdownDownConfig.from_yaml_file(source).with_env_overrides()
    except PydanticValidationError as e:
        raise ConfigError(ConfigErrorKind.INVALID_CONFIG, context.with_info(str(e))) from e
    except yaml.YAMLError as e:
        raise ConfigError(ConfigErrorKind.INVALID_CONFIG, context.with_info(f"Invalid YAML: {e}")) from e
    except OSError as e:
        raise ConfigError(ConfigErrorKind.INVALID_CONFIG, context.with_info(f"Cannot read file: {e}")) from e
