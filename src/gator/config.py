"""
Configuration management for gator.

Application settings use Pydantic for validation and pydantic-settings for
environment variable support. The per-user session (database URL and the
currently logged-in user) lives in a small JSON file in the home directory.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gator.exceptions import ConfigError


class DatabaseConfig(BaseSettings):
    """Database configuration.

    Supports SQLite and PostgreSQL backends.
    Configuration priority: url field > type field > default (SQLite).

    For SQLite:
        - Only `path` is required
        - Environment variable: DB_PATH

    For PostgreSQL:
        - Set `type` to "postgresql"
        - Set `host`, `database`, `user`, `password`
        - Optional: `port`, `ssl_mode`
        - Or set `url` directly (DB_URL)
    """

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str | None = Field(default=None, description="Full SQLAlchemy database URL")

    # Database type selection
    type: str = Field(default="sqlite", description="Database type: sqlite, postgresql")

    # SQLite configuration
    path: str = Field(
        default="~/.local/share/gator/gator.db", description="Database file path (SQLite)"
    )

    # PostgreSQL configuration
    host: str | None = Field(default=None, description="Database host (PostgreSQL)")
    port: int | None = Field(default=None, description="Database port (default: 5432)")
    database: str | None = Field(default=None, description="Database name (PostgreSQL)")
    user: str | None = Field(default=None, description="Database user (PostgreSQL)")
    password: str | None = Field(default=None, description="Database password (PostgreSQL)")
    ssl_mode: str | None = Field(default=None, description="SSL mode: prefer, require, ...")

    # Common settings
    echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=5, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=10, ge=0, description="Max overflow connections")

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        """Normalize and validate database type name."""
        v = v.lower().strip()
        if v == "postgres":
            v = "postgresql"
        valid_types = ["sqlite", "postgresql"]
        if v not in valid_types:
            raise ValueError(f"Invalid database type: {v!r}. Must be one of {valid_types}")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int | None) -> int | None:
        """Validate port number."""
        if v is not None and not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v


class FetcherConfig(BaseSettings):
    """RSS fetcher configuration."""

    model_config = SettingsConfigDict(env_prefix="FETCHER_")

    timeout_seconds: float = Field(default=10, gt=0, le=300, description="Request timeout")
    user_agent: str = Field(default="gator", description="User-Agent header")

    follow_redirects: bool = Field(default=True)
    max_redirects: int = Field(default=5, ge=0, le=20)


class SchedulerConfig(BaseSettings):
    """Aggregation scheduler configuration."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    timezone: str = Field(default="UTC", description="Scheduler timezone")

    default_interval_seconds: float = Field(default=60, gt=0, description="Default tick interval")
    min_interval_seconds: float = Field(default=1, gt=0, description="Minimum tick interval")

    max_workers: int = Field(default=1, ge=1, le=20, description="Concurrent fetch workers")
    misfire_grace_time: int = Field(default=30, ge=0, description="Misfire grace time in seconds")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        description="Log format"
    )

    # File logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_path: str = Field(default="logs/gator.log", description="Log file path")
    rotation: str = Field(default="10 MB", description="Log rotation size")
    retention: str = Field(default="14 days", description="Log retention period")

    # Console logging
    console_enabled: bool = Field(default=True, description="Enable console logging")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GATOR_",
        case_sensitive=False,
    )

    debug: bool = Field(default=False, description="Debug mode")

    session_file: str = Field(
        default="~/.gatorconfig.json",
        description="JSON file holding the database URL and current user",
    )

    # Sub-configurations
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def get_session_path(self) -> Path:
        """Get the expanded path of the session file."""
        return Path(self.session_file).expanduser()


class SessionConfig(BaseModel):
    """Persisted CLI session: database URL and logged-in user.

    Stored as JSON with the keys ``db_url`` and ``current_user_name``.
    """

    db_url: Optional[str] = None
    current_user_name: Optional[str] = None

    # Where the session was read from; not serialized
    _path: Optional[Path] = None

    @classmethod
    def read(cls, path: Path) -> "SessionConfig":
        """Read the session file.

        A missing file yields an empty session bound to ``path``.

        Raises:
            ConfigError: If the file exists but cannot be read or parsed
        """
        path = Path(path)
        if not path.exists():
            session = cls()
        else:
            try:
                session = cls.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as e:
                raise ConfigError(f"could not read session file {path}: {e}") from e

        session._path = path
        return session

    def write(self, path: Optional[Path] = None) -> None:
        """Write the session file.

        Raises:
            ConfigError: If the file cannot be written
        """
        path = Path(path) if path is not None else self._path
        if path is None:
            raise ConfigError("session file path is not set")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"could not write session file {path}: {e}") from e

        self._path = path

    def set_user(self, name: str) -> None:
        """Set the current user and persist the session."""
        self.current_user_name = name
        self.write()


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def load_config_from_yaml(yaml_path: str) -> Config:
    """Load configuration from a YAML file.

    Note: Values loaded from YAML take precedence over environment variables.
    Sections missing from the file are still read from the environment.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        Config instance loaded from the file.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If the file is not valid YAML or fails validation
    """
    import yaml

    yaml_file = Path(yaml_path)
    if not yaml_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

    try:
        with yaml_file.open("r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {yaml_path}: {e}") from e

    config_classes = {
        "database": DatabaseConfig,
        "fetcher": FetcherConfig,
        "scheduler": SchedulerConfig,
        "logging": LoggingConfig,
    }

    main_config = {}
    try:
        for key, value in config_dict.items():
            if key in config_classes:
                main_config[key] = config_classes[key](**(value or {}))
            else:
                main_config[key] = value
        return Config(**main_config)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration in {yaml_path}: {e}") from e


def reload_config() -> Config:
    """Reload configuration from environment and YAML files."""
    global _config
    _config = None

    # Try to load from YAML if exists
    config_yaml = Path("config/config.yaml")
    if config_yaml.exists():
        _config = load_config_from_yaml(str(config_yaml))
    else:
        _config = Config()

    return _config
