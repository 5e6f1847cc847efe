"""Configuration for tpm with validation."""

import os
from pathlib import Path
from typing import Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import structlog
import toml

from tpm.core.errors import ConfigError
from tpm.marketplace.paths import PLUGINS_DIR_ENV, PathSettings, PlatformKind
from tpm.marketplace.search import DEFAULT_REGISTRY_URL

log = structlog.get_logger()

REGISTRY_URL_ENV = "TPM_REGISTRY_URL"
LOG_LEVEL_ENV = "TPM_LOG_LEVEL"


class TpmConfig(BaseModel):
    """Main configuration for tpm with validation."""

    model_config = ConfigDict(validate_assignment=True)

    # Paths (None = derive from the environment)
    plugins_dir: Optional[str] = None
    home_dir: Optional[str] = None
    platform: Optional[PlatformKind] = None

    # Registry
    registry_url: str = DEFAULT_REGISTRY_URL
    http_timeout: float = Field(gt=0, default=10.0)

    # Policies
    require_title_keywords: bool = True
    allow_registry_name_install: bool = True

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")
    log_file: Optional[Path] = None
    json_logs: bool = False

    @field_validator('registry_url')
    @classmethod
    def registry_url_is_http(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError('registry_url must be an http(s) URL')
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def load(
        cls,
        path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> 'TpmConfig':
        """Load configuration from a TOML file and the environment.

        Search order if path not provided:
        1. ./tpm.toml (project-specific)
        2. ~/.tpm/config.toml (user default)

        Environment variables override values from the file.

        Args:
            path: Optional explicit config file path
            environ: Environment mapping (defaults to ``os.environ``)

        Raises:
            ConfigError: If the file cannot be parsed or holds invalid values
        """
        environ = os.environ if environ is None else environ

        if path is None:
            candidates = [
                Path("tpm.toml"),
                Path("~/.tpm/config.toml").expanduser()
            ]
            for candidate in candidates:
                if candidate.exists():
                    path = str(candidate)
                    log.debug("config_found", path=path)
                    break
        elif not Path(path).exists():
            raise ConfigError(f"Config file not found: {path}")

        data = {}
        if path:
            try:
                data = toml.load(path)
            except (toml.TomlDecodeError, OSError) as e:
                log.error("config_load_failed", path=path, error=str(e))
                raise ConfigError(f"Unable to read config file {path}: {e}") from e
            log.debug("config_loaded", path=path)

        if environ.get(PLUGINS_DIR_ENV):
            data["plugins_dir"] = environ[PLUGINS_DIR_ENV]
        if environ.get(REGISTRY_URL_ENV):
            data["registry_url"] = environ[REGISTRY_URL_ENV]
        if environ.get(LOG_LEVEL_ENV):
            data["log_level"] = environ[LOG_LEVEL_ENV]

        try:
            return cls(**data)
        except ValidationError as e:
            log.error("config_invalid", path=path, error=str(e))
            raise ConfigError(f"Invalid configuration: {e}") from e

    def path_settings(self, environ: Optional[Mapping[str, str]] = None) -> PathSettings:
        """Settings for the plugin root resolver.

        Explicit values win; anything unset comes from the environment.
        """
        defaults = PathSettings.from_environ(environ, platform=self.platform)
        return PathSettings(
            plugins_root_override=self.plugins_dir or defaults.plugins_root_override,
            home_dir=self.home_dir or defaults.home_dir,
            platform=defaults.platform,
        )
