"""
Config Loader - Assemble Settings for a suite run.

Sources, highest priority first:

    1. Explicit overrides (CLI flags, test fixtures)
    2. The YAML config file
    3. Environment variables, including a .env file
    4. Defaults

Portal credentials normally come from the environment; the YAML file
holds selectors and timing.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from portal_e2e.config.settings import Settings
from portal_e2e.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _describe_validation(error: ValidationError) -> Dict[str, str]:
    """'waiter.poll_interval_ms' -> 'Input should be greater than or equal to 10'"""
    return {".".join(str(part) for part in item["loc"]): item["msg"] for item in error.errors()}


class ConfigLoader:
    """
    Find, read and merge the suite's configuration.

    An explicit config path or env file that does not exist is an error;
    the default locations are only searched when no path is given.

    Attributes:
        source: The YAML file the last ``load`` read, if any
    """

    DEFAULT_CONFIG_PATHS = [
        Path("config.yaml"),
        Path("config.yml"),
        Path("config/portal-e2e.yaml"),
        Path.home() / ".config" / "portal-e2e" / "config.yaml",
    ]

    DEFAULT_ENV_FILES = [Path(".env"), Path(".env.local")]

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self.source: Optional[Path] = None

    def find_config_file(self) -> Optional[Path]:
        """
        Locate the YAML file to read.

        Raises:
            ConfigurationError: if an explicit path does not exist
        """
        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigurationError(
                    f"Config file not found: {self.config_path}", {"path": str(self.config_path)}
                )
            return self.config_path
        return next((path for path in self.DEFAULT_CONFIG_PATHS if path.exists()), None)

    def read_yaml(self, path: Path) -> Dict[str, Any]:
        """
        Parse a YAML config file into a mapping.

        Raises:
            ConfigurationError: if the file is not valid YAML or not a mapping
        """
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}", {"path": str(path)}) from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {path} must contain a mapping, got {type(data).__name__}",
                {"path": str(path)},
            )
        return data

    def load_env_file(self, env_file: Optional[Union[str, Path]] = None) -> Optional[Path]:
        """
        Export a .env file into the process environment.

        Existing environment variables are left untouched.

        Returns:
            The file that was loaded, if any
        """
        if env_file is not None:
            path = Path(env_file)
            if not path.exists():
                raise ConfigurationError(f"Env file not found: {path}", {"path": str(path)})
            load_dotenv(path)
            return path
        for path in self.DEFAULT_ENV_FILES:
            if path.exists():
                load_dotenv(path)
                return path
        return None

    def load(
        self,
        env_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Settings:
        """
        Build Settings from every source.

        Args:
            env_file: .env file to export first (default: ./.env, ./.env.local)
            overrides: Nested values that beat every other source

        Returns:
            Validated Settings

        Raises:
            ConfigurationError: for missing files, bad YAML or invalid values
        """
        loaded_env = self.load_env_file(env_file)
        if loaded_env:
            logger.debug(f"Loaded environment from {loaded_env}")

        self.source = self.find_config_file()
        file_config = self.read_yaml(self.source) if self.source else {}
        if self.source:
            logger.debug(f"Loaded config file {self.source}")

        try:
            # file values are init kwargs, so they beat the environment
            settings = Settings(**file_config)
            if overrides:
                settings = settings.merge_with(overrides)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid configuration ({e.error_count()} errors)",
                {"errors": _describe_validation(e), "source": str(self.source) if self.source else None},
            ) from e

        return settings


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> Settings:
    """
    Load settings in one call.

    Example:
        >>> settings = load_config()
        >>> settings = load_config(config_path="portal.yaml")
        >>> settings = load_config(browser={"headless": False})
    """
    return ConfigLoader(config_path).load(env_file=env_file, overrides=overrides or None)
