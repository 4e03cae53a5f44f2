"""
asmlink.ini configuration parser.

Settings are layered: built-in defaults, then ``asmlink.ini`` in the working
directory, then an explicitly named config file. Command-line flags are
applied on top by the CLI.

Example asmlink.ini:
    [asmlink]
    assembler = nasm-as
    linker = /usr/bin/gcc
    default_output_name = app
    timeout = 30
    overwrite = force
    cleanup_on_failure = no
"""

import configparser
import math
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

from .build_config import BuildConfig, OverwritePolicy

DEFAULT_CONFIG_NAME = "asmlink.ini"
SECTION = "asmlink"


class AsmlinkConfigError(Exception):
    """Exception raised for asmlink.ini configuration errors."""

    pass


class AsmlinkConfig:
    """
    Parser for asmlink.ini files.

    Usage:
        config = AsmlinkConfig(Path("asmlink.ini"))
        build_config = config.apply(BuildConfig())
    """

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with an asmlink.ini file.

        Args:
            ini_path: Path to the configuration file

        Raises:
            AsmlinkConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = Path(ini_path)

        if not self.ini_path.is_file():
            raise AsmlinkConfigError(f"Configuration file not found: {self.ini_path}")

        self.config = configparser.ConfigParser(interpolation=None)

        try:
            self.config.read(self.ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise AsmlinkConfigError(f"Failed to parse {self.ini_path}: {e}") from e

    def get_settings(self) -> Dict[str, str]:
        """Raw key/value pairs from the [asmlink] section (empty if absent)."""
        if not self.config.has_section(SECTION):
            return {}
        return dict(self.config.items(SECTION))

    def apply(self, base: BuildConfig) -> BuildConfig:
        """
        Overlay this file's settings onto a BuildConfig.

        Args:
            base: Settings from earlier layers

        Returns:
            New BuildConfig with this file's values taking precedence

        Raises:
            AsmlinkConfigError: If a value is malformed
        """
        if not self.config.has_section(SECTION):
            return base

        section = self.config[SECTION]
        overrides: dict = {}

        for key in ("assembler", "linker", "default_output_name"):
            value = section.get(key)
            if value is not None:
                value = value.strip()
                if not value:
                    raise AsmlinkConfigError(f"{self.ini_path}: '{key}' must not be empty")
                overrides[key] = value

        if "timeout" in section:
            overrides["timeout"] = self._parse_timeout(section.get("timeout"))

        if "overwrite" in section:
            try:
                overrides["overwrite_policy"] = OverwritePolicy.from_string(section.get("overwrite"))
            except ValueError as e:
                raise AsmlinkConfigError(f"{self.ini_path}: {e}") from e

        if "cleanup_on_failure" in section:
            try:
                overrides["cleanup_on_failure"] = section.getboolean("cleanup_on_failure")
            except ValueError as e:
                raise AsmlinkConfigError(f"{self.ini_path}: {e}") from e

        return replace(base, **overrides)

    def _parse_timeout(self, raw: Optional[str]) -> Optional[float]:
        """Parse a timeout value; 'none' or empty disables the limit."""
        if raw is None or raw.strip().lower() in ("", "none"):
            return None
        try:
            timeout = float(raw)
        except ValueError as e:
            raise AsmlinkConfigError(f"{self.ini_path}: invalid timeout '{raw}'") from e
        if not math.isfinite(timeout) or timeout <= 0:
            raise AsmlinkConfigError(f"{self.ini_path}: timeout must be a positive number, got {raw}")
        return timeout


def load_build_config(
    config_path: Optional[Path] = None,
    search_dir: Optional[Path] = None,
) -> BuildConfig:
    """
    Load layered configuration.

    Args:
        config_path: Explicit config file (must exist)
        search_dir: Directory searched for asmlink.ini (defaults to cwd)

    Returns:
        BuildConfig with defaults overridden by every config layer found

    Raises:
        AsmlinkConfigError: If the explicit file is missing or any layer is malformed
    """
    build_config = BuildConfig()

    layers: List[Path] = []
    local_ini = Path(search_dir if search_dir is not None else Path.cwd()) / DEFAULT_CONFIG_NAME
    if local_ini.is_file():
        layers.append(local_ini)
    if config_path is not None:
        layers.append(Path(config_path))

    for layer in layers:
        build_config = AsmlinkConfig(layer).apply(build_config)

    return build_config
