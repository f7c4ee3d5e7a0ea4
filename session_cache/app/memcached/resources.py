"""
Loading of INI configuration from resource paths.

Supported forms:

- ``package:<package>/<relative path>``: data file shipped inside a package
- ``file:<path>``: explicit filesystem path
- ``<path>``: bare filesystem path
"""

import configparser
from importlib import resources
from pathlib import Path
from typing import Optional

from cache_shared.errors import CacheConfigurationError
from cache_shared.logging import get_logger

PACKAGE_PREFIX = "package:"
FILE_PREFIX = "file:"

logger = get_logger("session_cache.resources")


def read_resource(resource_path: str) -> str:
    """Return the text content of a resource path."""
    try:
        if resource_path.startswith(PACKAGE_PREFIX):
            package, _, relative = resource_path[len(PACKAGE_PREFIX):].partition("/")
            if not package or not relative:
                raise CacheConfigurationError(
                    f"Package resource path '{resource_path}' must look like package:<package>/<file>",
                    details={"resource_path": resource_path}
                )
            return resources.files(package).joinpath(relative).read_text(encoding="utf-8")

        if resource_path.startswith(FILE_PREFIX):
            resource_path = resource_path[len(FILE_PREFIX):]
        return Path(resource_path).read_text(encoding="utf-8")

    except (OSError, ModuleNotFoundError, UnicodeDecodeError) as exc:
        raise CacheConfigurationError(
            f"Unable to read configuration resource '{resource_path}'",
            details={"resource_path": resource_path, "error": str(exc)}
        ) from exc


def load_ini(resource_path: str) -> configparser.ConfigParser:
    """Parse the INI document found at resource_path."""
    text = read_resource(resource_path)

    ini = configparser.ConfigParser(interpolation=None)
    try:
        ini.read_string(text, source=resource_path)
    except configparser.Error as exc:
        logger.error("Read configuration to INI failed", resource_path=resource_path, error=str(exc))
        raise CacheConfigurationError(
            f"Malformed INI configuration in '{resource_path}'",
            details={"resource_path": resource_path, "error": str(exc)}
        ) from exc

    logger.debug("Loaded INI configuration", resource_path=resource_path, sections=ini.sections())
    return ini


def get_section_property(ini: configparser.ConfigParser, section: str, key: str) -> Optional[str]:
    """Return a property value, or None when the section or key is absent."""
    if not ini.has_section(section):
        return None
    return ini.get(section, key, fallback=None)
