"""
Settings from the process environment, with a .env file as fallback.

Every DLL_EXPORTER_* setting can come from either source; a variable set
in the environment wins over the same key in .env.

Usage:
    from dllexporter.utils.config import get_config
    runtime = get_config("DLL_EXPORTER_RUNTIME")
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_FILE_NAME = ".env"

# Parsed .env values, read on first lookup
_file_values: dict[str, str] | None = None


def _env_file_candidates() -> list[Path]:
    """The package directory and up to four parents, then the cwd."""
    package_dir = Path(__file__).resolve().parent
    search_dirs = [package_dir, *package_dir.parents[:4], Path.cwd()]
    return [d / ENV_FILE_NAME for d in search_dirs]


def read_env_file(path: Path) -> dict[str, str]:
    """
    Parse KEY=value lines.

    Blank lines and ``#`` comments are skipped; one pair of matching
    single or double quotes around a value is stripped.
    """
    values: dict[str, str] = {}
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        logger.warning(f"Cannot read {path}: {e}")
        return values

    for line_num, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            logger.warning(f"{path.name} line {line_num}: expected KEY=value")
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        values[key] = value

    return values


def _file_settings() -> dict[str, str]:
    global _file_values
    if _file_values is None:
        env_file = next((p for p in _env_file_candidates() if p.is_file()), None)
        _file_values = read_env_file(env_file) if env_file else {}
        if env_file:
            logger.debug(f"Loaded {len(_file_values)} settings from {env_file}")
    return _file_values


def get_config(key: str, default: str | None = None) -> str | None:
    """
    Look up a setting.

    Args:
        key: Setting name, e.g. DLL_EXPORTER_RUNTIME
        default: Returned when neither source defines the key

    Returns:
        Environment value, else .env value, else default
    """
    if key in os.environ:
        return os.environ[key]
    return _file_settings().get(key, default)


def get_config_int(key: str, default: int = 0) -> int:
    """Integer setting; unparsable values fall back to ``default``."""
    value = get_config(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"{key}={value!r} is not an integer, using {default}")
        return default


def get_config_list(key: str) -> list[str]:
    """Comma-separated setting as a list, empty items dropped."""
    value = get_config(key) or ""
    return [item.strip() for item in value.split(",") if item.strip()]


def configure_logging(default_level: str = "WARNING") -> None:
    """Configure root logging on stderr from DLL_EXPORTER_LOG_LEVEL."""
    level_name = (get_config("DLL_EXPORTER_LOG_LEVEL") or default_level).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = getattr(logging, default_level.upper())

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
