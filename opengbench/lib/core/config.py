"""
OpenG job configuration.

The configuration file is JSON with an ``openg`` section:

    {
        "openg": {
            "home": "/opt/openg",
            "num_worker_threads": 8,
            "intermediate_dir": "/tmp/openg/intermediate",
            "output_dir": "/tmp/openg/output",
            "timeout": null,
            "generate_csr": false,
            "edge_delimiter": "|",
            "granula_enabled": false
        }
    }

Usage:
    from opengbench.lib.core.config import load_configuration

    config = load_configuration("config/openg.json")
    config.ensure_directories()
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigurationError
from .utils import (
    BINARY_VARIANT_GRANULA, BINARY_VARIANT_STANDARD, DEFAULT_EDGE_DELIMITER,
    EDGE_DELIMITERS, load_json,
)

log = logging.getLogger("opengbench.config")

# Configuration keys (section "openg")
CONFIG_SECTION = "openg"
HOME_KEY = "home"
BINARY_DIR_KEY = "binary_dir"
NUM_WORKER_THREADS_KEY = "num_worker_threads"
INTERMEDIATE_DIR_KEY = "intermediate_dir"
OUTPUT_DIR_KEY = "output_dir"
LOG_DIR_KEY = "log_dir"
TIMEOUT_KEY = "timeout"
GENERATE_CSR_KEY = "generate_csr"
EDGE_DELIMITER_KEY = "edge_delimiter"
GRANULA_ENABLED_KEY = "granula_enabled"

DEFAULT_NUM_WORKER_THREADS = 1


@dataclass(frozen=True)
class JobConfiguration:
    """Engine location and job-wide settings shared by every job."""
    binary_dir: Path
    intermediate_dir: Path
    output_dir: Path
    num_worker_threads: Optional[int] = None
    log_dir: Optional[Path] = None
    timeout: Optional[float] = None
    generate_csr: bool = False
    edge_delimiter: str = DEFAULT_EDGE_DELIMITER

    @property
    def thread_count(self) -> int:
        """Worker threads passed to the engine; 1 if unset or non-positive."""
        if self.num_worker_threads is None or self.num_worker_threads <= 0:
            return DEFAULT_NUM_WORKER_THREADS
        return self.num_worker_threads

    @property
    def run_log_dir(self) -> Path:
        return self.log_dir if self.log_dir is not None else self.output_dir / "logs"

    def ensure_directories(self) -> None:
        """Validate that every working directory exists or can be created."""
        ensure_directory_exists(self.intermediate_dir, INTERMEDIATE_DIR_KEY)
        ensure_directory_exists(self.output_dir, OUTPUT_DIR_KEY)
        ensure_directory_exists(self.run_log_dir, LOG_DIR_KEY)
        if not self.binary_dir.is_dir():
            raise ConfigurationError(
                f'OpenG binary directory "{self.binary_dir}" does not exist')


def ensure_directory_exists(directory: Path, key: str) -> None:
    """
    Make sure ``directory`` is a directory, creating it (and parents) if absent.

    Raises:
        ConfigurationError: the path exists but is not a directory, or it
            cannot be created
    """
    directory = Path(directory)
    if directory.exists():
        if not directory.is_dir():
            raise ConfigurationError(
                f'Path "{directory}" set as property "{key}" already exists, '
                f'but is not a directory')
        return

    try:
        directory.mkdir(parents=True)
    except OSError as e:
        raise ConfigurationError(
            f'Unable to create directory "{directory}" set as property "{key}": {e}') from e
    log.info(f'Created directory "{directory}" and any missing parent directories')


def _get_int(section: Dict[str, Any], key: str) -> Optional[int]:
    value = section.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f'Property "{key}" must be an integer, got {value!r}')
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigurationError(f'Property "{key}" must be a whole number, got {value!r}')
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f'Property "{key}" must be an integer, got {value!r}')


def _get_bool(section: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = section.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(f'Property "{key}" must be true or false, got {value!r}')
    return value


def _get_float(section: Dict[str, Any], key: str) -> Optional[float]:
    value = section.get(key)
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f'Property "{key}" must be a number, got {value!r}')
    if value <= 0:
        raise ConfigurationError(f'Property "{key}" must be positive, got {value}')
    return value


def _get_path(section: Dict[str, Any], key: str, required: bool = True) -> Optional[Path]:
    value = section.get(key)
    if value in (None, ""):
        if required:
            raise ConfigurationError(f'Missing required property "{key}"')
        return None
    return Path(value)


def parse_configuration(data: Dict[str, Any]) -> JobConfiguration:
    """
    Build a JobConfiguration from a parsed configuration mapping.

    Accepts either the full document (with an ``openg`` section) or the
    section itself.
    """
    section = data.get(CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigurationError(f'Section "{CONFIG_SECTION}" must be an object')

    binary_dir = _get_path(section, BINARY_DIR_KEY, required=False)
    if binary_dir is None:
        home = _get_path(section, HOME_KEY)
        variant = (BINARY_VARIANT_GRANULA if _get_bool(section, GRANULA_ENABLED_KEY)
                   else BINARY_VARIANT_STANDARD)
        binary_dir = home / "bin" / variant

    delimiter = section.get(EDGE_DELIMITER_KEY, DEFAULT_EDGE_DELIMITER)
    if delimiter not in EDGE_DELIMITERS:
        raise ConfigurationError(
            f'Property "{EDGE_DELIMITER_KEY}" must be one of {list(EDGE_DELIMITERS)}, '
            f'got {delimiter!r}')

    return JobConfiguration(
        binary_dir=binary_dir,
        intermediate_dir=_get_path(section, INTERMEDIATE_DIR_KEY),
        output_dir=_get_path(section, OUTPUT_DIR_KEY),
        num_worker_threads=_get_int(section, NUM_WORKER_THREADS_KEY),
        log_dir=_get_path(section, LOG_DIR_KEY, required=False),
        timeout=_get_float(section, TIMEOUT_KEY),
        generate_csr=_get_bool(section, GENERATE_CSR_KEY),
        edge_delimiter=delimiter,
    )


def load_configuration(path) -> JobConfiguration:
    """Load and parse a JSON configuration file."""
    log.info(f"Parsing OpenG configuration file {path}")
    try:
        data = load_json(Path(path))
    except FileNotFoundError as e:
        raise ConfigurationError(f'Could not find configuration file "{path}"') from e
    except ValueError as e:
        raise ConfigurationError(f'Could not parse configuration file "{path}": {e}') from e
    return parse_configuration(data)
