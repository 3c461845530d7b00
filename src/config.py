"""Environment configuration management.

Configuration is loaded from the environment directory
(infra/environments/<env>/ below the base directory):
- backend.tfvars: Remote state backend settings (key = "value" lines)
- features.json: Ordered feature catalog (see features.py)
- runner.yaml: Optional runner settings (tool, strict, skip, ...)
- vars.tfvars: Variables for the tool itself (never read here)

CLI flags override runner.yaml, which overrides built-in defaults.
"""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from common import DEFAULT_TOOL

logger = logging.getLogger(__name__)

ENVIRONMENTS_DIR = Path('infra') / 'environments'
BACKEND_FILE = 'backend.tfvars'
SETTINGS_FILE = 'runner.yaml'


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)


class FileAccessError(ConfigError):
    """Configuration file missing or unreadable."""


class ReadError(ConfigError):
    """Configuration file could not be read to the end."""


class DecodeError(ConfigError):
    """Configuration file content has the wrong shape."""


@dataclass(frozen=True)
class BackendConfig:
    """Remote state backend settings from backend.tfvars.

    The key field is parsed but each feature overrides it with its own
    state file key at init time.
    """
    bucket: str = ''
    key: str = ''
    region: str = ''
    profile: str = ''
    dynamodb_table: str = ''

    def missing_fields(self) -> list[str]:
        """Names of fields left empty."""
        return [f.name for f in fields(self) if not getattr(self, f.name)]


@dataclass
class RunnerSettings:
    """Runner behaviour, from runner.yaml merged with CLI flags."""
    tool: str = DEFAULT_TOOL
    strict: bool = False          # Exit 1 when any feature failed
    strict_backend: bool = False  # Fail on missing backend.tfvars keys
    auto_approve: bool = False
    skip: list = field(default_factory=list)


def get_env_dir(env_name: str, base_dir: Optional[Path] = None) -> Path:
    """Get the directory holding an environment's configuration."""
    return (base_dir or Path.cwd()) / ENVIRONMENTS_DIR / env_name


def load_backend_config(path: Path, strict: bool = False) -> BackendConfig:
    """Parse a backend.tfvars file.

    Lines without '=' and unrecognized keys are ignored. Missing keys stay
    empty unless strict is set.

    Raises:
        FileAccessError: File cannot be opened
        ReadError: File cannot be read (e.g. not UTF-8)
        ConfigError: strict and required keys missing
    """
    path = Path(path)
    recognized = {f.name for f in fields(BackendConfig)}
    values: dict[str, str] = {}

    try:
        f = open(path, encoding='utf-8')
    except OSError as e:
        raise FileAccessError(f"Error reading {path}: {e}", path) from e

    with f:
        try:
            for line in f:
                name, sep, value = line.partition('=')
                if not sep:
                    continue
                name = name.strip()
                if name in recognized:
                    values[name] = value.strip().strip('"')
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(f"Error scanning {path}: {e}", path) from e

    backend = BackendConfig(**values)
    logger.debug(f"Backend config from {path}: {backend}")

    if missing := backend.missing_fields():
        if strict:
            raise ConfigError(f"{path} is missing required keys: {', '.join(missing)}", path)
        logger.warning(f"{path} has no value for: {', '.join(missing)}")
    return backend


def _parse_yaml(path: Path):
    """Parse a YAML file and return contents."""
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise FileAccessError(f"Error reading {path}: {e}", path) from e
    except yaml.YAMLError as e:
        raise DecodeError(f"Invalid YAML in {path}: {e}", path) from e


def load_settings(env_dir: Path) -> RunnerSettings:
    """Load runner.yaml from an environment directory.

    A missing file yields defaults. Unknown keys are ignored with a warning.
    """
    path = Path(env_dir) / SETTINGS_FILE
    settings = RunnerSettings()
    if not path.exists():
        return settings

    data = _parse_yaml(path) or {}
    if not isinstance(data, dict):
        raise DecodeError(f"{path} must contain a mapping, got {type(data).__name__}", path)

    known = {f.name for f in fields(RunnerSettings)}
    for name, value in data.items():
        if name not in known:
            logger.warning(f"Ignoring unknown setting '{name}' in {path}")
            continue
        if name == 'skip':
            if not isinstance(value, list):
                raise DecodeError(f"'skip' in {path} must be a list of feature names", path)
            value = [str(v) for v in value]
        elif name == 'tool':
            value = str(value)
        elif not isinstance(value, bool):
            raise DecodeError(f"'{name}' in {path} must be true or false", path)
        setattr(settings, name, value)

    logger.debug(f"Runner settings from {path}: {settings}")
    return settings
