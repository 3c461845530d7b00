"""Feature catalog loading.

features.json holds an array of objects, one per feature, in execution
order:

    [{"name": "network", "dir": "infra/features/network", "stateFile": "network.tfstate"}]

Extra fields are ignored and absent fields become empty strings.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from config import DecodeError, FileAccessError

logger = logging.getLogger(__name__)

FEATURES_FILE = 'features.json'

# JSON field -> Feature attribute
_FIELD_MAP = {
    'name': 'name',
    'dir': 'dir',
    'stateFile': 'state_file',
}


@dataclass(frozen=True)
class Feature:
    """One independently deployable unit with its own state file."""
    name: str = ''
    dir: str = ''
    state_file: str = ''


def _parse_feature(entry, index: int, path: Path) -> Feature:
    """Build a Feature from one catalog entry."""
    if not isinstance(entry, dict):
        raise DecodeError(f"{path}: entry {index} must be an object, got {type(entry).__name__}", path)

    values = {}
    for json_name, attr in _FIELD_MAP.items():
        value = entry.get(json_name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise DecodeError(f"{path}: entry {index} field '{json_name}' must be a string", path)
        values[attr] = value
    return Feature(**values)


def load_features(env_dir: Path) -> list[Feature]:
    """Load the ordered feature catalog from an environment directory.

    Raises:
        FileAccessError: features.json missing or unreadable
        DecodeError: Invalid JSON or not an array of objects
    """
    path = Path(env_dir) / FEATURES_FILE
    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise FileAccessError(f"Error reading {path}: {e}", path) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Invalid JSON in {path}: {e}", path) from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError(f"{path} must contain an array, got {type(data).__name__}", path)

    features = [_parse_feature(entry, i, path) for i, entry in enumerate(data)]
    for feature in features:
        if not feature.state_file:
            logger.warning(f"Feature '{feature.name}' has no stateFile; backend key will be empty")
    logger.debug(f"Loaded {len(features)} features from {path}")
    return features
