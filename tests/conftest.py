"""Shared pytest fixtures for tf-multistate tests."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))


BACKEND_TFVARS = """\
bucket = "b"
key = "k"
region = "r"
profile = "p"
dynamodb_table = "t"
"""


@pytest.fixture
def infra_dir(tmp_path):
    """Create a base directory with one environment and two features.

    Creates:
    - infra/environments/dev/backend.tfvars
    - infra/environments/dev/features.json (network, app)
    - infra/environments/dev/vars.tfvars
    - infra/features/network/
    - infra/features/app/
    """
    env_dir = tmp_path / 'infra' / 'environments' / 'dev'
    env_dir.mkdir(parents=True)
    (env_dir / 'backend.tfvars').write_text(BACKEND_TFVARS)
    (env_dir / 'vars.tfvars').write_text('instance_type = "t3.micro"\n')
    (env_dir / 'features.json').write_text(json.dumps([
        {'name': 'network', 'dir': 'infra/features/network', 'stateFile': 'dev/network.tfstate'},
        {'name': 'app', 'dir': 'infra/features/app', 'stateFile': 'dev/app.tfstate'},
    ]))

    for name in ['network', 'app']:
        (tmp_path / 'infra' / 'features' / name).mkdir(parents=True)

    return tmp_path


@pytest.fixture
def env_dir(infra_dir):
    """The dev environment directory inside infra_dir."""
    return infra_dir / 'infra' / 'environments' / 'dev'


@pytest.fixture
def backend():
    """BackendConfig matching BACKEND_TFVARS."""
    from config import BackendConfig
    return BackendConfig(bucket='b', key='k', region='r', profile='p', dynamodb_table='t')


class RecordingConfirmation:
    """Confirmation provider returning canned answers and recording calls."""

    def __init__(self, answer: bool = False):
        self.answer = answer
        self.asked: list[str] = []

    def confirm(self, feature_name: str) -> bool:
        self.asked.append(feature_name)
        return self.answer


@pytest.fixture
def decline():
    return RecordingConfirmation(answer=False)


@pytest.fixture
def approve():
    return RecordingConfirmation(answer=True)
