"""Per-feature init/plan/apply execution.

Each feature runs three tool commands inside its own directory:

    <tool> init -backend-config=... -reconfigure
    <tool> plan -var-file=../../environments/<env>/vars.tfvars
    <tool> apply -auto-approve -var-file=...   (only when confirmed)

The directory is passed to every command as cwd; the process working
directory is never changed. TF_STATE is set to the feature's state file
key for every command.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from common import DEFAULT_TOOL, run_command, tool_env
from config import BackendConfig
from confirm import ConfirmationProvider, InteractiveConfirmation
from features import Feature
from reporting import APPLIED, DECLINED, FeatureResult

logger = logging.getLogger(__name__)


class FeatureError(Exception):
    """A feature failed; the batch continues with the next one."""
    step = 'feature'

    def __init__(self, directory: str, cause: str):
        self.directory = directory
        self.cause = cause
        super().__init__(f"{self.step} failed in {directory}: {cause}")


class DirectoryChangeError(FeatureError):
    """Feature directory missing or not a directory."""
    step = 'directory change'


class BackendInitError(FeatureError):
    """Backend init command failed."""
    step = 'backend init'


class PlanError(FeatureError):
    """Plan command failed."""
    step = 'plan'


class ApplyError(FeatureError):
    """Apply command failed."""
    step = 'apply'


def _failure_cause(rc: int, err: str) -> str:
    """Describe a failed command from run_command's result."""
    # -1 with a message means the command never started
    if rc == -1 and err:
        return err
    return f"exit status {rc}"


@dataclass
class FeatureExecutor:
    """Run backend init, plan and (confirmed) apply for one feature."""
    env_name: str
    backend: BackendConfig
    confirmation: ConfirmationProvider = field(default_factory=InteractiveConfirmation)
    tool: str = DEFAULT_TOOL
    base_dir: Optional[Path] = None  # Feature dirs are relative to this (default: cwd)

    @property
    def var_file(self) -> str:
        """vars.tfvars path, relative to a feature directory."""
        return f'../../environments/{self.env_name}/vars.tfvars'

    def feature_dir(self, feature: Feature) -> Path:
        return (self.base_dir or Path.cwd()) / feature.dir

    def init_command(self, feature: Feature) -> list[str]:
        # The backend key always comes from the feature, never from backend.tfvars
        return [
            self.tool, 'init',
            f'-backend-config=bucket={self.backend.bucket}',
            f'-backend-config=key={feature.state_file}',
            f'-backend-config=region={self.backend.region}',
            f'-backend-config=profile={self.backend.profile}',
            f'-backend-config=dynamodb_table={self.backend.dynamodb_table}',
            '-reconfigure',
        ]

    def plan_command(self) -> list[str]:
        return [self.tool, 'plan', f'-var-file={self.var_file}']

    def apply_command(self) -> list[str]:
        return [self.tool, 'apply', '-auto-approve', f'-var-file={self.var_file}']

    def execute(self, feature: Feature) -> FeatureResult:
        """Execute init, plan and apply for a feature.

        Returns a result with status 'applied', or 'declined' when the
        confirmation provider said no.

        Raises:
            DirectoryChangeError: Feature has no dir or it does not exist
            BackendInitError: init failed or could not start
            PlanError: plan failed or could not start
            ApplyError: apply failed or could not start
        """
        start = time.time()
        logger.info(f"Executing {self.tool} for feature: {feature.name}")

        if not feature.dir:
            raise DirectoryChangeError(feature.dir, "feature has no dir")
        work_dir = self.feature_dir(feature)
        if not work_dir.is_dir():
            raise DirectoryChangeError(feature.dir, f"no such directory: {work_dir}")

        env = tool_env(feature.state_file)

        logger.info(f"[{feature.name}] Running {self.tool} init (key: {feature.state_file})...")
        rc, _, err = run_command(self.init_command(feature), cwd=work_dir, env=env)
        if rc != 0:
            raise BackendInitError(feature.dir, _failure_cause(rc, err))
        logger.info(f"Backend init successful in {feature.dir}")

        logger.info(f"[{feature.name}] Running {self.tool} plan...")
        rc, _, err = run_command(self.plan_command(), cwd=work_dir, env=env)
        if rc != 0:
            raise PlanError(feature.dir, _failure_cause(rc, err))
        logger.info(f"Plan run successfully for {feature.dir}")

        if not self.confirmation.confirm(feature.name):
            print("Apply cancelled by user.")
            return FeatureResult(
                name=feature.name,
                dir=feature.dir,
                status=DECLINED,
                message='Apply cancelled by user',
                duration=time.time() - start
            )

        logger.info(f"[{feature.name}] Running {self.tool} apply...")
        rc, _, err = run_command(self.apply_command(), cwd=work_dir, env=env)
        if rc != 0:
            raise ApplyError(feature.dir, _failure_cause(rc, err))
        logger.info(f"Apply run successfully for {feature.dir}")

        return FeatureResult(
            name=feature.name,
            dir=feature.dir,
            status=APPLIED,
            message=f"{self.tool} apply completed for {feature.name}",
            duration=time.time() - start
        )
