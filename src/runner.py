"""Environment orchestration across features."""

import logging
import time
from typing import Optional

from executor import FeatureError, FeatureExecutor
from features import Feature
from reporting import FAILED, PLANNED, SKIPPED, FeatureResult, RunReport

logger = logging.getLogger(__name__)


class Orchestrator:
    """Runs every feature of an environment in catalog order.

    A failing feature is logged and recorded; the remaining features
    still run.
    """

    def __init__(
        self,
        env_name: str,
        features: list[Feature],
        executor: FeatureExecutor,
        report: Optional[RunReport] = None,
        skip: Optional[list[str]] = None,
        dry_run: bool = False
    ):
        self.env_name = env_name
        self.features = features
        self.executor = executor
        self.report = report or RunReport(env_name=env_name, tool=executor.tool)
        self.skip = skip or []
        self.dry_run = dry_run

    def preview(self) -> bool:
        """Show what would be executed without running. Returns True."""
        print("")
        print("═══════════════════════════════════════════════════════════════")
        print(f"  DRY-RUN: {self.executor.tool} for env: {self.env_name}")
        print("═══════════════════════════════════════════════════════════════")
        print("")

        run_count = 0
        skip_count = 0
        for feature in self.features:
            work_dir = self.executor.feature_dir(feature)
            if feature.name in self.skip:
                print(f"  [SKIP] {feature.name}: {feature.dir}")
                skip_count += 1
                self.report.record(FeatureResult(name=feature.name, dir=feature.dir, status=SKIPPED))
            else:
                marker = ' OK ' if feature.dir and work_dir.is_dir() else 'MISS'
                print(f"  [{marker}] {feature.name}: {feature.dir}")
                print(f"         State: {feature.state_file}")
                print(f"         Init:  {' '.join(self.executor.init_command(feature))}")
                print(f"         Plan:  {' '.join(self.executor.plan_command())}")
                print(f"         Apply: {' '.join(self.executor.apply_command())} (after confirmation)")
                run_count += 1
                self.report.record(FeatureResult(name=feature.name, dir=feature.dir, status=PLANNED))
            print("")

        print("═══════════════════════════════════════════════════════════════")
        print(f"  Summary: {run_count} features to execute, {skip_count} to skip")
        print("  Mode: DRY-RUN (no changes made)")
        print("═══════════════════════════════════════════════════════════════")
        print("")

        return True

    def run(self) -> bool:
        """Run all features. Returns True if none failed."""
        self.report.start()
        if self.dry_run:
            result = self.preview()
            self.report.finish()
            return result

        logger.info(f"Executing {self.executor.tool} for env: {self.env_name}")
        start_time = time.time()

        for feature in self.features:
            if feature.name in self.skip:
                logger.info(f"Skipping feature: {feature.name}")
                self.report.record(FeatureResult(name=feature.name, dir=feature.dir, status=SKIPPED))
                continue

            feature_start = time.time()
            try:
                result = self.executor.execute(feature)
            except FeatureError as e:
                logger.error(f"Feature {feature.name}: {e}")
                result = FeatureResult(
                    name=feature.name,
                    dir=feature.dir,
                    status=FAILED,
                    step=e.step,
                    message=str(e),
                    duration=time.time() - feature_start
                )
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.exception(f"Feature {feature.name} raised exception")
                result = FeatureResult(
                    name=feature.name,
                    dir=feature.dir,
                    status=FAILED,
                    message=str(e),
                    duration=time.time() - feature_start
                )
            self.report.record(result)

        total_time = time.time() - start_time
        logger.info(f"Environment {self.env_name} completed in {total_time:.1f}s")
        self.report.finish()
        return self.report.success
