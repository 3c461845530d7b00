#!/usr/bin/env python3
"""CLI entry point for tf-multistate.

Runs backend init, plan and (confirmed) apply for every feature of an
environment:

    tf-multistate dev
    tf-multistate prod --plan-only --report reports/prod.json
    tf-multistate stage --yes --skip dns --strict

Configuration is read from infra/environments/<env>/ below --base-dir
(default: current directory). See config.py for the file layout.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from config import (
    BACKEND_FILE,
    ConfigError,
    get_env_dir,
    load_backend_config,
    load_settings,
)
from confirm import AutoApprove, AutoDecline, InteractiveConfirmation
from executor import FeatureExecutor
from features import load_features
from reporting import RunReport
from runner import Orchestrator

logger = logging.getLogger(__name__)

USAGE = "usage: tf-multistate [options] <environment>"


class _ArgumentParser(argparse.ArgumentParser):
    """Parser that reports bad invocations on stdout with exit code 1."""

    def error(self, message):
        print(USAGE)
        print(f"error: {message}")
        sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='tf-multistate',
        usage='%(prog)s [options] <environment>',
        description='Run init, plan and apply for each feature of an environment',
    )
    parser.add_argument(
        'environment',
        help='Environment name (directory under infra/environments/)',
    )
    parser.add_argument(
        '--base-dir',
        type=Path,
        help='Directory holding infra/ (default: current directory)',
    )
    parser.add_argument(
        '--tool',
        help='Provisioning tool binary (default: terraform, or runner.yaml)',
    )
    approval = parser.add_mutually_exclusive_group()
    approval.add_argument(
        '--yes', '-y',
        action='store_true',
        help='Apply every feature without asking',
    )
    approval.add_argument(
        '--plan-only',
        action='store_true',
        help='Run init and plan only, never apply',
    )
    parser.add_argument(
        '--skip',
        action='append',
        default=[],
        metavar='FEATURE',
        help='Skip a feature by name (repeatable)',
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Exit with status 1 if any feature failed',
    )
    parser.add_argument(
        '--strict-backend',
        action='store_true',
        help='Fail when backend.tfvars is missing a key',
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show commands per feature without running them',
    )
    parser.add_argument(
        '--report',
        type=Path,
        metavar='FILE',
        help='Write a JSON run report to FILE',
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging',
    )
    return parser


def _setup_logging(verbose: bool) -> None:
    """Configure logging to stderr."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def main(argv: Optional[list] = None) -> int:
    """Run the CLI. Returns the process exit code."""
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    env_name = args.environment
    base_dir = args.base_dir or Path.cwd()
    env_dir = get_env_dir(env_name, base_dir)

    try:
        settings = load_settings(env_dir)
    except ConfigError as e:
        logger.error(f"Error reading runner settings: {e}")
        return 1

    strict_backend = args.strict_backend or settings.strict_backend
    try:
        backend = load_backend_config(env_dir / BACKEND_FILE, strict=strict_backend)
    except ConfigError as e:
        logger.error(f"Error reading backend configuration: {e}")
        return 1

    try:
        features = load_features(env_dir)
    except ConfigError as e:
        logger.error(f"Error reading features from config file in {env_name}: {e}")
        return 1

    if args.plan_only:
        confirmation = AutoDecline()
    elif args.yes or settings.auto_approve:
        confirmation = AutoApprove()
    else:
        confirmation = InteractiveConfirmation()

    tool = args.tool or settings.tool
    executor = FeatureExecutor(
        env_name=env_name,
        backend=backend,
        confirmation=confirmation,
        tool=tool,
        base_dir=base_dir,
    )
    report = RunReport(env_name=env_name, tool=tool)
    orchestrator = Orchestrator(
        env_name,
        features,
        executor,
        report=report,
        skip=[*settings.skip, *args.skip],
        dry_run=args.dry_run,
    )
    success = orchestrator.run()

    print("Summary:")
    for line in report.summary_lines():
        print(line)
    if args.report:
        try:
            report.write_json(args.report)
            logger.info(f"Report written to {args.report}")
        except OSError as e:
            logger.error(f"Error writing report {args.report}: {e}")

    print(f"{tool} completed for env: {env_name}")

    if not success and (args.strict or settings.strict):
        logger.error(f"{len(report.failed)} feature(s) failed (strict mode)")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
