"""Run reporting."""

from reporting.report import (
    APPLIED,
    DECLINED,
    FAILED,
    PLANNED,
    SKIPPED,
    FeatureResult,
    RunReport,
)

__all__ = [
    'APPLIED',
    'DECLINED',
    'FAILED',
    'PLANNED',
    'SKIPPED',
    'FeatureResult',
    'RunReport',
]
