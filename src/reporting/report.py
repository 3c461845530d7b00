"""Run reporting."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

# Feature outcome statuses
APPLIED = 'applied'
DECLINED = 'declined'
FAILED = 'failed'
SKIPPED = 'skipped'
PLANNED = 'planned'  # dry-run only


@dataclass
class FeatureResult:
    """Outcome of one feature."""
    name: str
    dir: str
    status: str
    step: str = ''  # Failing step, empty unless failed
    message: str = ''
    duration: float = 0.0

    @property
    def failed(self) -> bool:
        return self.status == FAILED


@dataclass
class RunReport:
    """Collects per-feature outcomes for one environment run."""
    env_name: str
    tool: str = ''
    results: list[FeatureResult] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def start(self):
        """Mark run start."""
        self.started_at = datetime.now()

    def record(self, result: FeatureResult):
        """Record a feature outcome."""
        self.results.append(result)

    def finish(self):
        """Mark run end."""
        self.finished_at = datetime.now()

    @property
    def success(self) -> bool:
        return not any(r.failed for r in self.results)

    @property
    def failed(self) -> list[FeatureResult]:
        return [r for r in self.results if r.failed]

    def summary_lines(self) -> list[str]:
        """Human-readable summary, one line per feature plus totals."""
        lines = []
        for r in self.results:
            line = f"  {r.status.upper():<9} {r.name} ({r.dir})"
            if r.message and r.failed:
                line += f": {r.message}"
            lines.append(line)

        counts: dict[str, int] = {}
        for r in self.results:
            counts[r.status] = counts.get(r.status, 0) + 1
        totals = ', '.join(f"{n} {status}" for status, n in counts.items()) or 'no features'
        lines.append(f"  Total: {len(self.results)} ({totals})")
        return lines

    def to_dict(self) -> dict:
        """Return report as dictionary for JSON output."""
        duration = (self.finished_at - self.started_at).total_seconds() if self.finished_at and self.started_at else 0

        return {
            'env': self.env_name,
            'tool': self.tool,
            'success': self.success,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
            'duration_seconds': round(duration, 1),
            'features': [
                {
                    'name': r.name,
                    'dir': r.dir,
                    'status': r.status,
                    'step': r.step,
                    'message': r.message,
                    'duration': round(r.duration, 1),
                }
                for r in self.results
            ],
        }

    def write_json(self, path: Path):
        """Write JSON report to path, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
