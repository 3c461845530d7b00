"""Apply confirmation providers."""

import sys
from typing import Optional, Protocol, TextIO, runtime_checkable

APPLY_PROMPT = "Do you want to apply the changes? (yes/no): "


@runtime_checkable
class ConfirmationProvider(Protocol):
    """Decides whether a planned feature gets applied."""

    def confirm(self, feature_name: str) -> bool:
        """Return True to run apply for the feature."""
        ...


class InteractiveConfirmation:
    """Ask on stdout, read one line from stdin. Only 'yes' confirms."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.stdin = stdin
        self.stdout = stdout

    def confirm(self, feature_name: str) -> bool:
        stdin = self.stdin or sys.stdin
        stdout = self.stdout or sys.stdout
        stdout.write(APPLY_PROMPT)
        stdout.flush()
        # EOF reads as '' and declines
        answer = stdin.readline()
        return answer.strip() == 'yes'


class AutoApprove:
    """Apply every feature without asking (--yes)."""

    def confirm(self, feature_name: str) -> bool:
        return True


class AutoDecline:
    """Never apply (--plan-only)."""

    def confirm(self, feature_name: str) -> bool:
        return False
