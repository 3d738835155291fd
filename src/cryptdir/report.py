"""Map a transition result to a terminal message and exit status."""

from __future__ import annotations

import sys

from cryptdir.engine import Outcome
from cryptdir.errors import CryptdirError


def report(outcome: Outcome) -> int:
    """Print the success message; return exit status 0."""
    print(outcome.message)
    return 0


def report_failure(error: CryptdirError) -> int:
    """Print ``Error: ...`` and the suggested next step to stderr; return 1."""
    print(f"Error: {error}", file=sys.stderr)
    if error.remedy:
        print(f"\nNext step:\n  {error.remedy}", file=sys.stderr)
    return 1
