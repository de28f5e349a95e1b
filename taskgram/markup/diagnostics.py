"""Diagnostics emitted while converting markup.

The transpiler reports recoverable problems (malformed references,
failed lookups) to a sink instead of a process-wide logger, so callers
and tests can observe them directly.  The default sink forwards to
structlog.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict

import structlog

logger = structlog.get_logger()

WARNING = "warning"
ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """A single recoverable problem found during conversion."""

    level: str
    event: str
    fields: Dict[str, Any] = field(default_factory=dict)


DiagnosticsSink = Callable[[Diagnostic], None]


def structlog_sink(diagnostic: Diagnostic) -> None:
    """Forward a diagnostic to the module logger at its level."""
    log = logger.error if diagnostic.level == ERROR else logger.warning
    log(diagnostic.event, **diagnostic.fields)
