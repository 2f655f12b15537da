"""Structured decision trace for reconciliation calls.

Each entry is a single log line ``<event> {json payload}`` so an operator can
reconstruct why a call produced its outcome. When tracing is enabled entries are
emitted at INFO, otherwise at DEBUG.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


@dataclass(slots=True)
class TraceLogger:
    enabled: bool = False
    logger: logging.Logger = field(default=log)

    def __call__(self, event: str, **payload: object) -> None:
        level = logging.INFO if self.enabled else logging.DEBUG
        if not self.logger.isEnabledFor(level):
            return
        entry = {"event": event, **payload}
        self.logger.log(level, "%s %s", event, json.dumps(entry, default=str, sort_keys=True))

    def warning(self, event: str, **payload: object) -> None:
        """Emit at WARNING regardless of the trace flag."""

        entry = {"event": event, **payload}
        self.logger.warning("%s %s", event, json.dumps(entry, default=str, sort_keys=True))
