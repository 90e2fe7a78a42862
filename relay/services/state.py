from __future__ import annotations

from dataclasses import dataclass, field

from relay.services.alerts import AlertLog
from relay.services.readings import ReadingStore


@dataclass
class RelayState:
    """Process-wide state shared by the broker handler and the HTTP routes.

    Only mutated from synchronous code running on the event loop, so a single
    writer is guaranteed without a lock.
    """

    readings: ReadingStore = field(default_factory=ReadingStore)
    alerts: AlertLog = field(default_factory=AlertLog)
