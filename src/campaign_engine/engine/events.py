"""Telemetry events emitted by the orchestrator."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable


class EventKind(str, Enum):
	TRANSITION = "transition"
	ATTEMPT = "attempt"
	RECHECK = "recheck"
	RECOVERY = "recovery"
	RESULT = "result"


@dataclass
class CampaignEvent:
	"""One telemetry event; payload keys depend on the kind."""
	kind: EventKind
	state: str
	payload: dict[str, Any] = field(default_factory=dict)
	timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


EventCallback = Callable[[CampaignEvent], Awaitable[None]]
