"""
Campaign data model.

Plain dataclasses shared by the planner, tracker, pacing controller,
executor and orchestrator. Nothing here performs I/O.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class DeviceClass(str, Enum):
	"""Execution profile a campaign runs under."""
	MOBILE = "mobile"
	DESKTOP = "desktop"


class AttemptOutcome(str, Enum):
	"""Result of one query attempt as seen by the orchestrator."""
	GAINED = "gained"
	NO_CHANGE = "no_change"
	FAILED = "failed"


class CampaignState(str, Enum):
	"""States of the campaign state machine."""
	INIT = "init"
	PLANNING = "planning"
	EXECUTING = "executing"
	RECOVERING = "recovering"
	EXTRA_SEARCHING = "extra_searching"
	COMPLETE = "complete"
	TIMED_OUT = "timed_out"
	ABORTED = "aborted"


class CampaignStatus(str, Enum):
	"""Terminal status reported to the caller."""
	COMPLETED = "completed"
	PARTIALLY_COMPLETED = "partially_completed"
	TIMED_OUT = "timed_out"
	ABORTED = "aborted"


@dataclass(frozen=True)
class Query:
	"""A primary topic plus related follow-up terms, topic first."""
	text: str
	follow_ups: tuple[str, ...] = ()

	def flatten(self, device_class: DeviceClass) -> list[str]:
		"""Expand into the strings actually submitted for a device profile.

		Mobile drops follow-ups to keep request volume per query down.
		"""
		if device_class == DeviceClass.MOBILE:
			return [self.text]
		return [self.text, *self.follow_ups]


@dataclass(frozen=True)
class ProgressSnapshot:
	"""One counter read from the progress source."""
	earned: int
	max: int

	@property
	def deficit(self) -> int:
		return max(self.max - self.earned, 0)


@dataclass
class AttemptRecord:
	"""One executed query and what it yielded."""
	query: str
	delta_points: int
	outcome: AttemptOutcome
	timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
	category: Optional[str] = None
	retries: int = 0
	# Measured against a cached snapshot because the progress source was down
	stale: bool = False

	@property
	def is_zero_delta(self) -> bool:
		return self.outcome != AttemptOutcome.GAINED


@dataclass
class CampaignResult:
	"""Final outcome of one campaign run.

	``deficit_remaining`` is None when progress was never read, so the
	remaining deficit is unknown.
	"""
	earned_points: int
	deficit_remaining: Optional[int]
	status: CampaignStatus
	reason: str = ""
	attempts: int = 0
	extra_attempts: int = 0
	recoveries: int = 0
	elapsed_seconds: float = 0.0
	error: Optional[BaseException] = field(default=None, repr=False)

	@property
	def succeeded(self) -> bool:
		return self.status == CampaignStatus.COMPLETED

	def raise_for_fatal(self) -> None:
		"""Re-raise the driver failure that aborted the campaign, if any."""
		if self.status == CampaignStatus.ABORTED and self.error is not None:
			raise self.error

	def to_dict(self) -> dict:
		return {
			"earned_points": self.earned_points,
			"deficit_remaining": self.deficit_remaining,
			"status": self.status.value,
			"reason": self.reason,
			"attempts": self.attempts,
			"extra_attempts": self.extra_attempts,
			"recoveries": self.recoveries,
			"elapsed_seconds": round(self.elapsed_seconds, 1),
		}
