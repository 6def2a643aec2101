"""
Pacing Controller - inter-attempt delays and stall detection.

All counters are derived from the attempt history, so the controller
holds no hidden state between calls:

    base = mobile [60s, 150s] | desktop [45s, 120s]
    failure multiplier  = min(1 + 0.5 * consecutive failures, 3.0)
    adaptive multiplier = 1.0, +0.2 per Failed (cap 2.0),
                          -0.1 per Gained while above 1.0 (floor 1.0)
    delay = uniform(base) * failure multiplier * adaptive multiplier

The stall counter counts consecutive zero-delta attempts (NoChange or
Failed) and resets on any Gained attempt.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..config import Config
from ..models import AttemptOutcome, AttemptRecord, DeviceClass

logger = logging.getLogger(__name__)


class StallSignal(str, Enum):
	"""What the orchestrator should do about the current stall run."""
	NONE = "none"
	RECHECK = "recheck"
	EXTRA_WAIT = "extra_wait"
	RECOVER = "recover"


@dataclass(frozen=True)
class PacingState:
	"""Counters folded from the attempt history."""
	consecutive_failures: int = 0
	adaptive_multiplier: float = 1.0
	stall_count: int = 0

	def advance(self, outcome: AttemptOutcome, config: Config) -> "PacingState":
		if outcome == AttemptOutcome.FAILED:
			return PacingState(
				consecutive_failures=self.consecutive_failures + 1,
				adaptive_multiplier=min(config.adaptive_cap, self.adaptive_multiplier + config.adaptive_step_up),
				stall_count=self.stall_count + 1,
			)
		if outcome == AttemptOutcome.GAINED:
			multiplier = self.adaptive_multiplier
			if multiplier > 1.0:
				multiplier = max(1.0, multiplier - config.adaptive_step_down)
			return PacingState(consecutive_failures=0, adaptive_multiplier=multiplier, stall_count=0)
		return PacingState(
			consecutive_failures=0,
			adaptive_multiplier=self.adaptive_multiplier,
			stall_count=self.stall_count + 1,
		)

	def failure_multiplier(self, config: Config) -> float:
		return min(1 + config.failure_multiplier_step * self.consecutive_failures, config.failure_multiplier_cap)


class PacingController:
	"""Computes delays and stall signals from attempt history."""

	def __init__(self, config: Optional[Config] = None, rng: Optional[random.Random] = None):
		self.config = config or Config()
		self.rng = rng or random.Random()

	def state(self, history: Iterable[AttemptRecord]) -> PacingState:
		state = PacingState()
		for record in history:
			state = state.advance(record.outcome, self.config)
		return state

	def stall_count(self, history: Iterable[AttemptRecord]) -> int:
		return self.state(history).stall_count

	def next_delay(self, history: list[AttemptRecord], device_class: DeviceClass) -> float:
		"""Seconds to wait before the next attempt."""
		state = self.state(history)
		low, high = self.config.delay_bounds(device_class)
		failure = state.failure_multiplier(self.config)
		adaptive = state.adaptive_multiplier
		delay = self.rng.uniform(low, high) * failure * adaptive

		if failure > 1 or adaptive > 1:
			logger.info(
				f"Smart delay: {delay:.0f}s (base {low:.0f}-{high:.0f}s, "
				f"failure x{failure:.1f}, adaptive x{adaptive:.1f})"
			)
		return delay

	def is_stalled(self, history: list[AttemptRecord], device_class: DeviceClass = DeviceClass.DESKTOP) -> bool:
		"""True once the stall run reaches the device's hard limit."""
		return self.stall_count(history) >= self.config.stall_limit(device_class)

	def stall_signal(self, history: list[AttemptRecord], device_class: DeviceClass) -> StallSignal:
		"""
		Map the current stall run to an action.

		The re-check and extra wait fire once, on the attempt that reaches
		their threshold; recovery fires from the hard limit on.
		"""
		count = self.stall_count(history)
		if count >= self.config.stall_limit(device_class):
			return StallSignal.RECOVER
		if count == self.config.stall_extra_wait_threshold:
			return StallSignal.EXTRA_WAIT
		if count == self.config.stall_recheck_threshold:
			return StallSignal.RECHECK
		return StallSignal.NONE
