"""
Campaign Orchestrator - drives one campaign to a result.

State machine:

    INIT -> PLANNING -> EXECUTING <-> RECOVERING
                            |              |
                            v              v
                     EXTRA_SEARCHING -> COMPLETE (full or partial)
    EXECUTING / EXTRA_SEARCHING -> TIMED_OUT when the wall-clock budget elapses
    RECOVERING -> ABORTED when the driver session cannot be recovered

Each handler runs one step and returns the next state. The attempt
history and stall window are owned here and nowhere else. ``run``
always returns a CampaignResult; nothing is raised to the caller.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Optional

from ..config import Config
from ..driver import Driver
from ..errors import FailureCategory, ProgressUnavailable, SessionClosed
from ..models import (
	AttemptOutcome,
	AttemptRecord,
	CampaignResult,
	CampaignState,
	CampaignStatus,
	DeviceClass,
	Query,
)
from ..progress_source import ProgressSource
from ..sources.base import WeightedSource
from .classifier import FailureClassifier
from .events import CampaignEvent, EventCallback, EventKind
from .executor import InteractionExecutor
from .pacing import PacingController, StallSignal
from .planner import QueryPlanner
from .progress import ProgressTracker

logger = logging.getLogger(__name__)

TERMINAL_STATES = {CampaignState.COMPLETE, CampaignState.TIMED_OUT, CampaignState.ABORTED}
RECOVERY_TACTICS = ("reload", "extended_wait", "new_surface")
PROGRESS_READ_ATTEMPTS = 3


class CampaignOrchestrator:
	"""
	Runs a single campaign for one device class.

	Usage:
		orchestrator = CampaignOrchestrator(driver, progress_source, DeviceClass.DESKTOP, sources)
		result = await orchestrator.run()
		if result.status == CampaignStatus.ABORTED:
			...  # re-provision the session
	"""

	def __init__(
		self,
		driver: Driver,
		progress_source: ProgressSource,
		device_class: DeviceClass,
		sources: list[WeightedSource],
		config: Optional[Config] = None,
		planner: Optional[QueryPlanner] = None,
		pacing: Optional[PacingController] = None,
		classifier: Optional[FailureClassifier] = None,
		on_event: Optional[EventCallback] = None,
		sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
		clock: Callable[[], float] = time.monotonic,
	):
		self.config = config or Config()
		self.driver = driver
		self.device_class = device_class
		self.sources = sources
		self.on_event = on_event
		self.sleep = sleep
		self.clock = clock

		self.tracker = ProgressTracker(progress_source, device_class, timeout=self.config.progress_timeout)
		self.executor = InteractionExecutor(
			driver, self.tracker, self.config, classifier=classifier, sleep=sleep,
		)
		self.planner = planner or QueryPlanner(plan_size=self.config.plan_size)
		self.pacing = pacing or PacingController(self.config)

		self.state = CampaignState.INIT
		self.history: list[AttemptRecord] = []
		self._stall_start = 0
		self._queue: deque[str] = deque()
		self._consumed: set[str] = set()
		self._topics: list[str] = []
		self._initial_deficit = 0
		self._started = 0.0
		self._deadline = 0.0
		self._recoveries = 0
		self._extra_attempts = 0
		self._supplement_batches = 0
		self._stale_streak = 0
		self._last_delay = 0.0
		self._pending_fatal: Optional[SessionClosed] = None
		self._resume_state = CampaignState.EXECUTING
		self._reason = ""
		self._error: Optional[BaseException] = None

		self._handlers = {
			CampaignState.INIT: self._on_init,
			CampaignState.PLANNING: self._on_planning,
			CampaignState.EXECUTING: self._on_executing,
			CampaignState.RECOVERING: self._on_recovering,
			CampaignState.EXTRA_SEARCHING: self._on_extra_searching,
		}

	# ------------------------------------------------------------------
	# Public API
	# ------------------------------------------------------------------

	async def run(self) -> CampaignResult:
		"""Run the campaign to a terminal state."""
		self._started = self.clock()
		self._deadline = self._started + self.config.wall_clock_budget

		try:
			while self.state not in TERMINAL_STATES:
				next_state = await self._handlers[self.state]()
				await self._transition(next_state)
		except Exception as e:
			logger.exception(f"Campaign aborted in {self.state.value}: {e}")
			self._error = e
			self._reason = f"unexpected error: {e}"
			await self._transition(CampaignState.ABORTED)

		result = self._result()
		logger.info(
			f"Campaign finished: {result.status.value} | earned {result.earned_points}, "
			f"remaining {result.deficit_remaining} ({result.reason})"
		)
		await self._emit(EventKind.RESULT, result.to_dict())
		return result

	@property
	def stall_window(self) -> list[AttemptRecord]:
		"""Attempts since the stall counter was last reset."""
		return self.history[self._stall_start:]

	# ------------------------------------------------------------------
	# State handlers
	# ------------------------------------------------------------------

	async def _on_init(self) -> CampaignState:
		return CampaignState.PLANNING

	async def _on_planning(self) -> CampaignState:
		if not await self._read_initial_progress():
			return CampaignState.ABORTED

		self._initial_deficit = self.tracker.current_deficit()
		breakdown = ", ".join(f"{s.earned}/{s.max}" for s in self.tracker.snapshots())
		logger.info(f"Initial {self.device_class.value} progress: {breakdown} (deficit {self._initial_deficit})")

		if self._initial_deficit == 0:
			self._reason = "quota already met"
			return CampaignState.COMPLETE

		queries = await self.planner.plan(self.sources)
		self._topics = [q.text for q in queries]
		added = self._enqueue(queries)
		logger.info(f"Starting {self.device_class.value} campaign: {self._initial_deficit} points needed, {added} queries planned")

		if not self._queue:
			logger.warning("Planner produced no queries, moving to supplementary queries")
			return self._enter_extra()
		return CampaignState.EXECUTING

	async def _on_executing(self) -> CampaignState:
		if self._timed_out():
			return CampaignState.TIMED_OUT

		if not self._queue:
			logger.info(f"Primary queries exhausted with {self._deficit()} points remaining")
			return self._enter_extra()

		query = self._queue.popleft()
		record = await self._attempt(query)
		if record is None:
			self._resume_state = CampaignState.EXECUTING
			return CampaignState.RECOVERING

		if self._deficit() == 0 and await self._verify_complete():
			self._reason = "quota met"
			return CampaignState.COMPLETE

		signal = self.pacing.stall_signal(self.stall_window, self.device_class)
		stall = self.pacing.stall_count(self.stall_window)

		if signal == StallSignal.RECOVER:
			logger.warning(f"No points gained for {stall} attempts, recovering")
			self._resume_state = CampaignState.EXECUTING
			return CampaignState.RECOVERING

		if signal == StallSignal.RECHECK:
			logger.warning(f"No points gained for {stall} attempts, force checking progress")
			if await self._recheck() and self._deficit() == 0 and await self._verify_complete():
				self._reason = "quota met"
				return CampaignState.COMPLETE
		elif signal == StallSignal.EXTRA_WAIT:
			logger.warning(f"No points gained for {stall} attempts, waiting an extra {self.config.stall_extra_wait:.0f}s")
			await self.sleep(self.config.stall_extra_wait)

		self._log_estimate()
		await self.sleep(self._last_delay)
		return CampaignState.EXECUTING

	async def _on_recovering(self) -> CampaignState:
		fatal = self._pending_fatal
		self._pending_fatal = None

		if self._recoveries >= self.config.max_recoveries:
			if fatal is not None:
				self._error = fatal
				self._reason = f"session closed after {self._recoveries} recoveries: {fatal}"
				return CampaignState.ABORTED
			logger.warning("Recovery budget spent, moving to supplementary queries")
			return self._enter_extra()

		tactic = "new_surface" if fatal is not None else RECOVERY_TACTICS[min(self._recoveries, len(RECOVERY_TACTICS) - 1)]
		self._recoveries += 1
		logger.warning(f"Recovery {self._recoveries}/{self.config.max_recoveries}: {tactic}")
		await self._emit(EventKind.RECOVERY, {"tactic": tactic, "number": self._recoveries})

		try:
			await self._apply_tactic(tactic)
		except SessionClosed as e:
			self._error = e
			self._reason = f"recovery failed: {e}"
			return CampaignState.ABORTED

		before = self._deficit()
		self._stall_start = len(self.history)
		await self._refresh_quietly()

		if self._deficit() == 0 and await self._verify_complete():
			self._reason = "quota met"
			return CampaignState.COMPLETE

		if fatal is not None:
			return self._resume_state

		if self._deficit() < before:
			logger.info(f"Progress caught up after recovery: {before} -> {self._deficit()}")
			return CampaignState.EXECUTING

		logger.warning("No progress after recovery, switching to a fresh query batch")
		return self._enter_extra()

	async def _on_extra_searching(self) -> CampaignState:
		if self._timed_out():
			return CampaignState.TIMED_OUT

		budget = self.config.extra_attempt_budget(self.device_class)
		if self._extra_attempts >= budget:
			self._reason = f"quota unreachable: {budget} supplementary attempts used"
			return self._finish_incomplete()

		stall = self.pacing.stall_count(self.stall_window)
		if stall >= self.config.extra_stall_limit:
			self._reason = f"quota unreachable: no points for {stall} supplementary attempts"
			return self._finish_incomplete()

		if not self._queue:
			if self._supplement_batches >= self.config.max_supplement_batches:
				self._reason = f"quota unreachable: {self._supplement_batches} supplementary batches used"
				return self._finish_incomplete()
			self._supplement_batches += 1
			batch = await self.planner.supplement(exclude=self._consumed, seeds=self._topics)
			added = self._enqueue(batch)
			logger.info(f"Supplementary batch {self._supplement_batches}: {added} queries")
			return CampaignState.EXTRA_SEARCHING

		query = self._queue.popleft()
		self._extra_attempts += 1
		logger.info(f"{self._deficit()} points remaining | extra query {self._extra_attempts}/{budget}: {query}")
		record = await self._attempt(query)
		if record is None:
			self._resume_state = CampaignState.EXTRA_SEARCHING
			return CampaignState.RECOVERING

		if self._deficit() == 0 and await self._verify_complete():
			self._reason = f"quota met after {self._extra_attempts} supplementary attempts"
			return CampaignState.COMPLETE

		await self.sleep(self._last_delay)
		return CampaignState.EXTRA_SEARCHING

	# ------------------------------------------------------------------
	# Helpers
	# ------------------------------------------------------------------

	async def _attempt(self, query: str) -> Optional[AttemptRecord]:
		"""Execute a query and record it; None when the session needs recovery."""
		self._consumed.add(query)
		try:
			record = await self.executor.attempt(query)
		except SessionClosed as e:
			self._pending_fatal = e
			record = AttemptRecord(query=query, delta_points=0, outcome=AttemptOutcome.FAILED, category=FailureCategory.FATAL.value)
			self.history.append(record)
			await self._emit(EventKind.ATTEMPT, self._attempt_payload(record, None))
			return None

		if record.stale:
			self._stale_streak += 1
			if self._stale_streak > 1:
				# Stale data is tolerated for one attempt only
				record.outcome = AttemptOutcome.FAILED
		elif record.category is None:
			# Only a fresh measurement ends a stale run
			self._stale_streak = 0

		self.history.append(record)
		self._last_delay = self.pacing.next_delay(self.history, self.device_class)
		logger.info(
			f"[{len(self.history)}] {record.outcome.value} {record.delta_points:+d} | "
			f"{self._deficit()} remaining | next in {self._last_delay:.0f}s | {query}"
		)
		await self._emit(EventKind.ATTEMPT, self._attempt_payload(record, self._last_delay))
		return record

	@staticmethod
	def _attempt_payload(record: AttemptRecord, delay: Optional[float]) -> dict:
		return {
			"query": record.query,
			"outcome": record.outcome.value,
			"delta": record.delta_points,
			"category": record.category,
			"retries": record.retries,
			"delay": round(delay, 1) if delay is not None else None,
		}

	async def _apply_tactic(self, tactic: str) -> None:
		if tactic == "new_surface":
			await self.executor.fresh_surface()
			return

		if tactic == "reload":
			try:
				await self.driver.reload()
			except Exception as e:
				category = self.executor.classifier.classify(e)
				if category == FailureCategory.FATAL:
					raise SessionClosed(str(e)) from e
				logger.warning(f"Reload failed [{category.value}], continuing: {e}")
			await self.sleep(self.config.recovery_wait)
			return

		await self.sleep(self.config.extended_recovery_wait)

	async def _read_initial_progress(self) -> bool:
		for attempt in range(1, PROGRESS_READ_ATTEMPTS + 1):
			try:
				await self.tracker.refresh()
				return True
			except ProgressUnavailable as e:
				logger.warning(f"Initial progress read failed ({attempt}/{PROGRESS_READ_ATTEMPTS}): {e}")
				if attempt < PROGRESS_READ_ATTEMPTS:
					await self.sleep(self.config.completion_recheck_delay)
				else:
					self._error = e
		self._reason = "progress source unavailable"
		return False

	async def _refresh_quietly(self) -> None:
		try:
			await self.tracker.refresh()
		except ProgressUnavailable as e:
			logger.warning(f"Progress refresh failed: {e}")

	async def _recheck(self) -> bool:
		"""Out-of-band progress read to rule out a reporting lag. True if progress moved."""
		before = self._deficit()
		await self._refresh_quietly()
		after = self._deficit()
		await self._emit(EventKind.RECHECK, {"before": before, "after": after})
		if after < before:
			logger.info(f"Progress updated after force check: {before} -> {after}")
			self._stall_start = len(self.history)
			return True
		return False

	async def _verify_complete(self) -> bool:
		"""Second, delayed read guarding against a transient zero deficit.

		A cached snapshot cannot confirm completion: the read is retried
		once, and if the source is still down the campaign keeps going.
		"""
		for _ in range(2):
			await self.sleep(self.config.completion_recheck_delay)
			await self._refresh_quietly()
			if not self.tracker.stale:
				break
		else:
			logger.warning("Could not re-read progress to confirm completion; continuing")
			return False

		reported = self.tracker.reported_deficit()
		if reported == 0:
			logger.info("Completion verified on delayed re-check")
			return True
		logger.warning(f"Deficit reported 0 but re-check shows {reported}; continuing")
		self.tracker.rebase()
		return False

	def _enqueue(self, queries: list[Query]) -> int:
		added = 0
		for query in queries:
			for text in query.flatten(self.device_class):
				if text not in self._consumed and text not in self._queue:
					self._queue.append(text)
					added += 1
		return added

	def _enter_extra(self) -> CampaignState:
		self._queue.clear()
		self._stall_start = len(self.history)
		return CampaignState.EXTRA_SEARCHING

	def _finish_incomplete(self) -> CampaignState:
		logger.warning(f"Campaign ended with {self._deficit()} points still needed: {self._reason}")
		return CampaignState.COMPLETE

	def _deficit(self) -> int:
		return self.tracker.current_deficit()

	def _timed_out(self) -> bool:
		if self.clock() < self._deadline:
			return False
		self._reason = f"wall-clock budget of {self.config.wall_clock_budget:.0f}s elapsed"
		logger.warning(f"Campaign timed out with {self._deficit()} points remaining")
		return True

	def _log_estimate(self) -> None:
		attempts = len(self.history)
		if attempts == 0 or attempts % 5:
			return
		earned = self._initial_deficit - self._deficit()
		if earned <= 0:
			return
		per_attempt = (self.clock() - self._started) / attempts
		needed = self._deficit() / (earned / attempts)
		logger.info(f"Estimated time remaining: ~{per_attempt * needed / 60:.0f} minutes")

	async def _transition(self, new_state: CampaignState) -> None:
		if new_state == self.state:
			return
		old = self.state
		self.state = new_state
		logger.info(f"Campaign state {old.value} -> {new_state.value}")
		await self._emit(EventKind.TRANSITION, {"from": old.value, "to": new_state.value})

	async def _emit(self, kind: EventKind, payload: dict) -> None:
		if not self.on_event:
			return
		try:
			await self.on_event(CampaignEvent(kind=kind, state=self.state.value, payload=payload))
		except Exception as e:
			logger.warning(f"Event callback failed for {kind.value}: {e}")

	def _result(self) -> CampaignResult:
		deficit = self.tracker.current_deficit() if self.tracker.has_data else None
		earned = max(self._initial_deficit - deficit, 0) if deficit is not None else 0

		if self.state == CampaignState.COMPLETE:
			status = CampaignStatus.COMPLETED if deficit == 0 else CampaignStatus.PARTIALLY_COMPLETED
		elif self.state == CampaignState.TIMED_OUT:
			status = CampaignStatus.TIMED_OUT
		else:
			status = CampaignStatus.ABORTED

		return CampaignResult(
			earned_points=earned,
			deficit_remaining=deficit,
			status=status,
			reason=self._reason,
			attempts=len(self.history),
			extra_attempts=self._extra_attempts,
			recoveries=self._recoveries,
			elapsed_seconds=self.clock() - self._started,
			error=self._error,
		)
