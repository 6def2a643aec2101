"""
Interaction Executor - runs one query attempt against the Driver.

An attempt submits the query, then reads progress to measure the point
delta. Failures are classified once, here:

- transient UI problems are retried locally (up to ``max_local_retries``)
- a crashed surface is replaced with a fresh one and retried
- rate limiting or an unreadable progress source yields NoChange, since
  the interaction itself may have landed
- a closed session is raised as ``SessionClosed`` immediately
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import Config
from ..driver import Driver
from ..errors import FailureCategory, ProgressUnavailable, SessionClosed
from ..models import AttemptOutcome, AttemptRecord
from .classifier import FailureClassifier
from .progress import ProgressTracker

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class InteractionExecutor:
	"""Executes query attempts; mutates nothing beyond the record it returns."""

	def __init__(
		self,
		driver: Driver,
		tracker: ProgressTracker,
		config: Optional[Config] = None,
		classifier: Optional[FailureClassifier] = None,
		sleep: Sleep = asyncio.sleep,
	):
		self.driver = driver
		self.tracker = tracker
		self.config = config or Config()
		self.classifier = classifier or FailureClassifier()
		self.sleep = sleep

	async def attempt(self, query: str) -> AttemptRecord:
		"""
		Execute one query.

		Returns:
			AttemptRecord with the observed point delta

		Raises:
			SessionClosed: The driver session is gone; retrying is pointless
		"""
		before = self.tracker.current_deficit()
		max_retries = self.config.max_local_retries

		for attempt in range(1, max_retries + 1):
			try:
				if self.driver.is_closed():
					logger.warning("Interaction surface is closed, opening a new one")
					await self.fresh_surface()
				await self._submit(query)
				break
			except SessionClosed:
				raise
			except Exception as e:
				category = self.classifier.classify(e)

				if category == FailureCategory.FATAL:
					logger.error(f"Driver session lost during '{query}': {e}")
					raise SessionClosed(str(e)) from e

				if category in (FailureCategory.RATE_LIMITED, FailureCategory.UNVERIFIABLE):
					logger.warning(f"Attempt for '{query}' unverifiable [{category.value}]: {e}")
					return self._record(query, 0, AttemptOutcome.NO_CHANGE, category, attempt - 1)

				if attempt >= max_retries:
					logger.error(f"Query '{query}' failed after {max_retries} tries [{category.value}]: {e}")
					return self._record(query, 0, AttemptOutcome.FAILED, category, attempt - 1)

				logger.warning(f"Query '{query}' failed [{category.value}], retry {attempt}/{max_retries}: {e}")
				if category == FailureCategory.SESSION_CRASHED:
					await self.fresh_surface()
				else:
					await self.sleep(self.config.local_retry_wait)

		return await self._measure(query, before, attempt - 1)

	async def _submit(self, query: str) -> None:
		selector = self.config.input_selector
		await self.driver.latest_surface()
		try:
			await self.driver.wait_for(selector, self.config.element_timeout)
		except Exception as e:
			if self.classifier.classify(e) != FailureCategory.TRANSIENT_UI:
				raise
			logger.info(f"Input not ready, returning to {self.config.home_url}")
			await self.driver.navigate(self.config.home_url)
			await self.driver.wait_for(selector, self.config.element_timeout)

		await self.driver.click(selector)
		await self.driver.type(selector, query)
		await self.driver.click(self.config.submit_selector)
		await self.sleep(self.config.settle_wait)
		# Submitting can open the results in a new tab
		await self.driver.latest_surface()

	async def _measure(self, query: str, before: int, retries: int) -> AttemptRecord:
		try:
			await self.tracker.refresh()
		except ProgressUnavailable as e:
			logger.warning(f"Could not verify '{query}': {e}")
			return self._record(query, 0, AttemptOutcome.NO_CHANGE, FailureCategory.UNVERIFIABLE, retries)

		if self.tracker.stale:
			record = self._record(query, 0, AttemptOutcome.NO_CHANGE, FailureCategory.UNVERIFIABLE, retries)
			record.stale = True
			return record

		delta = before - self.tracker.current_deficit()
		outcome = AttemptOutcome.GAINED if delta > 0 else AttemptOutcome.NO_CHANGE
		return self._record(query, delta, outcome, None, retries)

	async def fresh_surface(self) -> None:
		"""Replace the current surface with a new one on the home page.

		Raises:
			SessionClosed: A new surface cannot be opened
		"""
		try:
			await self.driver.new_surface()
			await self.driver.navigate(self.config.home_url)
		except SessionClosed:
			raise
		except Exception as e:
			raise SessionClosed(f"Could not open a fresh surface: {e}") from e
		await self.sleep(self.config.settle_wait)

	@staticmethod
	def _record(
		query: str,
		delta: int,
		outcome: AttemptOutcome,
		category: Optional[FailureCategory],
		retries: int,
	) -> AttemptRecord:
		return AttemptRecord(
			query=query,
			delta_points=delta,
			outcome=outcome,
			category=category.value if category else None,
			retries=retries,
		)
