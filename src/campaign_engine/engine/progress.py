"""
Progress Tracker - reads quota counters and maintains the deficit.

The tracked deficit never rises between reads: a source that reports a
larger deficit than before is logged as an anomaly and ignored. When
the source is unreachable the last snapshot is served (marked stale)
instead of raising.
"""

import asyncio
import logging
from typing import Optional

from ..errors import ProgressUnavailable
from ..models import DeviceClass, ProgressSnapshot
from ..progress_source import MOBILE, PRIMARY, SECONDARY, ProgressSource

logger = logging.getLogger(__name__)

COUNTERS_BY_DEVICE = {
	DeviceClass.MOBILE: (MOBILE,),
	DeviceClass.DESKTOP: (PRIMARY, SECONDARY),
}


class ProgressTracker:
	"""Caches counters from a ProgressSource and derives the deficit for a device class."""

	def __init__(
		self,
		source: ProgressSource,
		device_class: DeviceClass,
		timeout: float = 20.0,
	):
		self.source = source
		self.device_class = device_class
		self.timeout = timeout
		self.stale = False
		self._counters: Optional[dict[str, ProgressSnapshot]] = None
		self._deficit: Optional[int] = None

	@staticmethod
	def deficit_of(counters: dict[str, ProgressSnapshot], device_class: DeviceClass) -> int:
		"""Sum of deficits of the counters that apply to a device class."""
		return sum(
			counters[name].deficit
			for name in COUNTERS_BY_DEVICE[device_class]
			if name in counters
		)

	@property
	def has_data(self) -> bool:
		return self._counters is not None

	async def refresh(self) -> list[ProgressSnapshot]:
		"""
		Fetch counters and update the tracked deficit.

		Returns:
			Snapshots for the active device class, in counter order

		Raises:
			ProgressUnavailable: Source failed and nothing has been cached yet
		"""
		try:
			counters = await asyncio.wait_for(self.source.fetch_counters(), timeout=self.timeout)
		except Exception as e:
			if self._counters is None:
				raise ProgressUnavailable(f"Progress source unavailable: {e}") from e
			logger.warning(f"Progress source unavailable, using cached snapshot: {e}")
			self.stale = True
			return self.snapshots()

		self.stale = False
		self._counters = counters
		reported = self.deficit_of(counters, self.device_class)

		if self._deficit is not None and reported > self._deficit:
			logger.warning(
				f"Progress source reported deficit {reported} above tracked {self._deficit}; "
				"treating as no change"
			)
		else:
			self._deficit = reported

		return self.snapshots()

	def snapshots(self) -> list[ProgressSnapshot]:
		if self._counters is None:
			return []
		return [
			self._counters[name]
			for name in COUNTERS_BY_DEVICE[self.device_class]
			if name in self._counters
		]

	def current_deficit(self, device_class: Optional[DeviceClass] = None) -> int:
		"""Tracked deficit; for another device class, computed from the cached counters."""
		if self._counters is None:
			raise ProgressUnavailable("No progress has been read yet")
		if device_class is None or device_class == self.device_class:
			return self._deficit
		return self.deficit_of(self._counters, device_class)

	def reported_deficit(self) -> int:
		"""Deficit exactly as last reported by the source, without the monotonic clamp."""
		if self._counters is None:
			raise ProgressUnavailable("No progress has been read yet")
		return self.deficit_of(self._counters, self.device_class)

	def rebase(self) -> int:
		"""Accept the reported deficit even if it is higher (retracts a transient zero)."""
		self._deficit = self.reported_deficit()
		return self._deficit
