"""Tests for the progress tracker."""

import asyncio

import pytest

from campaign_engine.engine import ProgressTracker
from campaign_engine.errors import ProgressUnavailable
from campaign_engine.models import DeviceClass, ProgressSnapshot
from campaign_engine.progress_source import MOBILE, PRIMARY, SECONDARY

from .helpers import FakeProgressSource


class ScriptedSource:
	"""Returns a fixed sequence of counter documents."""

	def __init__(self, *documents):
		self.documents = list(documents)

	async def fetch_counters(self):
		document = self.documents.pop(0)
		if isinstance(document, Exception):
			raise document
		return document


def desktop(primary: int, secondary: int = 0, max_primary: int = 150, max_secondary: int = 0):
	return {
		PRIMARY: ProgressSnapshot(earned=primary, max=max_primary),
		SECONDARY: ProgressSnapshot(earned=secondary, max=max_secondary),
		MOBILE: ProgressSnapshot(earned=0, max=100),
	}


class TestRefresh:
	@pytest.mark.asyncio
	async def test_deficit_sums_device_counters(self):
		source = ScriptedSource(desktop(100, 10, max_secondary=30))
		tracker = ProgressTracker(source, DeviceClass.DESKTOP)

		snapshots = await tracker.refresh()

		assert len(snapshots) == 2
		assert tracker.current_deficit() == 50 + 20
		assert tracker.current_deficit(DeviceClass.MOBILE) == 100

	@pytest.mark.asyncio
	async def test_deficit_never_rises(self):
		"""A higher reported deficit is treated as no change."""
		source = ScriptedSource(desktop(100), desktop(80))
		tracker = ProgressTracker(source, DeviceClass.DESKTOP)

		await tracker.refresh()
		await tracker.refresh()

		assert tracker.current_deficit() == 50
		assert tracker.reported_deficit() == 70

	@pytest.mark.asyncio
	async def test_rebase_accepts_reported_deficit(self):
		source = ScriptedSource(desktop(150), desktop(140))
		tracker = ProgressTracker(source, DeviceClass.DESKTOP)
		await tracker.refresh()
		await tracker.refresh()

		assert tracker.current_deficit() == 0
		assert tracker.rebase() == 10
		assert tracker.current_deficit() == 10

	@pytest.mark.asyncio
	async def test_refresh_is_idempotent(self):
		progress = FakeProgressSource(deficit=40)
		tracker = ProgressTracker(progress, DeviceClass.DESKTOP)

		await tracker.refresh()
		first = tracker.current_deficit()
		await tracker.refresh()

		assert tracker.current_deficit() == first == 40

	@pytest.mark.asyncio
	async def test_earned_above_max_clamps_to_zero(self):
		source = ScriptedSource(desktop(200))
		tracker = ProgressTracker(source, DeviceClass.DESKTOP)

		await tracker.refresh()

		assert tracker.current_deficit() == 0


class TestUnavailable:
	@pytest.mark.asyncio
	async def test_first_read_failure_raises(self):
		source = ScriptedSource(ConnectionError("refused"))
		tracker = ProgressTracker(source, DeviceClass.DESKTOP)

		with pytest.raises(ProgressUnavailable):
			await tracker.refresh()
		assert tracker.has_data is False

	@pytest.mark.asyncio
	async def test_failure_serves_cached_snapshot(self):
		"""After one good read, failures fall back to the cache and mark it stale."""
		source = ScriptedSource(desktop(120), ConnectionError("refused"), desktop(130))
		tracker = ProgressTracker(source, DeviceClass.DESKTOP)

		await tracker.refresh()
		snapshots = await tracker.refresh()
		assert tracker.stale is True
		assert snapshots[0].earned == 120
		assert tracker.current_deficit() == 30

		await tracker.refresh()
		assert tracker.stale is False
		assert tracker.current_deficit() == 20

	@pytest.mark.asyncio
	async def test_slow_source_times_out(self):
		class SlowSource:
			async def fetch_counters(self):
				await asyncio.sleep(10)

		tracker = ProgressTracker(SlowSource(), DeviceClass.MOBILE, timeout=0.01)

		with pytest.raises(ProgressUnavailable):
			await tracker.refresh()

	def test_deficit_before_read_raises(self):
		tracker = ProgressTracker(FakeProgressSource(deficit=5), DeviceClass.DESKTOP)
		with pytest.raises(ProgressUnavailable):
			tracker.current_deficit()
