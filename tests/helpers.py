"""Shared fakes for campaign-engine tests."""

from typing import Any, Optional

from campaign_engine.config import Config
from campaign_engine.engine import CampaignOrchestrator, QueryPlanner
from campaign_engine.models import DeviceClass, ProgressSnapshot, Query
from campaign_engine.progress_source import MOBILE, PRIMARY
from campaign_engine.sources.base import StaticSource

SUBMIT_SELECTOR = "#search_icon"


class FakeClock:
	"""Monotonic clock advanced only by the fake sleep."""

	def __init__(self, start: float = 0.0):
		self.now = start
		self.sleeps: list[float] = []

	def __call__(self) -> float:
		return self.now

	async def sleep(self, seconds: float) -> None:
		self.sleeps.append(seconds)
		self.now += seconds


class FakeProgressSource:
	"""
	In-memory counters for one device class.

	``fail_fetches`` and ``overrides`` are keyed by 1-based fetch number:
	a failing fetch raises, an override reports that deficit instead of
	the real one.
	"""

	def __init__(self, deficit: int, device_class: DeviceClass = DeviceClass.DESKTOP, total: Optional[int] = None):
		self.device_class = device_class
		self.max = total if total is not None else deficit
		self.earned = self.max - deficit
		self.fetches = 0
		self.fail_fetches: set[int] = set()
		self.overrides: dict[int, int] = {}

	@property
	def deficit(self) -> int:
		return self.max - self.earned

	def gain(self, points: int) -> None:
		self.earned = min(self.earned + points, self.max)

	async def fetch_counters(self) -> dict[str, ProgressSnapshot]:
		self.fetches += 1
		if self.fetches in self.fail_fetches:
			raise ConnectionError("progress endpoint unreachable")
		earned = self.earned
		if self.fetches in self.overrides:
			earned = self.max - self.overrides[self.fetches]
		name = MOBILE if self.device_class == DeviceClass.MOBILE else PRIMARY
		return {name: ProgressSnapshot(earned=earned, max=self.max)}


class FakeDriver:
	"""Records calls; submitting a query applies the next scripted point delta."""

	def __init__(self, progress: Optional[FakeProgressSource] = None, deltas: list[int] | None = None):
		self.progress = progress
		self.deltas = list(deltas or [])
		self.calls: list[str] = []
		self.submitted: list[str] = []
		self.closed = False
		self._failures: dict[str, list[Optional[BaseException]]] = {}
		self._typed = ""

	def fail(self, method: str, error: BaseException, times: int = 1, after: int = 0) -> None:
		"""Raise ``error`` on the next ``times`` calls of ``method``, after ``after`` successful ones."""
		self._failures.setdefault(method, []).extend([None] * after + [error] * times)

	def _call(self, method: str) -> None:
		self.calls.append(method)
		queue = self._failures.get(method)
		if queue:
			error = queue.pop(0)
			if error is not None:
				raise error

	async def navigate(self, url: str) -> None:
		self._call("navigate")

	async def type(self, selector: str, text: str) -> None:
		self._call("type")
		self._typed = text

	async def click(self, selector: str) -> None:
		self._call("click")
		if selector == SUBMIT_SELECTOR:
			self.submitted.append(self._typed)
			delta = self.deltas.pop(0) if self.deltas else 0
			if self.progress is not None and delta:
				self.progress.gain(delta)

	async def wait_for(self, selector: str, timeout: float) -> None:
		self._call("wait_for")

	async def evaluate(self, expression: str) -> Any:
		self._call("evaluate")
		return None

	async def latest_surface(self) -> None:
		self._call("latest_surface")

	async def new_surface(self) -> None:
		self._call("new_surface")
		self.closed = False

	async def reload(self) -> None:
		self._call("reload")

	def is_closed(self) -> bool:
		return self.closed


def fast_config(**overrides) -> Config:
	"""Config with short delays and a generous wall-clock budget."""
	settings = {
		"mobile_delay": (1.0, 2.0),
		"desktop_delay": (1.0, 2.0),
		"wall_clock_budget": 100_000.0,
	}
	settings.update(overrides)
	return Config(**settings)


def static_queries(prefix: str, count: int) -> list[Query]:
	return [Query(f"{prefix} {i}") for i in range(count)]


def make_orchestrator(
	progress: FakeProgressSource,
	driver: FakeDriver,
	queries: list[Query],
	config: Optional[Config] = None,
	supplementary: Optional[list[Query]] = None,
	events: Optional[list] = None,
	clock: Optional[FakeClock] = None,
) -> CampaignOrchestrator:
	"""Orchestrator over fakes with a seeded planner."""
	config = config or fast_config()
	clock = clock or FakeClock()
	planner = QueryPlanner(
		plan_size=len(queries) or 1,
		seed=7,
		supplementary=[StaticSource(supplementary, name="supplementary")] if supplementary else None,
	)

	async def on_event(event):
		if events is not None:
			events.append(event)

	return CampaignOrchestrator(
		driver=driver,
		progress_source=progress,
		device_class=progress.device_class,
		sources=[StaticSource(queries, name="primary")],
		config=config,
		planner=planner,
		on_event=on_event,
		sleep=clock.sleep,
		clock=clock,
	)
