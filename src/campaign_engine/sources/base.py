"""Weighted query source base class."""

from ..models import Query


class WeightedSource:
	"""
	A source of queries with a target share of the planned mix.

	``weight`` is relative: the planner normalises weights across the
	sources it is given. Subclasses implement :meth:`fetch`; raising from
	it is allowed and only skips this source.
	"""

	name: str = "source"

	def __init__(self, weight: float):
		if weight < 0:
			raise ValueError(f"Source weight must be non-negative, got {weight}")
		self.weight = weight

	async def fetch(self) -> list[Query]:
		raise NotImplementedError

	def seed(self, topics: list[str]) -> None:
		"""Receive topics already planned; sources that expand topics override this."""

	def __repr__(self) -> str:
		return f"{type(self).__name__}(weight={self.weight})"


class StaticSource(WeightedSource):
	"""Fixed list of queries; useful for tests and hand-curated topics."""

	name = "static"

	def __init__(self, queries: list[Query | str], weight: float = 1.0, name: str = "static"):
		super().__init__(weight)
		self.name = name
		self.queries = [q if isinstance(q, Query) else Query(q) for q in queries]

	async def fetch(self) -> list[Query]:
		return list(self.queries)
