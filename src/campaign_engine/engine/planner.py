"""
Query Planner - Builds the de-duplicated, shuffled query sequence.

Sources are asked in order for their share of the plan. A source that
fails or comes up short hands the unfilled share to the next source;
whatever is still unfilled after the last source is topped up from the
surplus of earlier ones. The result is de-duplicated by exact text and
shuffled once.
"""

import logging
import random
from typing import Iterable, Optional

from ..models import Query
from ..sources.base import WeightedSource

logger = logging.getLogger(__name__)


def allocate(weights: list[float], size: int) -> list[int]:
	"""
	Split ``size`` slots across weights using largest remainders.

	Returns:
		Slot counts per weight, summing to ``size`` (or all zero when every
		weight is zero).
	"""
	total = sum(weights)
	if total <= 0 or size <= 0:
		return [0] * len(weights)

	exact = [w / total * size for w in weights]
	counts = [int(x) for x in exact]
	remaining = size - sum(counts)
	by_remainder = sorted(range(len(weights)), key=lambda i: exact[i] - counts[i], reverse=True)
	for i in by_remainder[:remaining]:
		counts[i] += 1
	return counts


class QueryPlanner:
	"""
	Plans queries from weighted sources.

	The planner never touches campaign state; it only reads sources.
	Shuffling uses the planner's own ``random.Random`` so a fixed seed
	reproduces the same plan.
	"""

	def __init__(
		self,
		plan_size: int = 40,
		seed: Optional[int] = None,
		supplementary: Optional[list[WeightedSource]] = None,
		supplement_size: Optional[int] = None,
	):
		self.plan_size = plan_size
		self.rng = random.Random(seed)
		self.supplementary = supplementary or []
		self.supplement_size = supplement_size or plan_size

	@staticmethod
	def _take(items: list[Query], limit: int, seen: set[str]) -> tuple[list[Query], list[Query]]:
		"""Take up to ``limit`` unseen queries; return (taken, unused surplus)."""
		taken: list[Query] = []
		surplus: list[Query] = []
		for query in items:
			if not query.text or query.text in seen:
				continue
			if len(taken) < limit:
				seen.add(query.text)
				taken.append(query)
			else:
				surplus.append(query)
		return taken, surplus

	async def plan(
		self,
		sources: list[WeightedSource],
		size: Optional[int] = None,
		exclude: Iterable[str] = (),
	) -> list[Query]:
		"""
		Build a plan from sources.

		Args:
			sources: Ordered weighted sources; order defines the fallback chain
			size: Target number of queries (default: plan_size)
			exclude: Query texts that must not appear (already consumed)

		Returns:
			De-duplicated, shuffled queries. May be shorter than ``size``
			when sources cannot supply enough.
		"""
		size = self.plan_size if size is None else size
		quotas = allocate([s.weight for s in sources], size)
		seen = set(exclude)
		picked: list[Query] = []
		surplus: list[list[Query]] = []
		carry = 0

		for source, quota in zip(sources, quotas):
			target = quota + carry
			try:
				items = await source.fetch()
			except Exception as e:
				logger.warning(f"Query source '{source.name}' failed, passing {target} slots on: {e}")
				carry = target
				continue

			taken, rest = self._take(items, target, seen)
			picked.extend(taken)
			surplus.append(rest)
			carry = target - len(taken)
			logger.debug(f"Source '{source.name}' supplied {len(taken)}/{target}")

		if carry > 0:
			for rest in surplus:
				if carry <= 0:
					break
				extra, _ = self._take(rest, carry, seen)
				picked.extend(extra)
				carry -= len(extra)

		if carry > 0:
			logger.warning(f"Plan short by {carry} queries ({len(picked)}/{size})")

		self.rng.shuffle(picked)
		logger.info(f"Planned {len(picked)} queries from {len(sources)} sources")
		return picked

	async def supplement(self, exclude: Iterable[str], seeds: Iterable[str] = ()) -> list[Query]:
		"""Draw a fresh batch from the supplementary tier, skipping consumed texts."""
		if not self.supplementary:
			return []
		seed_list = list(seeds)
		for source in self.supplementary:
			source.seed(seed_list)
		return await self.plan(self.supplementary, size=self.supplement_size, exclude=exclude)
