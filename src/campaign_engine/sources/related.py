"""Related terms for planned topics, from the autosuggest endpoint."""

import logging
from urllib.parse import quote

import aiohttp

from ..models import Query
from .base import WeightedSource

logger = logging.getLogger(__name__)

SUGGEST_URL = "https://api.bing.com/osjson.aspx?query={term}"


class RelatedTermsSource(WeightedSource):
	"""
	Expands topics that were already planned into related searches.

	Only topics with more than ``min_suggestions`` suggestions are used,
	and only the suggestions at positions 1..``per_topic`` (position 0
	echoes the topic itself). Each topic is expanded at most once per
	campaign.
	"""

	name = "related"

	def __init__(
		self,
		weight: float = 1.0,
		max_topics: int = 10,
		per_topic: int = 2,
		min_suggestions: int = 3,
		timeout: float = 10.0,
	):
		super().__init__(weight)
		self.max_topics = max_topics
		self.per_topic = per_topic
		self.min_suggestions = min_suggestions
		self.timeout = timeout
		self._pending: list[str] = []
		self._expanded: set[str] = set()

	def seed(self, topics: list[str]) -> None:
		for topic in topics:
			if topic not in self._expanded and topic not in self._pending:
				self._pending.append(topic)

	async def _suggestions(self, session: aiohttp.ClientSession, term: str) -> list[str]:
		try:
			async with session.get(SUGGEST_URL.format(term=quote(term))) as response:
				payload = await response.json(content_type=None)
			return [str(s) for s in payload[1]]
		except (aiohttp.ClientError, TimeoutError, ValueError, IndexError, TypeError) as e:
			logger.warning(f"Related terms lookup failed for '{term}': {e}")
			return []

	async def fetch(self) -> list[Query]:
		topics = self._pending[:self.max_topics]
		self._pending = self._pending[self.max_topics:]

		queries: list[Query] = []
		async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
			for topic in topics:
				self._expanded.add(topic)
				suggestions = await self._suggestions(session, topic)
				if len(suggestions) > self.min_suggestions:
					queries.extend(Query(term) for term in suggestions[1:1 + self.per_topic])
		return queries
