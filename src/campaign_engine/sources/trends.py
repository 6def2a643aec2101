"""
Trending topics from the Google Trends batch endpoint.

Each trend becomes a Query whose follow-ups are the related searches the
endpoint lists for it. Locales that return too few trends fall back to
the configured fallback locale.
"""

import json
import logging
from typing import Optional

import aiohttp

from ..errors import SourceError
from ..models import Query
from .base import WeightedSource

logger = logging.getLogger(__name__)

TRENDS_URL = "https://trends.google.com/_/TrendsUi/data/batchexecute"
MIN_TRENDS = 90


def extract_trends(text: str) -> list[Query]:
	"""
	Parse a batchexecute response body into queries.

	The body is a sequence of lines; the first JSON array line whose
	``[0][2]`` element decodes to a payload holds the trends at index 1.
	Each trend entry carries its topic at index 0 and its related searches
	at index 9 (the first of which repeats the topic).
	"""
	for line in text.split("\n"):
		trimmed = line.strip()
		if not (trimmed.startswith("[") and trimmed.endswith("]")):
			continue
		try:
			entries = json.loads(json.loads(trimmed)[0][2])[1]
		except (json.JSONDecodeError, IndexError, KeyError, TypeError):
			continue

		queries = []
		for entry in entries:
			related = entry[9] if len(entry) > 9 and entry[9] else []
			queries.append(Query(str(entry[0]), tuple(str(r) for r in related[1:])))
		return queries

	return []


class TrendsSource(WeightedSource):
	"""Trending searches for a geo locale."""

	name = "trends"

	def __init__(
		self,
		locale: str,
		weight: float = 40,
		fallback_locale: Optional[str] = "JP",
		timeout: float = 20.0,
		min_trends: int = MIN_TRENDS,
	):
		super().__init__(weight)
		self.locale = locale.upper()
		self.fallback_locale = fallback_locale.upper() if fallback_locale else None
		self.timeout = timeout
		self.min_trends = min_trends

	async def _fetch_locale(self, session: aiohttp.ClientSession, locale: str) -> list[Query]:
		body = f'f.req=[[[i0OFE,"[null, null, \\"{locale}\\", 0, null, 48]"]]]'
		async with session.post(
			TRENDS_URL,
			data=body,
			headers={"Content-Type": "application/x-www-form-urlencoded;charset=UTF-8"},
		) as response:
			if response.status != 200:
				raise SourceError(f"Trends endpoint returned HTTP {response.status} for {locale}")
			text = await response.text()
		return extract_trends(text)

	async def fetch(self) -> list[Query]:
		logger.info(f"Fetching trends for locale {self.locale}")
		async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
			queries = await self._fetch_locale(session, self.locale)
			if len(queries) < self.min_trends and self.fallback_locale and self.fallback_locale != self.locale:
				logger.warning(
					f"Only {len(queries)} trends for {self.locale}, falling back to {self.fallback_locale}"
				)
				try:
					fallback = await self._fetch_locale(session, self.fallback_locale)
				except (aiohttp.ClientError, TimeoutError, SourceError) as e:
					logger.warning(f"Fallback trends for {self.fallback_locale} failed, keeping {self.locale}: {e}")
					fallback = []
				if len(fallback) > len(queries):
					queries = fallback

		if not queries:
			raise SourceError(f"No trends parsed for locale {self.locale}")
		return queries
