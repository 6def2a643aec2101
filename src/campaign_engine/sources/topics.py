"""
Locally generated query sources.

News, common, and tech/entertainment banks come from the active
language; the additional-queries source builds date-based and
subject/modifier combinations for the supplementary tier.
"""

import random
from datetime import date
from typing import Callable, Optional

from ..models import Query
from .base import WeightedSource
from .locale import LanguageConfig


def _date_queries(language: LanguageConfig, today: date) -> list[str]:
	values = {
		"year": today.year,
		"month": today.strftime("%B"),
		"month_num": today.month,
		"day": today.day,
	}
	return [template.format(**values) for template in language.date_templates]


class _BankSource(WeightedSource):
	"""Shuffles a bank of strings so quota truncation picks a random subset."""

	def __init__(
		self,
		language: LanguageConfig,
		weight: float,
		rng: Optional[random.Random] = None,
		today: Callable[[], date] = date.today,
	):
		super().__init__(weight)
		self.language = language
		self.rng = rng or random.Random()
		self.today = today

	def _bank(self) -> list[str]:
		raise NotImplementedError

	async def fetch(self) -> list[Query]:
		bank = self._bank()
		self.rng.shuffle(bank)
		return [Query(text) for text in bank]


class NewsSource(_BankSource):
	name = "news"

	def _bank(self) -> list[str]:
		return [*_date_queries(self.language, self.today()), *self.language.news]


class CommonSource(_BankSource):
	name = "common"

	def _bank(self) -> list[str]:
		return [*self.language.common, *self.language.food]


class TechEntertainmentSource(_BankSource):
	name = "tech_entertainment"

	async def fetch(self) -> list[Query]:
		# Round-robin across categories so a small quota still mixes them
		groups = [list(self.language.tech), list(self.language.entertainment), list(self.language.sports)]
		for group in groups:
			self.rng.shuffle(group)
		mixed: list[Query] = []
		while any(groups):
			for group in groups:
				if group:
					mixed.append(Query(group.pop(0)))
		return mixed


class AdditionalQueriesSource(_BankSource):
	"""Supplementary queries for when the primary plan runs dry."""

	name = "additional"

	def __init__(
		self,
		language: LanguageConfig,
		weight: float = 1.0,
		combinations: int = 10,
		rng: Optional[random.Random] = None,
		today: Callable[[], date] = date.today,
	):
		super().__init__(language, weight, rng=rng, today=today)
		self.combinations = combinations

	def _bank(self) -> list[str]:
		queries = _date_queries(self.language, self.today())
		if self.language.subjects and self.language.modifiers:
			for _ in range(self.combinations):
				subject = self.rng.choice(self.language.subjects)
				modifier = self.rng.choice(self.language.modifiers)
				if self.language.code == "ja":
					queries.append(f"{subject} {modifier}")
				else:
					queries.append(f"{modifier} {subject}")
		return queries
