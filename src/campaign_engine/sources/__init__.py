"""Weighted query sources."""

import random
from typing import Optional

from .base import StaticSource, WeightedSource
from .locale import LanguageConfig, language_for_country
from .related import RelatedTermsSource
from .topics import AdditionalQueriesSource, CommonSource, NewsSource, TechEntertainmentSource
from .trends import TrendsSource, extract_trends

__all__ = [
	"WeightedSource",
	"StaticSource",
	"TrendsSource",
	"NewsSource",
	"CommonSource",
	"TechEntertainmentSource",
	"AdditionalQueriesSource",
	"RelatedTermsSource",
	"LanguageConfig",
	"language_for_country",
	"extract_trends",
	"default_sources",
	"supplementary_sources",
]


def default_sources(
	locale: str,
	fallback_locale: Optional[str] = "JP",
	rng: Optional[random.Random] = None,
) -> list[WeightedSource]:
	"""The primary mix: 40% trends, 25% news, 20% common, 15% tech/entertainment.

	Order matters: a failing source hands its share to the next one.
	"""
	language = language_for_country(locale)
	return [
		TrendsSource(locale, weight=40, fallback_locale=fallback_locale),
		NewsSource(language, weight=25, rng=rng),
		CommonSource(language, weight=20, rng=rng),
		TechEntertainmentSource(language, weight=15, rng=rng),
	]


def supplementary_sources(locale: str, rng: Optional[random.Random] = None) -> list[WeightedSource]:
	"""Tier drawn from once the primary plan is exhausted."""
	language = language_for_country(locale)
	return [
		RelatedTermsSource(weight=60),
		AdditionalQueriesSource(language, weight=40, rng=rng),
	]
