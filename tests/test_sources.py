"""Tests for weighted query sources."""

import json
import random
from datetime import date

import pytest

from campaign_engine.errors import SourceError
from campaign_engine.models import Query
from campaign_engine.sources import (
	AdditionalQueriesSource,
	CommonSource,
	NewsSource,
	RelatedTermsSource,
	TechEntertainmentSource,
	TrendsSource,
	default_sources,
	extract_trends,
	language_for_country,
	supplementary_sources,
)
from campaign_engine.sources.locale import ENGLISH, JAPANESE


def trends_body(*entries) -> str:
	payload = json.dumps([None, list(entries)])
	return ")]}'\n\n" + json.dumps([["wrb.fr", "i0OFE", payload, None, None, None, "generic"]]) + "\n"


def trend(topic: str, related: list[str]) -> list:
	return [topic, None, None, None, None, None, None, None, None, related]


class TestExtractTrends:
	def test_topics_and_follow_ups(self):
		body = trends_body(
			trend("storm", ["storm", "storm path", "storm warning"]),
			trend("election", ["election"]),
		)

		queries = extract_trends(body)

		assert queries == [
			Query("storm", ("storm path", "storm warning")),
			Query("election", ()),
		]

	def test_short_entry_has_no_follow_ups(self):
		queries = extract_trends(trends_body(["solar eclipse"]))
		assert queries == [Query("solar eclipse")]

	def test_garbage(self):
		assert extract_trends("not json\n[1, 2]\n") == []


class TestTrendsSource:
	@pytest.mark.asyncio
	async def test_falls_back_when_too_few(self, monkeypatch):
		source = TrendsSource("US", min_trends=3)
		asked = []

		async def fake_fetch(session, locale):
			asked.append(locale)
			if locale == "US":
				return [Query("one")]
			return [Query("a"), Query("b"), Query("c")]

		monkeypatch.setattr(source, "_fetch_locale", fake_fetch)
		queries = await source.fetch()

		assert asked == ["US", "JP"]
		assert [q.text for q in queries] == ["a", "b", "c"]

	@pytest.mark.asyncio
	async def test_keeps_primary_when_fallback_is_shorter(self, monkeypatch):
		source = TrendsSource("US", min_trends=5)

		async def fake_fetch(session, locale):
			if locale == "US":
				return [Query("a"), Query("b")]
			return [Query("z")]

		monkeypatch.setattr(source, "_fetch_locale", fake_fetch)
		queries = await source.fetch()

		assert [q.text for q in queries] == ["a", "b"]

	@pytest.mark.asyncio
	async def test_keeps_primary_when_fallback_fails(self, monkeypatch):
		source = TrendsSource("US", min_trends=5)

		async def fake_fetch(session, locale):
			if locale == "US":
				return [Query("a")]
			raise SourceError("Trends endpoint returned HTTP 500 for JP")

		monkeypatch.setattr(source, "_fetch_locale", fake_fetch)
		queries = await source.fetch()

		assert [q.text for q in queries] == ["a"]

	@pytest.mark.asyncio
	async def test_empty_raises(self, monkeypatch):
		source = TrendsSource("JP", fallback_locale="JP")

		async def fake_fetch(session, locale):
			return []

		monkeypatch.setattr(source, "_fetch_locale", fake_fetch)
		with pytest.raises(SourceError):
			await source.fetch()


class TestBankSources:
	@pytest.mark.asyncio
	async def test_news_includes_date_queries(self):
		source = NewsSource(ENGLISH, weight=25, rng=random.Random(1), today=lambda: date(2024, 3, 9))
		texts = {q.text for q in await source.fetch()}
		assert "2024 news today" in texts
		assert "March 2024 events" in texts
		assert "today's headlines" in texts

	@pytest.mark.asyncio
	async def test_common_includes_food(self):
		texts = {q.text for q in await CommonSource(ENGLISH, weight=20).fetch()}
		assert "healthy recipes" in texts
		assert "fitness tips" in texts

	@pytest.mark.asyncio
	async def test_tech_entertainment_round_robin(self):
		source = TechEntertainmentSource(ENGLISH, weight=15, rng=random.Random(1))
		queries = await source.fetch()
		first_three = {q.text for q in queries[:3]}
		assert first_three & set(ENGLISH.tech)
		assert first_three & set(ENGLISH.entertainment)
		assert first_three & set(ENGLISH.sports)

	@pytest.mark.asyncio
	async def test_additional_word_order(self):
		english = AdditionalQueriesSource(ENGLISH, combinations=5, rng=random.Random(2))
		japanese = AdditionalQueriesSource(JAPANESE, combinations=5, rng=random.Random(2))

		en_combos = [q.text for q in await english.fetch() if q.text.split(" ")[-1] in ENGLISH.subjects]
		ja_combos = [q.text for q in await japanese.fetch() if q.text.split(" ")[0] in JAPANESE.subjects]

		assert en_combos
		assert ja_combos


class TestRelatedTerms:
	@pytest.mark.asyncio
	async def test_expands_each_topic_once(self, monkeypatch):
		source = RelatedTermsSource(weight=60)

		async def fake_suggestions(session, term):
			return [term, f"{term} news", f"{term} today", f"{term} live"]

		monkeypatch.setattr(source, "_suggestions", fake_suggestions)
		source.seed(["storm", "eclipse"])
		first = await source.fetch()
		source.seed(["storm"])
		second = await source.fetch()

		assert [q.text for q in first] == ["storm news", "storm today", "eclipse news", "eclipse today"]
		assert second == []

	@pytest.mark.asyncio
	async def test_too_few_suggestions_skipped(self, monkeypatch):
		source = RelatedTermsSource(weight=60)

		async def fake_suggestions(session, term):
			return [term, f"{term} news"]

		monkeypatch.setattr(source, "_suggestions", fake_suggestions)
		source.seed(["storm"])
		assert await source.fetch() == []


class TestLocale:
	def test_country_resolution(self):
		assert language_for_country("jp") is JAPANESE
		assert language_for_country("GB") is ENGLISH

	def test_unbanked_language_falls_back_to_english(self):
		assert language_for_country("DE") is ENGLISH
		assert language_for_country("ZZ") is ENGLISH

	def test_default_mix(self):
		sources = default_sources("US")
		assert [s.weight for s in sources] == [40, 25, 20, 15]
		assert [s.name for s in sources] == ["trends", "news", "common", "tech_entertainment"]
		assert [s.name for s in supplementary_sources("US")] == ["related", "additional"]
