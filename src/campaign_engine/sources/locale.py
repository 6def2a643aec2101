"""Locale resolution and per-language query banks."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LanguageConfig:
	"""Query banks for one language."""
	code: str
	name: str
	trends_locale: str
	news: tuple[str, ...] = ()
	common: tuple[str, ...] = ()
	food: tuple[str, ...] = ()
	tech: tuple[str, ...] = ()
	entertainment: tuple[str, ...] = ()
	sports: tuple[str, ...] = ()
	subjects: tuple[str, ...] = ()
	modifiers: tuple[str, ...] = ()
	date_templates: tuple[str, ...] = ()


ENGLISH = LanguageConfig(
	code="en",
	name="English",
	trends_locale="US",
	news=(
		"today's headlines",
		"breaking news today",
		"latest technology news",
		"sports news today",
		"weather forecast today",
		"world news this week",
	),
	common=(
		"how to cook pasta",
		"travel destinations",
		"fitness tips",
		"home improvement ideas",
		"online learning",
		"productivity apps",
		"book recommendations",
		"gardening tips",
		"career advice",
		"language learning",
		"photography tips",
	),
	food=(
		"healthy recipes",
		"restaurant reviews",
		"easy dinner ideas",
		"baking tips",
	),
	tech=(
		"artificial intelligence future",
		"electric vehicles",
		"renewable energy trends",
		"smartphone reviews",
		"virtual reality gaming",
	),
	entertainment=(
		"new movies this month",
		"tv shows to watch",
		"music charts",
		"digital art techniques",
	),
	sports=(
		"football results",
		"basketball news",
		"sports highlights",
	),
	subjects=("technology", "movies", "music", "cooking", "travel", "health", "learning", "business", "sports", "fashion"),
	modifiers=("latest", "popular", "best", "ranking", "review", "comparison", "how to", "tips"),
	date_templates=(
		"{year} news today",
		"{month} {year} events",
		"current events {year}",
		"news updates {month}",
		"world news {year}",
	),
)

JAPANESE = LanguageConfig(
	code="ja",
	name="Japanese",
	trends_locale="JP",
	news=("最新ニュース", "速報ニュース", "世界のニュース", "今週のニュース", "注目の話題"),
	common=("料理の作り方", "おすすめレシピ", "旅行先", "健康習慣", "勉強方法"),
	food=("レストランレビュー", "料理のコツ", "ヘルシーレシピ"),
	tech=("人工知能", "最新技術", "スマートフォンレビュー"),
	entertainment=("新作映画", "テレビ番組", "音楽ランキング"),
	sports=("サッカー結果", "バスケットボールニュース", "スポーツハイライト"),
	subjects=("技術", "映画", "音楽", "料理", "旅行", "健康", "学習", "ビジネス", "スポーツ", "ファッション"),
	modifiers=("最新", "人気", "おすすめ", "ランキング", "レビュー", "比較", "方法", "コツ"),
	date_templates=(
		"{year}年{month_num}月のニュース",
		"{year}年の出来事",
		"今日は{month_num}月{day}日",
	),
)

LANGUAGES = {cfg.code: cfg for cfg in (ENGLISH, JAPANESE)}

COUNTRY_LANGUAGE = {
	"JP": "ja", "CN": "zh-CN", "KR": "ko", "VN": "vi",
	"US": "en", "GB": "en", "AU": "en", "CA": "en",
	"DE": "de", "FR": "fr", "ES": "es", "IT": "it",
	"BR": "pt-BR", "PT": "pt", "RU": "ru", "IN": "hi",
	"MX": "es", "AR": "es", "CL": "es", "CO": "es",
	"TH": "th", "ID": "id", "MY": "ms", "PH": "en",
	"TW": "zh-TW", "HK": "zh-HK", "SG": "en", "NZ": "en",
}


def language_for_country(country: str) -> LanguageConfig:
	"""Resolve a country code to the closest language with a query bank.

	Languages without a bank fall back to English.
	"""
	code = COUNTRY_LANGUAGE.get(country.upper(), "en")
	return LANGUAGES.get(code.split("-")[0], ENGLISH)
