"""
Progress sources: where quota counters come from.

``HttpProgressSource`` reads a counters document over HTTP with aiohttp.
The document carries ``pcSearch`` (primary, secondary browser) and
``mobileSearch`` lists of ``{pointProgress, pointProgressMax}`` entries,
either at the top level or nested under a dotted path.
"""

import logging
from typing import Any, Optional, Protocol

import aiohttp

from .errors import ProgressUnavailable
from .models import ProgressSnapshot

logger = logging.getLogger(__name__)

MOBILE = "mobile"
PRIMARY = "primary"
SECONDARY = "secondary"


class ProgressSource(Protocol):
	"""Anything that can report the current counters."""

	async def fetch_counters(self) -> dict[str, ProgressSnapshot]: ...


def _snapshot(entry: Optional[dict]) -> Optional[ProgressSnapshot]:
	if not entry:
		return None
	return ProgressSnapshot(
		earned=int(entry.get("pointProgress", 0)),
		max=int(entry.get("pointProgressMax", 0)),
	)


def parse_counters(payload: dict, path: str = "") -> dict[str, ProgressSnapshot]:
	"""
	Map a counters document onto tracked counter names.

	Args:
		payload: Decoded JSON document
		path: Dotted path to the counters object (e.g. "dashboard.userStatus.counters")

	Returns:
		Dict with any of "mobile", "primary", "secondary" present in the document
	"""
	counters: Any = payload
	for key in filter(None, path.split(".")):
		if not isinstance(counters, dict) or key not in counters:
			raise ProgressUnavailable(f"Counters path '{path}' not found at '{key}'")
		counters = counters[key]

	pc = counters.get("pcSearch") or []
	mobile = counters.get("mobileSearch") or []

	result: dict[str, ProgressSnapshot] = {}
	for name, entry in (
		(PRIMARY, pc[0] if len(pc) > 0 else None),
		(SECONDARY, pc[1] if len(pc) > 1 else None),
		(MOBILE, mobile[0] if mobile else None),
	):
		snapshot = _snapshot(entry)
		if snapshot is not None:
			result[name] = snapshot
	return result


class HttpProgressSource:
	"""Fetch counters from a JSON endpoint."""

	def __init__(
		self,
		url: str,
		counters_path: str = "",
		headers: Optional[dict[str, str]] = None,
		cookies: Optional[dict[str, str]] = None,
		timeout: float = 20.0,
	):
		self.url = url
		self.counters_path = counters_path
		self.headers = headers or {}
		self.cookies = cookies or {}
		self.timeout = timeout

	async def fetch_counters(self) -> dict[str, ProgressSnapshot]:
		async with aiohttp.ClientSession(
			timeout=aiohttp.ClientTimeout(total=self.timeout),
			headers=self.headers,
			cookies=self.cookies,
		) as session:
			async with session.get(self.url) as response:
				if response.status != 200:
					raise ProgressUnavailable(f"Progress endpoint returned HTTP {response.status}")
				payload = await response.json(content_type=None)

		counters = parse_counters(payload, self.counters_path)
		logger.debug(f"Fetched counters: {counters}")
		return counters
