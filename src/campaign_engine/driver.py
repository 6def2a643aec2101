"""
Driver capability and its Playwright implementation.

The engine only talks to the ``Driver`` protocol. ``PlaywrightDriver``
adapts a Playwright ``BrowserContext``: the "surface" is the page
operations are currently directed at.
"""

import logging
from typing import Any, Optional, Protocol, runtime_checkable

from playwright.async_api import BrowserContext, Error as PlaywrightError, Page

from .errors import SessionClosed, SurfaceCrashed

logger = logging.getLogger(__name__)


@runtime_checkable
class Driver(Protocol):
	"""Opaque interaction capability supplied by the caller."""

	async def navigate(self, url: str) -> None: ...

	async def type(self, selector: str, text: str) -> None: ...

	async def click(self, selector: str) -> None: ...

	async def wait_for(self, selector: str, timeout: float) -> None: ...

	async def evaluate(self, expression: str) -> Any: ...

	async def latest_surface(self) -> None: ...

	async def new_surface(self) -> None: ...

	async def reload(self) -> None: ...

	def is_closed(self) -> bool: ...


class PlaywrightDriver:
	"""Driver over a Playwright browser context."""

	def __init__(self, context: BrowserContext, page: Optional[Page] = None):
		self.context = context
		self._page = page

	@property
	def page(self) -> Page:
		if self._page is None or self._page.is_closed():
			pages = [p for p in self.context.pages if not p.is_closed()]
			if not pages:
				raise SurfaceCrashed("No open page in browser context")
			self._page = pages[-1]
		return self._page

	async def navigate(self, url: str) -> None:
		await self.page.goto(url, wait_until="domcontentloaded")

	async def type(self, selector: str, text: str) -> None:
		await self.page.fill(selector, text)

	async def click(self, selector: str) -> None:
		await self.page.click(selector)

	async def wait_for(self, selector: str, timeout: float) -> None:
		await self.page.wait_for_selector(selector, state="visible", timeout=timeout * 1000)

	async def evaluate(self, expression: str) -> Any:
		return await self.page.evaluate(expression)

	async def latest_surface(self) -> None:
		"""Point at the most recently opened tab (searches may open new ones)."""
		pages = [p for p in self.context.pages if not p.is_closed()]
		if not pages:
			raise SurfaceCrashed("No open page in browser context")
		self._page = pages[-1]

	async def new_surface(self) -> None:
		try:
			self._page = await self.context.new_page()
		except PlaywrightError as e:
			raise SessionClosed(f"Cannot open a new page: {e}") from e
		logger.info("Opened fresh page")

	async def reload(self) -> None:
		await self.page.reload(wait_until="domcontentloaded")

	def is_closed(self) -> bool:
		browser = self.context.browser
		if browser is not None and not browser.is_connected():
			return True
		return all(p.is_closed() for p in self.context.pages)
