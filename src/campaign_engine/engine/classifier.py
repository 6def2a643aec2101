"""
Failure Classifier - maps raw driver errors onto recovery categories.

Engine exception types are mapped directly. Anything else (Playwright
errors, asyncio timeouts, plain exceptions from custom drivers) is
classified from its type and message text.
"""

import asyncio
import logging

from ..errors import (
	ElementNotReady,
	FailureCategory,
	ProgressUnavailable,
	RateLimited,
	SessionClosed,
	SurfaceCrashed,
)

logger = logging.getLogger(__name__)


class FailureClassifier:
	"""Resolve an exception to a FailureCategory."""

	TYPE_MAP = (
		(SessionClosed, FailureCategory.FATAL),
		(SurfaceCrashed, FailureCategory.SESSION_CRASHED),
		(RateLimited, FailureCategory.RATE_LIMITED),
		(ProgressUnavailable, FailureCategory.UNVERIFIABLE),
		(ElementNotReady, FailureCategory.TRANSIENT_UI),
	)

	# Checked in order; the first matching phrase wins
	FATAL_PATTERNS = (
		"target page, context or browser has been closed",
		"browser has been closed",
		"browser closed",
		"connection closed",
		"context has been closed",
	)
	CRASH_PATTERNS = (
		"target crashed",
		"page crashed",
		"page has been closed",
		"target closed",
		"protocol error",
		"out of memory",
	)
	RATE_LIMIT_PATTERNS = (
		"rate limit",
		"too many requests",
		"429",
	)
	UNVERIFIABLE_PATTERNS = (
		"getsearchpoints",
		"progress",
		"counters",
	)

	def classify(self, error: BaseException) -> FailureCategory:
		for exc_type, category in self.TYPE_MAP:
			if isinstance(error, exc_type):
				return category

		message = str(error).lower()

		if any(p in message for p in self.FATAL_PATTERNS):
			return FailureCategory.FATAL
		if any(p in message for p in self.CRASH_PATTERNS):
			return FailureCategory.SESSION_CRASHED
		if any(p in message for p in self.RATE_LIMIT_PATTERNS):
			return FailureCategory.RATE_LIMITED
		if isinstance(error, (asyncio.TimeoutError, TimeoutError)) and any(
			p in message for p in self.UNVERIFIABLE_PATTERNS
		):
			return FailureCategory.UNVERIFIABLE

		# Element not found / not focused / selector timeouts
		return FailureCategory.TRANSIENT_UI
