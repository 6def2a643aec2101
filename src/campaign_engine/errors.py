"""Exception hierarchy and failure categories for the campaign engine."""

from enum import Enum


class FailureCategory(str, Enum):
	"""Recovery action a failed attempt maps to."""
	TRANSIENT_UI = "transient_ui"
	SESSION_CRASHED = "session_crashed"
	RATE_LIMITED = "rate_limited"
	UNVERIFIABLE = "unverifiable"
	FATAL = "fatal"


class CampaignEngineError(Exception):
	"""Base class for engine errors."""


class DriverError(CampaignEngineError):
	"""A Driver operation failed."""


class ElementNotReady(DriverError):
	"""Element missing, hidden or not focused."""


class SurfaceCrashed(DriverError):
	"""The current interaction surface (tab) crashed or closed."""


class SessionClosed(DriverError):
	"""The whole driver session is gone; nothing can be retried on it."""


class RateLimited(DriverError):
	"""The target refused the interaction because of request volume."""


class ProgressUnavailable(CampaignEngineError):
	"""The progress source could not be read and no cached snapshot exists."""


class SourceError(CampaignEngineError):
	"""A weighted query source failed to produce queries."""
