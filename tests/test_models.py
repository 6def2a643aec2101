"""Tests for the campaign data model."""

import pytest

from campaign_engine.errors import SessionClosed
from campaign_engine.models import (
	AttemptOutcome,
	AttemptRecord,
	CampaignResult,
	CampaignStatus,
	DeviceClass,
	ProgressSnapshot,
	Query,
)


class TestQuery:
	def test_desktop_flattens_topic_first(self):
		query = Query("storm", ("storm path", "storm warning"))
		assert query.flatten(DeviceClass.DESKTOP) == ["storm", "storm path", "storm warning"]

	def test_mobile_drops_follow_ups(self):
		query = Query("storm", ("storm path",))
		assert query.flatten(DeviceClass.MOBILE) == ["storm"]


class TestSnapshot:
	def test_deficit(self):
		assert ProgressSnapshot(earned=30, max=90).deficit == 60

	def test_deficit_never_negative(self):
		assert ProgressSnapshot(earned=100, max=90).deficit == 0


class TestAttemptRecord:
	def test_zero_delta(self):
		assert AttemptRecord("q", 0, AttemptOutcome.NO_CHANGE).is_zero_delta is True
		assert AttemptRecord("q", 0, AttemptOutcome.FAILED).is_zero_delta is True
		assert AttemptRecord("q", 5, AttemptOutcome.GAINED).is_zero_delta is False


class TestCampaignResult:
	def test_to_dict(self):
		result = CampaignResult(
			earned_points=50,
			deficit_remaining=0,
			status=CampaignStatus.COMPLETED,
			elapsed_seconds=123.456,
		)
		data = result.to_dict()
		assert data["status"] == "completed"
		assert data["elapsed_seconds"] == 123.5
		assert result.succeeded is True

	def test_raise_for_fatal(self):
		error = SessionClosed("browser has been closed")
		result = CampaignResult(0, 10, CampaignStatus.ABORTED, error=error)
		with pytest.raises(SessionClosed):
			result.raise_for_fatal()

	def test_raise_for_fatal_noop_when_not_aborted(self):
		CampaignResult(0, 10, CampaignStatus.TIMED_OUT).raise_for_fatal()
