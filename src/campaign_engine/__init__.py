"""Quota-driven interaction campaign engine."""

from .config import Config, get_config, load_config
from .engine import CampaignEvent, CampaignOrchestrator, QueryPlanner
from .models import (
	AttemptOutcome,
	AttemptRecord,
	CampaignResult,
	CampaignState,
	CampaignStatus,
	DeviceClass,
	ProgressSnapshot,
	Query,
)

__all__ = [
	"Config",
	"get_config",
	"load_config",
	"CampaignOrchestrator",
	"CampaignEvent",
	"QueryPlanner",
	"AttemptOutcome",
	"AttemptRecord",
	"CampaignResult",
	"CampaignState",
	"CampaignStatus",
	"DeviceClass",
	"ProgressSnapshot",
	"Query",
]
