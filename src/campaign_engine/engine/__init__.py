"""Engine module - planning, progress tracking, pacing, execution and orchestration."""

from .classifier import FailureClassifier
from .events import CampaignEvent, EventKind
from .executor import InteractionExecutor
from .orchestrator import CampaignOrchestrator
from .pacing import PacingController, PacingState, StallSignal
from .planner import QueryPlanner, allocate
from .progress import ProgressTracker

__all__ = [
	"CampaignOrchestrator",
	"CampaignEvent",
	"EventKind",
	"FailureClassifier",
	"InteractionExecutor",
	"PacingController",
	"PacingState",
	"StallSignal",
	"QueryPlanner",
	"ProgressTracker",
	"allocate",
]
