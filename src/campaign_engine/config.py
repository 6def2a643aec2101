"""Configuration system using platformdirs for cross-platform paths."""

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

import platformdirs

from .models import DeviceClass

APP_NAME = "campaign-engine"
APP_AUTHOR = "campaign-engine"


@dataclass
class Config:
	"""Central configuration: platform paths plus every campaign threshold."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# Derived paths
	log_dir: Path = field(init=False)

	# Pacing (seconds)
	mobile_delay: tuple[float, float] = (60.0, 150.0)
	desktop_delay: tuple[float, float] = (45.0, 120.0)
	failure_multiplier_step: float = 0.5
	failure_multiplier_cap: float = 3.0
	adaptive_step_up: float = 0.2
	adaptive_step_down: float = 0.1
	adaptive_cap: float = 2.0

	# Stall handling
	stall_recheck_threshold: int = 3
	stall_extra_wait_threshold: int = 5
	stall_extra_wait: float = 30.0
	mobile_stall_limit: int = 10
	desktop_stall_limit: int = 15

	# Recovery
	max_recoveries: int = 3
	recovery_wait: float = 30.0
	extended_recovery_wait: float = 180.0

	# Budgets
	wall_clock_budget: float = 20 * 60.0
	max_local_retries: int = 5
	local_retry_wait: float = 4.0
	mobile_extra_attempts: int = 20
	desktop_extra_attempts: int = 50
	extra_stall_limit: int = 6
	max_supplement_batches: int = 3

	# Progress source
	progress_timeout: float = 20.0
	completion_recheck_delay: float = 2.0

	# Planning
	plan_size: int = 40
	locale: str = "US"
	fallback_locale: str = "JP"

	# Interaction profile
	home_url: str = "https://www.bing.com"
	input_selector: str = "#sb_form_q"
	submit_selector: str = "#search_icon"
	element_timeout: float = 30.0
	settle_wait: float = 3.0

	def __post_init__(self) -> None:
		self.log_dir = self.data_dir / "logs"

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.log_dir.mkdir(parents=True, exist_ok=True)

	def delay_bounds(self, device_class: DeviceClass) -> tuple[float, float]:
		if device_class == DeviceClass.MOBILE:
			return self.mobile_delay
		return self.desktop_delay

	def stall_limit(self, device_class: DeviceClass) -> int:
		"""Consecutive zero-delta attempts before recovery is forced.

		Desktop counters update with more latency, so desktop tolerates more.
		"""
		if device_class == DeviceClass.MOBILE:
			return self.mobile_stall_limit
		return self.desktop_stall_limit

	def extra_attempt_budget(self, device_class: DeviceClass) -> int:
		if device_class == DeviceClass.MOBILE:
			return self.mobile_extra_attempts
		return self.desktop_extra_attempts

	def to_dict(self) -> dict:
		"""Flat view of every setting, for display."""
		return {f.name: getattr(self, f.name) for f in fields(self)}


PATH_FIELDS = {"config_dir", "data_dir"}
PAIR_FIELDS = {"mobile_delay", "desktop_delay"}


def _coerce(config: Config, key: str, val):
	"""Convert a raw TOML or env value to the type of the existing field."""
	if key in PATH_FIELDS:
		return Path(os.path.expanduser(str(val)))
	if key in PAIR_FIELDS:
		if isinstance(val, str):
			val = [part.strip() for part in val.split(",")]
		low, high = (float(v) for v in val)
		if low > high:
			raise ValueError(f"{key}: lower bound {low} exceeds upper bound {high}")
		return (low, high)
	current = getattr(config, key)
	if isinstance(current, bool):
		return str(val).lower() in ("1", "true", "yes")
	if isinstance(current, int):
		return int(val)
	if isinstance(current, float):
		return float(val)
	return str(val)


def _apply_env_overrides(config: Config) -> Config:
	"""Apply CAMPAIGN_ENGINE_* environment variable overrides.

	Any field can be overridden: CAMPAIGN_ENGINE_WALL_CLOCK_BUDGET=900,
	CAMPAIGN_ENGINE_DESKTOP_DELAY=30,90.
	"""
	for f in fields(config):
		if not f.init:
			continue
		val = os.getenv(f"CAMPAIGN_ENGINE_{f.name.upper()}")
		if val:
			setattr(config, f.name, _coerce(config, f.name, val))
	# Recompute derived paths after overrides
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if file exists."""
	toml_path = config.config_dir / "config.toml"
	if not toml_path.exists():
		return config

	with open(toml_path, "rb") as f:
		data = tomllib.load(f)

	# Thresholds may sit at top level or under a [campaign] table
	data.update(data.pop("campaign", {}))
	for key, val in data.items():
		if hasattr(config, key) and key != "log_dir":
			setattr(config, key, _coerce(config, key, val))

	# Recompute derived paths after toml overrides
	config.__post_init__()
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	# First pass locates config.toml when CAMPAIGN_ENGINE_CONFIG_DIR is set
	config = _apply_env_overrides(config)
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config.ensure_dirs()
	return config


# Singleton
_config: Config | None = None


def get_config() -> Config:
	"""Get or create the global config instance."""
	global _config
	if _config is None:
		_config = load_config()
	return _config
