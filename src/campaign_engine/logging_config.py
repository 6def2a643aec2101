"""Centralized logging configuration for campaign-engine."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "campaign_engine"


def setup_logging(
	level: Optional[str] = None,
	log_dir: Optional[Path] = None,
	device_class: Optional[str] = None,
) -> logging.Logger:
	"""
	Set up logging with console and file handlers.

	Args:
		level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to env var or INFO.
		log_dir: Directory for log files; console only when omitted
		device_class: Tag stamped on every record (mobile/desktop)

	Returns:
		Configured package logger
	"""
	level = level or os.getenv("LOG_LEVEL", "INFO")
	log_level = getattr(logging, level.upper(), logging.INFO)

	logger = logging.getLogger(ROOT_LOGGER)
	logger.setLevel(log_level)

	# Avoid duplicate handlers
	if logger.handlers:
		return logger

	device_filter = DeviceClassFilter(device_class or "main")

	detailed_formatter = logging.Formatter(
		"%(asctime)s [%(levelname)s] [%(device_class)s] %(name)s:%(lineno)d - %(message)s",
		datefmt="%Y-%m-%d %H:%M:%S",
	)
	simple_formatter = logging.Formatter(
		"%(asctime)s [%(levelname)s] [%(device_class)s] %(message)s",
		datefmt="%H:%M:%S",
	)

	console_handler = logging.StreamHandler(sys.stdout)
	console_handler.setLevel(log_level)
	console_handler.setFormatter(simple_formatter)
	console_handler.addFilter(device_filter)
	logger.addHandler(console_handler)

	if log_dir is not None:
		log_path = Path(log_dir)
		log_path.mkdir(parents=True, exist_ok=True)

		file_handler = RotatingFileHandler(
			log_path / "campaign.log",
			maxBytes=10 * 1024 * 1024,  # 10 MB
			backupCount=5,
		)
		file_handler.setLevel(logging.DEBUG)  # File gets all logs
		file_handler.setFormatter(detailed_formatter)
		file_handler.addFilter(device_filter)
		logger.addHandler(file_handler)

	return logger


class DeviceClassFilter(logging.Filter):
	"""Stamp records with the device class the campaign runs under."""

	def __init__(self, device_class: str):
		super().__init__()
		self.device_class = device_class.upper()

	def filter(self, record: logging.LogRecord) -> bool:
		if not hasattr(record, "device_class"):
			record.device_class = self.device_class
		return True
