"""Tests for logging setup."""

import logging
from pathlib import Path

import pytest

from campaign_engine.logging_config import ROOT_LOGGER, DeviceClassFilter, setup_logging


@pytest.fixture
def clean_logger():
	logger = logging.getLogger(ROOT_LOGGER)
	saved = list(logger.handlers)
	logger.handlers.clear()
	yield logger
	for handler in logger.handlers:
		handler.close()
	logger.handlers[:] = saved


def test_file_handler_writes_campaign_log(clean_logger, tmp_path: Path):
	setup_logging("DEBUG", log_dir=tmp_path, device_class="mobile")
	logging.getLogger("campaign_engine.engine.orchestrator").info("state executing -> recovering")
	for handler in clean_logger.handlers:
		handler.flush()

	text = (tmp_path / "campaign.log").read_text()
	assert "[MOBILE]" in text
	assert "executing -> recovering" in text


def test_setup_is_idempotent(clean_logger):
	setup_logging("INFO")
	setup_logging("INFO")
	assert len(clean_logger.handlers) == 1


def test_filter_keeps_existing_tag():
	record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
	record.device_class = "DESKTOP"
	assert DeviceClassFilter("mobile").filter(record) is True
	assert record.device_class == "DESKTOP"
