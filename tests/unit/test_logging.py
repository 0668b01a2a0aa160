"""Tests for structured loggers and the CLI logging setup."""

import io
import logging

import pytest

from flash_arbitrage import logging_config
from flash_arbitrage.utils import get_logger


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestGetLogger:
    def test_structured_handler(self):
        logger = get_logger("tests.logging.structured")
        assert len(logger.handlers) == 1
        fmt = logger.handlers[0].formatter._fmt
        assert "%(levelname)" in fmt
        assert "%(name)s" in fmt

    def test_no_duplicate_handlers(self):
        name = "tests.logging.repeat"
        first = get_logger(name)
        second = get_logger(name)
        assert first is second
        assert len(second.handlers) == 1

    def test_existing_level_kept(self):
        name = "tests.logging.level"
        assert get_logger(name, level=logging.ERROR).level == logging.ERROR
        assert get_logger(name, level=logging.DEBUG).level == logging.ERROR

    def test_extra_context_adapter(self):
        logger = get_logger("tests.logging.extra", extra={"variant": "fixed_fee"})
        assert isinstance(logger, logging.LoggerAdapter)
        assert logger.extra == {"extra_variant": "fixed_fee"}

    def test_minimal_format(self):
        logger = get_logger("tests.logging.minimal", minimal=True)
        assert logger.handlers[0].formatter._fmt == "%(asctime)s | %(message)s"


class TestSetup:
    def test_package_records_printed_once(self, restore_root_logger):
        module_logger = get_logger("flash_arbitrage.paper.setup_probe")
        stream = io.StringIO()

        logging_config.setup(stream=stream)
        module_logger.info("pool updated")

        assert module_logger.handlers == []
        assert stream.getvalue().count("pool updated") == 1
        assert "| INFO    | pool updated" in stream.getvalue()

    def test_minimal_hides_info(self, restore_root_logger):
        logging_config.setup_minimal()
        assert logging.getLogger().level == logging.WARNING
        assert not logging.getLogger("flash_arbitrage.engine").isEnabledFor(logging.INFO)

    def test_debug_enables_paper_chain(self, restore_root_logger):
        logging_config.setup_debug()
        assert logging.getLogger("flash_arbitrage.paper").isEnabledFor(logging.DEBUG)
        assert logging.getLogger("web3").level == logging.WARNING
