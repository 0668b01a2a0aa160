"""
Logging configuration for the command line.

Usage:
    from flash_arbitrage import logging_config
    logging_config.setup()
"""

import logging
import sys

PACKAGE_LOGGER = "flash_arbitrage"


def setup(level=logging.INFO, stream=None):
    """
    Configure console logging for the CLI.

    - Short timestamp format (HH:MM:SS)
    - Package loggers propagate to the single root handler
    - Paper chain internals stay quiet unless debugging
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(stream or sys.stdout)
    console.setLevel(level)
    console.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
        )
    )
    root.addHandler(console)

    # Module loggers created by get_logger carry their own handler; drop it so
    # every record is printed once, through root.
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(logger, logging.Logger) and name.startswith(PACKAGE_LOGGER):
            logger.handlers.clear()
            logger.setLevel(logging.NOTSET)

    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    logging.getLogger(f"{PACKAGE_LOGGER}.paper").setLevel(max(level, logging.INFO))
    logging.getLogger("web3").setLevel(logging.WARNING)


def setup_minimal():
    """Only warnings and errors."""
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging for debugging.
    Shows every token transfer and pool update on the paper chain.
    """
    setup(level=logging.DEBUG)
    logging.getLogger(f"{PACKAGE_LOGGER}.paper").setLevel(logging.DEBUG)
