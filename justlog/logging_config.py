"""Logging setup shared by the server entry points."""
import logging
import sys

LOGGER_NAME = "JustLog"


def setup_logging(level: str = "INFO") -> logging.Logger:
    # stdout belongs to the stdio MCP transport, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
        force=True,
    )
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under the JustLog namespace, e.g. get_logger("entries")."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
