"""
    Diagnostics log file.

    Every run appends to the same file:

        2024-05-02 10:15:01 - INFO: Running OS checks
        2024-05-02 10:15:01 - PASS: Kernel version check passed (5.14.0 >= 4.18).
        2024-05-02 10:15:02 - FAIL: Required locale (en_US.utf8) is not installed.
"""
import logging
from datetime import datetime
from pathlib import Path

PASS = 25
FAIL = 35

LOG_FORMAT = "%(asctime)s - %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

TOOL_NAME = "Installation Readiness Check"

# Third-party loggers whose DEBUG output is connection chatter.
QUIET_LOGGERS = ("httpx", "httpcore")

_OUTCOME_LEVELS = {
    "PASS": PASS,
    "WARN": logging.WARNING,
    "FAIL": FAIL,
    "SKIPPED": logging.INFO,
}


def register_levels() -> None:
    logging.addLevelName(PASS, "PASS")
    logging.addLevelName(FAIL, "FAIL")


def level_for(outcome: str) -> int:
    return _OUTCOME_LEVELS.get(outcome, logging.INFO)


def setup_logging(log_path: str | Path, verbose: bool = False) -> logging.Handler:
    """Attach one append-mode file handler to the root logger and return it."""
    register_levels()
    log_path = Path(log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    root.addHandler(handler)
    return handler


def write_header(logger: logging.Logger, node_type: str, config_path, auto_fix: bool, non_interactive: bool) -> None:
    logger.info("=" * 60)
    logger.info("%s", TOOL_NAME)
    logger.info("Started: %s", datetime.now().strftime(DATE_FORMAT))
    logger.info("Node type: %s", node_type)
    logger.info("Config file: %s", config_path)
    logger.info("Auto-fix: %s", "enabled" if auto_fix else "disabled")
    logger.info("Non-interactive: %s", "yes" if non_interactive else "no")
    logger.info("=" * 60)
