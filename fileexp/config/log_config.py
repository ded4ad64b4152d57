# fileexp/config/log_config.py
"""
Logging setup shared by the gateway and the command line tools.
"""

import logging
import sys

# error < warn < info < debug; each level includes the ones before it
LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def resolve_log_level(name: str | None) -> int:
    """Map a level name to a logging level. Unknown names map to INFO."""
    if not name:
        return logging.INFO
    name = name.strip().lower()
    if name == "warning":
        name = "warn"
    return LOG_LEVELS.get(name, logging.INFO)


def setup_logging(level: str | None = "info") -> logging.Handler:
    """Configure the root logger with a single stderr handler.

    Returns:
        The console handler (kept by callers so it is not collected)
    """
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(resolve_log_level(level))
    # Remove existing handlers that might interfere
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(console_handler)

    # Suppress per-request logging from the HTTP stack
    for name in ['httpx', 'httpcore', 'uvicorn.access', 'urllib3']:
        logging.getLogger(name).setLevel(logging.WARNING)

    return console_handler
