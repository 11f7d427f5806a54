import logging
import json
import sys
import time
import uuid
import os

RESET = "\033[0m"

# Events emitted by a run, in order
EVENT_COLORS = {
    "RUN_STARTED": "\033[32m",
    "DEFINITION_LOADED": "\033[35m",
    "DOCUMENT_MANIPULATED": "\033[35m",
    "OUTPUT_GENERATED": "\033[36m",
    "RUN_COMPLETED": "\033[32m",
    "RUN_FAILED": "\033[31m",
}


def _use_color() -> bool:
    # LOG_COLOR=1 and a terminal on stderr
    return os.getenv("LOG_COLOR", "0") == "1" and sys.stderr.isatty()


def resolve_level(name) -> int:
    """
    Map a LOG_LEVEL value to a logging level; unknown names mean INFO.
    """
    level = logging.getLevelName(str(name or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def build_handler() -> logging.Handler:
    # stdout carries rendered output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def get_logger():
    logger = logging.getLogger("creatable")
    if logger.handlers:
        return logger

    logger.setLevel(resolve_level(os.getenv("LOG_LEVEL")))
    logger.addHandler(build_handler())
    logger.propagate = False
    return logger

logger = get_logger()

# Run ID Generator
def generate_request_id():
    return str(uuid.uuid4())

# One JSON line per event
def log_event(event_type: str, payload: dict):
    text = json.dumps({"event_type": event_type, **payload}, default=str)

    color = EVENT_COLORS.get(event_type)
    if color and _use_color():
        text = f"{color}{text}{RESET}"
    logger.info(text)

# Timer Utility
class RequestTimer:
    """
    Simple execution timer.
    """
    def __init__(self):
        self.start_time = time.time()

    def duration(self):
        return round(time.time() - self.start_time, 4)
