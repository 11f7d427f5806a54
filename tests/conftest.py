import json
import logging
from pathlib import Path

import pytest

from creatable.observability.logger import logger

PROJECT_ROOT = Path(__file__).resolve().parents[1]
EXAMPLES_DIR = PROJECT_ROOT / "examples"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # Template lookup must not depend on the developer's shell
    monkeypatch.delenv("CREATABLE_PATH", raising=False)
    monkeypatch.delenv("LOG_COLOR", raising=False)


@pytest.fixture()
def tables_yaml() -> Path:
    return EXAMPLES_DIR / "tables.yaml"


@pytest.fixture()
def write_file(tmp_path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


class _EventCollector(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.INFO)
        self.events = []

    def emit(self, record):
        self.events.append(json.loads(record.getMessage()))


@pytest.fixture()
def log_events():
    collector = _EventCollector()
    previous_level = logger.level
    logger.setLevel(logging.INFO)
    logger.addHandler(collector)
    yield collector.events
    logger.removeHandler(collector)
    logger.setLevel(previous_level)
