"""Pytest configuration for the printbridge tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from printbridge.config import Settings  # noqa: E402
from printbridge.database import reset_database  # noqa: E402
from printbridge.main import create_app  # noqa: E402
from printbridge.services.printer_store import InMemoryLastPrinterStore  # noqa: E402

from fakes import FakeOpener  # noqa: E402


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture()
def store() -> InMemoryLastPrinterStore:
    return InMemoryLastPrinterStore()


@pytest.fixture()
def opener() -> FakeOpener:
    return FakeOpener()


@pytest.fixture()
def client(tmp_path: Path, settings: Settings, opener: FakeOpener) -> Generator[TestClient, None, None]:
    database_url = f"sqlite:///{tmp_path / 'printbridge-test.db'}"
    reset_database(database_url)

    app = create_app(database_url=database_url, settings=settings, opener=opener)
    with TestClient(app) as test_client:
        yield test_client
