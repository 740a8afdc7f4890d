from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

import qrorder.api.routes.orders as orders_route
from qrorder.infrastructure.db import session as db_session
from qrorder.infrastructure.db.models.menu import Base, MenuItemModel, RestaurantModel
from qrorder.infrastructure.db.models.table import TableModel
from qrorder.infrastructure.messaging import redis_client
from qrorder.tools.seed import MENU_ITEMS, RESTAURANT, TABLES


@dataclass
class PublishedEvent:
    channel: str
    message: str


class RecordingPublisher:
    events: list[PublishedEvent] = []

    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        RecordingPublisher.events.append(PublishedEvent(channel=channel, message=message))


@pytest.fixture(autouse=True)
def integration_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'qrorder.db'}")
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")

    db_session._build_engine.cache_clear()
    redis_client._build_client.cache_clear()
    yield
    db_session.get_engine().dispose()
    db_session._build_engine.cache_clear()


@pytest.fixture(autouse=True)
def seeded_engine(integration_environment: None) -> Engine:
    engine = db_session.get_engine()
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        session.add(RestaurantModel(**RESTAURANT))
        session.add_all(TableModel(**row) for row in TABLES)
        session.add_all(MenuItemModel(**row) for row in MENU_ITEMS)
        session.commit()
    return engine


@pytest.fixture
def published_events(monkeypatch: pytest.MonkeyPatch) -> list[PublishedEvent]:
    RecordingPublisher.events = []
    monkeypatch.setattr(orders_route, "RedisEventPublisher", RecordingPublisher)
    return RecordingPublisher.events
