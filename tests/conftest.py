from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from fakes import FIXED_NOW, FakePihole
from pihole_exporter.config import Settings
from pihole_exporter.main import create_app
from pihole_exporter.services.pihole_api import PiholeApiClient


@pytest.fixture
def fake_pihole() -> FakePihole:
    return FakePihole()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, pihole_host="pihole.test", pihole_password=None)


@pytest.fixture
def api_client(fake_pihole: FakePihole) -> PiholeApiClient:
    client = PiholeApiClient("http://pihole.test", transport=fake_pihole.transport)
    yield client
    client.close()


@pytest.fixture
def client(test_settings: Settings, fake_pihole: FakePihole):
    app = create_app(test_settings, transport=fake_pihole.transport)
    with TestClient(app) as test_client:
        app.state.collector.clock = lambda: FIXED_NOW
        yield test_client
