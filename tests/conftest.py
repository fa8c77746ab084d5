"""
Shared fixtures: in-memory services, recording mail transport, API client
"""
import random

import pytest
from fastapi.testclient import TestClient

from assessment_server.config import Settings, SmtpSettings
from assessment_server.core.persistence import InMemoryGateway
from assessment_server.main import create_app
from assessment_server.state import build_services


class RecordingTransport:
    """Collects messages instead of talking to SMTP"""

    def __init__(self):
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)


@pytest.fixture
def settings():
    return Settings(
        storage="memory",
        smtp=SmtpSettings(host="smtp.test", username="bot@example.com", password="secret"),
        program_team_emails=["program@example.com"],
    )


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def services(settings, gateway, transport):
    return build_services(
        settings,
        gateway=gateway,
        transport=transport,
        inline_notifications=True,
        rng=random.Random(42),
    )


@pytest.fixture
def client(services):
    return TestClient(create_app(services))


@pytest.fixture
def sample_csv():
    return (
        "team_name,member1_name,member1_email,member2_name,member2_email\n"
        "Team Alpha,John Smith,john@example.com,Sarah Johnson,sarah@example.com\n"
        "Team Beta,Alex Wilson,,,\n"
        "Team Gamma,,,,\n"
    ).encode("utf-8")
