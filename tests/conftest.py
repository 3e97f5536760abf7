from __future__ import annotations

from email.message import EmailMessage
from typing import Iterator, List

import pytest

from datastore.record_store import RecordStore, build_record_store
from settings import Settings


class RecordingTransport:
    """Mail transport that keeps messages in memory."""

    def __init__(self) -> None:
        self.messages: List[EmailMessage] = []

    def send(self, message: EmailMessage) -> None:
        self.messages.append(message)


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        public_base_url="http://plant.test",
        cloudinary_cloud_name="demo-cloud",
        cloudinary_api_key="1234",
        cloudinary_api_secret="top-secret",
        cloudinary_upload_preset="lrs-thermography-preset",
        mail_user="alerts@plant.test",
        mail_password="app-password",
        default_recipients=("maintenance@plant.test",),
        record_list_limit=10,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def store() -> Iterator[RecordStore]:
    record_store = build_record_store("sqlite://")
    yield record_store
    record_store.dispose()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()
