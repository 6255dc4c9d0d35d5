"""
Shared pytest fixtures for runs_gateway tests.
"""

from dataclasses import replace
from typing import Any

import pytest

from runs_gateway.config import GatewayConfig, SettingsStore
from runs_gateway.core.exceptions import DuplicateRunNumber
from runs_gateway.core.models import ExtractedFields, OutboundMessage, RunRecord, Visibility
from runs_gateway.extractors.base import BaseExtractor
from runs_gateway.processors.inbound import InboundProcessor
from runs_gateway.processors.reconciler import Reconciler
from runs_gateway.services.mailer import Mailer
from runs_gateway.services.repository import RunRepository, default_visibility

WEBHOOK_SECRET = "test-webhook-secret"


class InMemoryRunRepository(RunRepository):
    """Run repository backed by a dict, with the same visibility defaults as PostgreSQL."""

    def __init__(self):
        super().__init__(site_url="https://runs.example.com")
        self.records: dict[int, RunRecord] = {}
        self._next_id = 1

    def find_by_run_number(self, run_number: int) -> RunRecord | None:
        for record in self.records.values():
            if record.run_number == run_number:
                return replace(record, attributes=dict(record.attributes))
        return None

    def create(self, title: str, attributes: dict[str, Any]) -> RunRecord:
        run_number = attributes.get("run_number")
        if run_number and any(r.run_number == run_number for r in self.records.values()):
            raise DuplicateRunNumber(run_number)

        record = RunRecord(
            id=self._next_id,
            title=title,
            run_number=run_number,
            status=default_visibility(attributes.get("run_date")),
            attributes=dict(attributes),
        )
        self.records[record.id] = record
        self._next_id += 1
        return replace(record, attributes=dict(record.attributes))

    def update(self, record_id: int, title: str, attributes: dict[str, Any]) -> RunRecord:
        record = self.records[record_id]
        record.title = title
        record.attributes.update(attributes)
        if attributes.get("run_number"):
            record.run_number = attributes["run_number"]
        record.status = default_visibility(record.attributes.get("run_date"))
        return replace(record, attributes=dict(record.attributes))

    def publish(self, record_id: int) -> None:
        self.records[record_id].status = Visibility.PUBLISHED

    def list_by_run_date(self) -> list[RunRecord]:
        ordered = sorted(self.records.values(), key=lambda r: (r.run_date, r.id))
        return [replace(r, attributes=dict(r.attributes)) for r in ordered]

    def add(self, title: str, **attributes) -> RunRecord:
        """Seed a stored run directly."""
        record = self.create(title, attributes)
        self.publish(record.id)
        return record


class InMemorySettingsStore(SettingsStore):
    def __init__(self, values: dict[str, str] | None = None):
        self.values = dict(values or {})

    def get_all(self) -> dict[str, str]:
        return dict(self.values)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class FakeExtractor(BaseExtractor):
    """Returns canned fields, or raises a canned error."""

    def __init__(self, result: ExtractedFields | Exception | None = None):
        self.result = result or ExtractedFields(run_date="2026-03-15")
        self.calls: list[tuple[str, str]] = []

    def extract(self, subject: str, body: str) -> ExtractedFields:
        self.calls.append((subject, body))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class RecordingMailer(Mailer):
    """Mailer that keeps messages instead of sending them."""

    def __init__(self):
        super().__init__(host="smtp.example.com", user="runs@example.com")
        self.sent: list[tuple[str, OutboundMessage]] = []

    def send(self, to: str, message: OutboundMessage) -> bool:
        self.sent.append((to, message))
        return True


@pytest.fixture
def repository() -> InMemoryRunRepository:
    return InMemoryRunRepository()


@pytest.fixture
def reconciler(repository) -> Reconciler:
    return Reconciler(repository)


@pytest.fixture
def make_store():
    """Factory for settings stores with given contents."""
    return InMemorySettingsStore


@pytest.fixture
def settings_store() -> InMemorySettingsStore:
    return InMemorySettingsStore({
        "webhook_secret": WEBHOOK_SECRET,
        "authorised_emails": "gm@example.com\nHare@Example.com\n\n",
        "anthropic_api_key": "test-anthropic-key",
        "smtp_user": "runs@example.com",
        "from_email": "runs@example.com",
    })


@pytest.fixture
def config(settings_store) -> GatewayConfig:
    return GatewayConfig.load(settings_store)


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def processor(config, repository, extractor, mailer) -> InboundProcessor:
    return InboundProcessor(config, repository, extractor=extractor, mailer=mailer)


@pytest.fixture
def sample_payload() -> dict:
    """Webhook body in the forwarding service's usual shape."""
    return {
        "from": {
            "value": [{"address": "GM@example.com", "name": "Grand Master"}],
            "text": "Grand Master <GM@example.com>",
        },
        "subject": "Next Monday's run",
        "text": "Run 2120, hare is Speedy, Monday 16th March at the Cricket Ground.",
        "html": "",
        "attachments": [],
    }
