"""
Pytest configuration and fixtures for the callbox tests.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Callable
from unittest.mock import MagicMock

import httpx
import pytest

from callbox.call_router import CallRouter
from callbox.config import CallboxConfig, Settings, config_from_settings
from callbox.keyway.client import KeywayClient
from callbox.telephony.events import CallEvent, parse_call_event

TEST_ACCOUNT_SID = "AC_TEST_ACCOUNT_SID"
TEST_AUTH_TOKEN = "test_auth_token_12345"
SERVICE_URL = "https://keyway.example.com"
FALLBACK_NUMBER = "+14155559999"
CALLBOX_NUMBER = "+14155550100"
VISITOR_NUMBER = "+14155551234"
OWNER_NUMBER = "+14155550123"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        keyway_service_url=SERVICE_URL,
        keyway_api_key="test-api-key",
        keyway_fallback_number=FALLBACK_NUMBER,
        twilio_account_sid=TEST_ACCOUNT_SID,
        twilio_auth_token=TEST_AUTH_TOKEN,
        callbox_unit="507",
        callbox_floor="5",
    )


@pytest.fixture
def callbox_config(settings: Settings) -> CallboxConfig:
    return config_from_settings(settings)


@dataclass
class RecordingReporter:
    """ErrorReporter that keeps reports in memory."""

    reports: list[dict[str, Any]] = field(default_factory=list)

    def report(self, error: BaseException, *, level: str, extra: dict[str, Any]) -> None:
        self.reports.append({"error": error, "level": level, "extra": extra})


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def http_client() -> MagicMock:
    return MagicMock(spec=httpx.Client)


@pytest.fixture
def keyway_client(callbox_config: CallboxConfig, http_client: MagicMock) -> KeywayClient:
    return KeywayClient(config=callbox_config, http_client=http_client)


@pytest.fixture
def call_router(
    callbox_config: CallboxConfig,
    keyway_client: KeywayClient,
    reporter: RecordingReporter,
) -> CallRouter:
    return CallRouter(config=callbox_config, keyway=keyway_client, reporter=reporter)


def twilio_params(digits: str | None = None, **overrides: str) -> dict[str, str]:
    params = {
        "AccountSid": TEST_ACCOUNT_SID,
        "CallSid": "CA_TEST_CALL_SID_123",
        "Caller": VISITOR_NUMBER,
        "Called": CALLBOX_NUMBER,
        "From": VISITOR_NUMBER,
        "To": CALLBOX_NUMBER,
        "CallStatus": "in-progress",
        "Direction": "inbound",
    }
    if digits is not None:
        params["Digits"] = digits
    params.update(overrides)
    return params


@pytest.fixture
def make_params() -> Callable[..., dict[str, str]]:
    return twilio_params


@pytest.fixture
def make_event() -> Callable[..., CallEvent]:
    def _make(digits: str | None = None, **overrides: str) -> CallEvent:
        return parse_call_event(twilio_params(digits, **overrides))

    return _make


@pytest.fixture
def trigger_body() -> Callable[..., dict[str, Any]]:
    def _make(**overrides: Any) -> dict[str, Any]:
        body: dict[str, Any] = {
            "entryCode": "9",
            "configMapping": {
                CALLBOX_NUMBER: {"name": "Evan", "number": OWNER_NUMBER},
            },
            "numDigits": 4,
            "numRegisteredCodes": 3,
            "numSingleUseCodes": 0,
        }
        body.update(overrides)
        return body

    return _make


class Twiml:
    """Parsed TwiML document with a few lookup helpers."""

    def __init__(self, xml: str) -> None:
        self.xml = xml
        self.root = ET.fromstring(xml)

    @property
    def verbs(self) -> list[str]:
        """Top-level verbs in document order."""
        return [child.tag for child in self.root]

    @property
    def spoken(self) -> list[str]:
        """Everything said, in document order."""
        return [p.text or "" for p in self.root.iter("prosody")]

    def find(self, tag: str) -> ET.Element | None:
        return self.root.find(tag)

    def findall(self, tag: str) -> list[ET.Element]:
        return self.root.findall(tag)


@pytest.fixture
def parse_twiml() -> Callable[[Any], Twiml]:
    return lambda response: Twiml(str(response))
