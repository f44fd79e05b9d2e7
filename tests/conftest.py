"""Shared test fixtures: settings, in-memory CRM, fixed clock and API client."""

import datetime
from typing import Any

from fastapi.testclient import TestClient
import pytest

from dealer_voice import dependencies
from dealer_voice.config import Settings
from dealer_voice.core import scoring
from dealer_voice.handlers import completion_handler as completion_handler_lib
from dealer_voice.main import app
from dealer_voice.services import crm_service as crm_service_lib

FIXED_NOW = datetime.datetime(2026, 3, 10, 15, 30, tzinfo=datetime.timezone.utc)


class FakeTelephonyService:
  """Records transfers and text messages instead of calling Twilio."""

  def __init__(self):
    self.transfers: list[tuple[str, str]] = []
    self.messages: list[tuple[str, str]] = []

  async def transfer_call(self, call_sid: str, phone_number: str) -> bool:
    self.transfers.append((call_sid, phone_number))
    return True

  async def send_sms(self, to: str, body: str) -> str | None:
    self.messages.append((to, body))
    return "SM123"


class FakeVoiceService:
  """Stands in for the voice platform API."""

  def __init__(self, fail: bool = False):
    self.fail = fail
    self.started: list[dict[str, Any]] = []

  async def setup_agent(self) -> dict[str, Any]:
    if self.fail:
      raise RuntimeError("voice platform unavailable")
    return {"agent_id": "agent_abc"}

  async def start_conversation(
      self, metadata: dict[str, Any] | None = None
  ) -> dict[str, Any]:
    self.started.append(metadata or {})
    return {"conversation_id": "conv_1", "session_url": "wss://session/1"}

  async def get_conversation_status(
      self, conversation_id: str
  ) -> dict[str, Any]:
    return {"status": "done", "duration": 120}


@pytest.fixture()
def now() -> datetime.datetime:
  return FIXED_NOW


@pytest.fixture()
def settings() -> Settings:
  return Settings(
      _env_file=None,
      ELEVENLABS_WEBHOOK_SECRET="",
      WEBHOOK_SECRET="",
      CRM_API_ENDPOINT="",
      TWILIO_ACCOUNT_SID="",
      TWILIO_AUTH_TOKEN="",
      TWILIO_VIRTUAL_PHONE_NUMBER="",
      SALES_AGENTS=["agent1", "agent2", "agent3"],
  )


@pytest.fixture()
def crm() -> crm_service_lib.MockCRMService:
  return crm_service_lib.MockCRMService(
      scoring.RoundRobinAgentAssigner(["agent1", "agent2", "agent3"])
  )


@pytest.fixture()
def handler(crm, now) -> completion_handler_lib.ConversationCompletionHandler:
  return completion_handler_lib.ConversationCompletionHandler(
      crm, clock=lambda: now
  )


@pytest.fixture()
def telephony() -> FakeTelephonyService:
  return FakeTelephonyService()


@pytest.fixture()
def voice_service() -> FakeVoiceService:
  return FakeVoiceService()


@pytest.fixture()
def wire(settings, crm, handler, telephony, voice_service):
  """Fills the app's collaborators with test doubles; returns the mapping."""
  built = dependencies.build_instances(settings)
  built.update({
      "crm_service": crm,
      "completion_handler": handler,
      "telephony_service": telephony,
      "voice_service": voice_service,
  })
  dependencies.instances.clear()
  dependencies.instances.update(built)
  yield dependencies.instances
  dependencies.instances.clear()
  app.dependency_overrides.clear()


@pytest.fixture()
def client(wire) -> TestClient:
  # Not used as a context manager, so the lifespan does not replace `wire`.
  return TestClient(app)
