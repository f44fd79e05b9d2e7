"""Tests for the dealership, telephony and voice platform services."""

import collections
import datetime
from typing import Any
from xml.etree import ElementTree

import aiohttp
import pytest

from dealer_voice.agents import dealer_agent
from dealer_voice.config import Settings
from dealer_voice.core import errors
from dealer_voice.core import security
from dealer_voice.schemas.tools import PostCallPayload
from dealer_voice.services import dealership_service
from dealer_voice.services import metrics_service
from dealer_voice.services import telephony_service
from dealer_voice.services import voice_platform_service


class FakeResponse:

  def __init__(self, status: int, body: Any):
    self.status = status
    self._body = body

  async def __aenter__(self):
    return self

  async def __aexit__(self, *exc_info):
    return False

  async def json(self):
    return self._body

  async def text(self):
    return str(self._body)


class FakeSession:
  """Answers every request with one canned response and records it."""

  def __init__(self, response, calls: list[dict], **session_kwargs):
    self._response = response
    self._calls = calls
    self.session_kwargs = session_kwargs

  async def __aenter__(self):
    return self

  async def __aexit__(self, *exc_info):
    return False

  def _send(self, method, url, **kwargs):
    self._calls.append({"method": method, "url": url, **kwargs})
    if isinstance(self._response, Exception):
      raise self._response
    return self._response

  def request(self, method, url, **kwargs):
    return self._send(method, url, **kwargs)

  def post(self, url, **kwargs):
    return self._send("POST", url, **kwargs)


def _session_factory(response, calls):
  def factory(**session_kwargs):
    return FakeSession(response, calls, **session_kwargs)

  return factory


@pytest.fixture()
def twilio_settings() -> Settings:
  return Settings(
      _env_file=None,
      TWILIO_ACCOUNT_SID="AC123",
      TWILIO_AUTH_TOKEN="token",
      TWILIO_VIRTUAL_PHONE_NUMBER="+16025550000",
  )


class TestSecurity:

  def test_matching_signature(self):
    body = b'{"call_id": "call_1"}'
    signature = security.compute_signature(body, "secret")
    assert security.verify_webhook_signature(body, signature, "secret")

  def test_tampered_body(self):
    signature = security.compute_signature(b"original", "secret")
    assert not security.verify_webhook_signature(
        b"tampered", signature, "secret"
    )

  @pytest.mark.parametrize(
      "signature, secret", [(None, "secret"), ("abc", ""), (None, None)]
  )
  def test_unsigned_or_unconfigured_passes(self, signature, secret):
    assert security.verify_webhook_signature(b"body", signature, secret)


class TestDealershipService:

  @pytest.mark.asyncio
  async def test_inventory_ignores_criteria(self):
    service = dealership_service.MockDealershipService()
    vehicles = await service.search_inventory({"make": "Ford"})
    assert [v["model"] for v in vehicles] == ["RAV4", "CR-V"]

  @pytest.mark.asyncio
  async def test_alternative_dates(self):
    service = dealership_service.MockDealershipService()
    dates = await service.get_alternative_service_dates(
        "2026-12-31", "oil change"
    )
    assert dates == ["01/01/2027", "01/02/2027"]

  @pytest.mark.asyncio
  @pytest.mark.parametrize(
      "condition, average", [("excellent", 11770), ("fair", 9095)]
  )
  async def test_trade_in_condition_multiplier(self, condition, average):
    service = dealership_service.MockDealershipService()
    valuation = await service.get_trade_in_value(
        {"year": 2020, "mileage": 45000, "condition": condition}
    )
    assert valuation["average"] == average

  @pytest.mark.asyncio
  async def test_trade_in_reference_year(self):
    service = dealership_service.MockDealershipService(reference_year=2026)
    valuation = await service.get_trade_in_value(
        {"year": 2020, "mileage": 12000, "condition": "good"}
    )
    assert valuation["average"] == 11000

  @pytest.mark.asyncio
  async def test_trade_in_unknown_condition(self):
    service = dealership_service.MockDealershipService()
    with pytest.raises(ValueError):
      await service.get_trade_in_value(
          {"year": 2020, "mileage": 1000, "condition": "salvage"}
      )

  @pytest.mark.asyncio
  async def test_queue_and_appointment_records(self):
    service = dealership_service.MockDealershipService()
    queued = await service.queue_for_human_agent({"department": "sales"})
    appointment = await service.create_service_appointment(
        {"service_type": "tires", "time_slot": "10:00 AM"}
    )
    assert queued["position"] == 1
    assert queued["department"] == "sales"
    assert appointment["time"] == "10:00 AM"
    assert service.transfer_queue == [queued]
    assert service.appointments == [appointment]


class TestTwilioTelephonyService:

  def test_transfer_twiml(self):
    twiml = telephony_service.TwilioTelephonyService.build_transfer_twiml(
        "555-0101"
    )
    root = ElementTree.fromstring(twiml.encode("utf-8"))
    assert root.tag == "Response"
    assert root.find("Say").text == "Please hold while I connect you."
    assert root.find("Dial").text == "555-0101"

  @pytest.mark.asyncio
  async def test_transfer_call_posts_twiml(self, twilio_settings):
    calls = []
    service = telephony_service.TwilioTelephonyService(
        twilio_settings,
        session_factory=_session_factory(
            FakeResponse(200, {"status": "in-progress"}), calls
        ),
    )

    assert await service.transfer_call("CA1", "555-0102")
    [call] = calls
    assert call["url"].endswith("/Accounts/AC123/Calls/CA1.json")
    assert "<Dial>555-0102</Dial>" in call["data"]["Twiml"]

  @pytest.mark.asyncio
  async def test_transfer_of_ended_call_returns_false(self, twilio_settings):
    service = telephony_service.TwilioTelephonyService(
        twilio_settings,
        session_factory=_session_factory(
            FakeResponse(404, {"message": "Call not found"}), []
        ),
    )
    assert not await service.transfer_call("CA1", "555-0102")

  @pytest.mark.asyncio
  async def test_send_sms(self, twilio_settings):
    calls = []
    service = telephony_service.TwilioTelephonyService(
        twilio_settings,
        session_factory=_session_factory(
            FakeResponse(201, {"sid": "SM42"}), calls
        ),
    )

    assert await service.send_sms("+16025550100", "See you soon") == "SM42"
    assert calls[0]["data"] == {
        "From": "+16025550000",
        "To": "+16025550100",
        "Body": "See you soon",
    }

  @pytest.mark.asyncio
  async def test_send_sms_transport_error(self, twilio_settings):
    service = telephony_service.TwilioTelephonyService(
        twilio_settings,
        session_factory=_session_factory(
            aiohttp.ClientConnectionError("refused"), []
        ),
    )
    assert await service.send_sms("+16025550100", "hi") is None

  def test_disabled_without_credentials(self, settings, twilio_settings):
    assert telephony_service.build_telephony_service(settings) is None
    assert isinstance(
        telephony_service.build_telephony_service(twilio_settings),
        telephony_service.TwilioTelephonyService,
    )


class TestElevenLabsVoiceService:

  @pytest.mark.asyncio
  async def test_setup_agent_registers_definition(self, settings):
    calls = []
    service = voice_platform_service.ElevenLabsVoiceService(
        settings,
        session_factory=_session_factory(
            FakeResponse(200, {"agent_id": "agent_new"}), calls
        ),
    )

    agent = await service.setup_agent()

    assert agent["agent_id"] == "agent_new"
    assert service.agent_id == "agent_new"
    [call] = calls
    assert call["url"] == (
        "https://api.elevenlabs.io/v1/conversational-ai/agents"
    )
    assert call["json"]["name"] == "Dealer Logic Assistant"

  @pytest.mark.asyncio
  async def test_error_status_raises(self, settings):
    service = voice_platform_service.ElevenLabsVoiceService(
        settings,
        session_factory=_session_factory(FakeResponse(401, "bad key"), []),
    )
    with pytest.raises(errors.VoicePlatformError, match="401"):
      await service.get_conversation_status("conv_1")

  @pytest.mark.asyncio
  async def test_start_conversation_sends_agent_and_metadata(self, settings):
    calls = []
    settings = settings.model_copy(update={"ELEVENLABS_AGENT_ID": "agent_1"})
    service = voice_platform_service.ElevenLabsVoiceService(
        settings,
        session_factory=_session_factory(
            FakeResponse(200, {"conversation_id": "conv_9"}), calls
        ),
    )

    conversation = await service.start_conversation({"customer_id": "C1"})

    assert conversation["conversation_id"] == "conv_9"
    assert calls[0]["json"] == {
        "agent_id": "agent_1",
        "metadata": {"customer_id": "C1"},
    }


class TestAgentDefinition:

  def test_tools_point_at_this_service(self, settings):
    settings = settings.model_copy(
        update={
            "WEBHOOK_BASE_URL": "https://voice.example.com/",
            "DEALER_NAME": "Desert Motors",
        }
    )

    definition = dealer_agent.build_agent_definition(settings)

    assert {
        tool["name"]: tool["webhook_url"] for tool in definition["tools"]
    } == {
        "inventory_search": "https://voice.example.com/tools/inventory",
        "schedule_service": "https://voice.example.com/tools/service",
        "check_trade_value": "https://voice.example.com/tools/trade",
        "transfer_to_human": "https://voice.example.com/tools/transfer",
    }
    assert definition["first_message"] == (
        "Thank you for calling Desert Motors! How may I assist you today?"
    )
    assert "Desert Motors" in definition["system_prompt"]
    assert definition["webhooks"]["post_call_transcription"] == (
        "https://voice.example.com/transcription"
    )


class TestCallMetrics:

  def test_error_log_is_bounded(self):
    metrics = metrics_service.CallMetrics()
    for i in range(120):
      metrics.record(PostCallPayload(call_id=f"call_{i}", error=f"e{i}"))

    snapshot = metrics.snapshot()
    assert snapshot["calls"]["total"] == 120
    assert len(snapshot["errors"]) == 100
    assert snapshot["errors"][0]["error"] == "e20"

  def test_duration_average_keeps_no_per_call_history(self):
    metrics = metrics_service.CallMetrics()
    for i in range(10_000):
      metrics.record(PostCallPayload(call_id=f"call_{i}", duration=i % 3))

    assert metrics.duration_total == 9_999
    assert metrics.duration_count == 10_000
    assert metrics.snapshot()["avg_call_duration"] == 1.0
    assert not [
        value
        for value in vars(metrics).values()
        if isinstance(value, (list, collections.deque)) and len(value) > 100
    ]

  def test_duration_missing_is_not_averaged(self):
    metrics = metrics_service.CallMetrics()
    metrics.record(PostCallPayload(call_id="call_1", duration=60))
    metrics.record(PostCallPayload(call_id="call_2"))

    assert metrics.snapshot()["avg_call_duration"] == 60.0

  def test_uptime_is_not_negative(self):
    metrics = metrics_service.CallMetrics()
    metrics.started_at = datetime.datetime.now(
        datetime.timezone.utc
    ) - datetime.timedelta(seconds=30)
    assert metrics.snapshot()["uptime_seconds"] >= 30
