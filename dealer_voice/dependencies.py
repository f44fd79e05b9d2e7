"""Collaborators shared by the API routers.

`main.lifespan` fills `instances` at startup; routers receive them through
FastAPI dependencies so tests can swap any of them with
`app.dependency_overrides`.
"""

import logging
from typing import Any

import fastapi

from dealer_voice.config import Settings
from dealer_voice.core import errors
from dealer_voice.core import security
from dealer_voice.handlers import completion_handler as completion_handler_lib
from dealer_voice.services import crm_service as crm_service_lib
from dealer_voice.services import dealership_service as dealership_service_lib
from dealer_voice.services import metrics_service as metrics_service_lib
from dealer_voice.services import telephony_service as telephony_service_lib
from dealer_voice.services import voice_platform_service as voice_lib

Depends = fastapi.Depends
Request = fastapi.Request

instances: dict[str, Any] = {}


def build_instances(settings: Settings) -> dict[str, Any]:
  """Constructs every collaborator from one settings object."""
  crm_service = crm_service_lib.build_crm_service(settings)
  handler = completion_handler_lib.ConversationCompletionHandler(crm_service)
  return {
      "settings": settings,
      "crm_service": crm_service,
      "completion_handler": handler,
      "dealership_service": dealership_service_lib.MockDealershipService(
          reference_year=settings.TRADE_IN_REFERENCE_YEAR
      ),
      "telephony_service": telephony_service_lib.build_telephony_service(
          settings
      ),
      "voice_service": voice_lib.ElevenLabsVoiceService(settings),
      "call_metrics": metrics_service_lib.CallMetrics(),
  }


def get_settings() -> Settings:
  return instances["settings"]


def get_crm_service() -> crm_service_lib.CRMService:
  return instances["crm_service"]


def get_completion_handler() -> (
    completion_handler_lib.ConversationCompletionHandler
):
  return instances["completion_handler"]


def get_dealership_service() -> dealership_service_lib.MockDealershipService:
  return instances["dealership_service"]


def get_telephony_service() -> (
    telephony_service_lib.TwilioTelephonyService | None
):
  return instances.get("telephony_service")


def get_voice_service() -> voice_lib.ElevenLabsVoiceService:
  return instances["voice_service"]


def get_call_metrics() -> metrics_service_lib.CallMetrics:
  return instances["call_metrics"]


async def _check_signature(
    request: Request, header: str, secret: str
) -> None:
  body = await request.body()
  signature = request.headers.get(header)
  if not security.verify_webhook_signature(body, signature, secret):
    logging.warning(
        "SECURITY: Rejected %s with invalid %s.", request.url.path, header
    )
    raise errors.InvalidSignatureError(header)


async def verify_elevenlabs_signature(
    request: Request, settings: Settings = Depends(get_settings)
) -> None:
  """Rejects voice-platform webhooks whose signature does not match."""
  await _check_signature(
      request, "x-elevenlabs-signature", settings.ELEVENLABS_WEBHOOK_SECRET
  )


async def verify_dealer_hook_signature(
    request: Request, settings: Settings = Depends(get_settings)
) -> None:
  """Rejects dealer hook calls whose signature does not match."""
  await _check_signature(
      request, "x-webhook-signature", settings.WEBHOOK_SECRET
  )
