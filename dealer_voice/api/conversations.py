"""FastAPI router for conversation management and call completion."""

import logging

import fastapi

from dealer_voice import dependencies
from dealer_voice.handlers import completion_handler as completion_handler_lib
from dealer_voice.schemas import call as call_lib
from dealer_voice.services import crm_service as crm_service_lib
from dealer_voice.services import voice_platform_service as voice_lib

APIRouter = fastapi.APIRouter
Depends = fastapi.Depends
JSONResponse = fastapi.responses.JSONResponse
ConversationCompletePayload = call_lib.ConversationCompletePayload
ConversationStartPayload = call_lib.ConversationStartPayload
ConversationCompletionHandler = (
    completion_handler_lib.ConversationCompletionHandler
)
CRMService = crm_service_lib.CRMService
ElevenLabsVoiceService = voice_lib.ElevenLabsVoiceService


router = APIRouter(prefix="/api", tags=["Conversations"])


def _failure(error: Exception) -> JSONResponse:
  return JSONResponse(
      status_code=500, content={"success": False, "error": str(error)}
  )


@router.post("/initialize")
async def initialize_agent(
    voice_service: ElevenLabsVoiceService = Depends(
        dependencies.get_voice_service
    ),
):
  """Registers the dealership agent with the voice platform."""
  try:
    agent = await voice_service.setup_agent()
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("CONVERSATIONS: Agent setup failed: %s", e)
    return _failure(e)
  return {
      "success": True,
      "message": "Voice agent initialized successfully",
      "agent_id": agent.get("agent_id"),
      "status": "ready",
  }


@router.post("/conversation/start")
async def start_conversation(
    payload: ConversationStartPayload,
    voice_service: ElevenLabsVoiceService = Depends(
        dependencies.get_voice_service
    ),
    crm: CRMService = Depends(dependencies.get_crm_service),
):
  """Opens a conversation primed with what the CRM knows about the caller."""
  logging.info(
      "CONVERSATIONS: Starting conversation for %s", payload.customer_phone
  )
  try:
    customer = await crm.find_customer_by_phone(payload.customer_phone)
    conversation = await voice_service.start_conversation({
        "customer_id": customer.id if customer else None,
        "customer_name": payload.customer_name
        or (customer.name if customer else None),
        "customer_phone": payload.customer_phone,
        "context": payload.context,
        "existing_customer": customer is not None,
    })
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("CONVERSATIONS: Could not start conversation: %s", e)
    return _failure(e)
  return {
      "success": True,
      "conversation_id": conversation.get("conversation_id"),
      "session_url": conversation.get("session_url"),
      "customer_id": customer.id if customer else None,
  }


@router.post("/conversation/complete")
async def complete_conversation(
    payload: ConversationCompletePayload,
    handler: ConversationCompletionHandler = Depends(
        dependencies.get_completion_handler
    ),
):
  """Runs the post-call CRM pipeline for a finished conversation."""
  try:
    result = await handler.complete(
        payload.call_data, conversation_id=payload.conversation_id
    )
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("CONVERSATIONS: Conversation completion error: %s", e)
    return _failure(e)
  return {"success": True, **result.model_dump(mode="json")}


@router.get("/conversation/{conversation_id}/status")
async def conversation_status(
    conversation_id: str,
    voice_service: ElevenLabsVoiceService = Depends(
        dependencies.get_voice_service
    ),
):
  """Reports the voice platform's view of a conversation."""
  try:
    status = await voice_service.get_conversation_status(conversation_id)
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("CONVERSATIONS: Status lookup failed: %s", e)
    return _failure(e)
  return {"success": True, "conversation_id": conversation_id, **status}
