"""FastAPI router for the voice agent's tool and post-call webhooks.

Tool endpoints always answer 200: whatever goes wrong, the agent gets a
message it can say to the caller, usually an offer to reach a human.
"""

import datetime
import logging
from typing import Any

import fastapi

from dealer_voice import dependencies
from dealer_voice.config import Settings
from dealer_voice.core import extraction
from dealer_voice.schemas import tools as tools_lib
from dealer_voice.services import crm_service as crm_service_lib
from dealer_voice.services import dealership_service as dealership_service_lib
from dealer_voice.services import telephony_service as telephony_service_lib

APIRouter = fastapi.APIRouter
Depends = fastapi.Depends
AudioPayload = tools_lib.AudioPayload
InventoryToolRequest = tools_lib.InventoryToolRequest
ServiceToolRequest = tools_lib.ServiceToolRequest
ToolResponse = tools_lib.ToolResponse
TradeToolRequest = tools_lib.TradeToolRequest
TranscriptionPayload = tools_lib.TranscriptionPayload
TransferToolRequest = tools_lib.TransferToolRequest
CRMService = crm_service_lib.CRMService
DealershipService = dealership_service_lib.MockDealershipService
TelephonyService = telephony_service_lib.TwilioTelephonyService

DEPARTMENT_PHONES = {
    "sales": "555-0101",
    "service": "555-0102",
    "finance": "555-0103",
    "appraisal": "555-0104",
    "general": "555-0100",
}
_MAX_SPOKEN_VEHICLES = 3

router = APIRouter(
    tags=["Tools"],
    dependencies=[Depends(dependencies.verify_elevenlabs_signature)],
)


def _describe_vehicle(vehicle: dict[str, Any]) -> str:
  return (
      f"A {vehicle['year']} {vehicle['make']} {vehicle['model']} for"
      f" ${vehicle['price']:,}, with {vehicle['mileage']:,} miles"
  )


@router.post(
    "/tools/inventory",
    response_model=ToolResponse,
    response_model_exclude_none=True,
)
async def inventory_search(
    request: InventoryToolRequest,
    dealership: DealershipService = Depends(
        dependencies.get_dealership_service
    ),
) -> ToolResponse:
  """Searches inventory and reads back the best matches."""
  try:
    inventory = await dealership.search_inventory(
        request.parameters.model_dump(exclude_none=True)
    )
    if not inventory:
      return ToolResponse(
          success=True,
          message=(
              "I couldn't find any vehicles matching your criteria, but I can"
              " help you explore other options or place a custom order."
          ),
          data=[],
      )

    top_matches = inventory[:_MAX_SPOKEN_VEHICLES]
    options = "; ".join(_describe_vehicle(vehicle) for vehicle in top_matches)
    return ToolResponse(
        success=True,
        message=(
            f"I found {len(inventory)} vehicles matching your search. Here are"
            f" the top options: {options}. Would you like more details on any"
            " of these?"
        ),
        data=top_matches,
    )
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("TOOLS: Inventory search error: %s", e)
    return ToolResponse(
        success=False,
        message=(
            "I'm having trouble searching our inventory right now. Let me"
            " connect you with someone who can help."
        ),
        transfer_to_human=True,
    )


@router.post(
    "/tools/service",
    response_model=ToolResponse,
    response_model_exclude_none=True,
)
async def schedule_service(
    request: ServiceToolRequest,
    dealership: DealershipService = Depends(
        dependencies.get_dealership_service
    ),
    telephony: TelephonyService | None = Depends(
        dependencies.get_telephony_service
    ),
    settings: Settings = Depends(dependencies.get_settings),
) -> ToolResponse:
  """Books a service appointment or offers alternative dates."""
  params = request.parameters
  try:
    availability = await dealership.check_service_availability(
        params.preferred_date, params.service_type
    )

    if not availability["available"]:
      alternative_dates = await dealership.get_alternative_service_dates(
          params.preferred_date, params.service_type
      )
      return ToolResponse(
          success=True,
          message=(
              f"I don't have availability on {params.preferred_date}, but I"
              f" can offer you {' or '.join(alternative_dates)}. Which would"
              " work better for you?"
          ),
          data={"alternative_dates": alternative_dates},
      )

    appointment = await dealership.create_service_appointment({
        "service_type": params.service_type,
        "date": params.preferred_date,
        "vehicle": params.vehicle_info,
        "customer": {"name": params.customer_name, "phone": params.phone},
        "time_slot": availability["next_available_slot"],
    })

    if telephony is not None and params.phone:
      await telephony.send_sms(
          params.phone,
          f"{settings.DEALER_NAME}: your {params.service_type} appointment is"
          f" confirmed for {params.preferred_date} at {appointment['time']}.",
      )

    return ToolResponse(
        success=True,
        message=(
            f"Perfect! I've scheduled your {params.service_type} appointment"
            f" for {params.preferred_date} at {appointment['time']}. You'll"
            f" receive a confirmation text at {params.phone}. Is there"
            " anything else I can help you with?"
        ),
        data=appointment,
    )
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("TOOLS: Service scheduling error: %s", e)
    return ToolResponse(
        success=False,
        message=(
            "I'm having trouble accessing our service calendar. Let me"
            " transfer you to our service department."
        ),
        transfer_to_human=True,
        department="service",
    )


@router.post(
    "/tools/trade",
    response_model=ToolResponse,
    response_model_exclude_none=True,
)
async def check_trade_value(
    request: TradeToolRequest,
    dealership: DealershipService = Depends(
        dependencies.get_dealership_service
    ),
) -> ToolResponse:
  """Quotes a trade-in range for the caller's vehicle."""
  params = request.parameters
  try:
    valuation = await dealership.get_trade_in_value(params.model_dump())
    return ToolResponse(
        success=True,
        message=(
            f"Based on a {params.year} {params.make} {params.model} with"
            f" {params.mileage:,} miles in {params.condition} condition, I can"
            " offer you an estimated trade-in value between"
            f" ${valuation['min']:,} and ${valuation['max']:,}. The final value"
            " depends on our in-person inspection. Would you like to schedule"
            " an appraisal appointment?"
        ),
        data={
            "min_value": valuation["min"],
            "max_value": valuation["max"],
            "average_value": valuation["average"],
            "factors": valuation["factors"],
        },
    )
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("TOOLS: Trade-in valuation error: %s", e)
    return ToolResponse(
        success=False,
        message=(
            "I need a bit more information to provide an accurate trade-in"
            " value. Let me connect you with our appraisal team."
        ),
        transfer_to_human=True,
        department="appraisal",
    )


@router.post(
    "/tools/transfer",
    response_model=ToolResponse,
    response_model_exclude_none=True,
)
async def transfer_to_human(
    request: TransferToolRequest,
    dealership: DealershipService = Depends(
        dependencies.get_dealership_service
    ),
    telephony: TelephonyService | None = Depends(
        dependencies.get_telephony_service
    ),
) -> ToolResponse:
  """Queues the caller for a human and hands over the department number."""
  params = request.parameters
  try:
    transfer_number = DEPARTMENT_PHONES.get(
        params.department, DEPARTMENT_PHONES["general"]
    )
    transfer_request = await dealership.queue_for_human_agent({
        "department": params.department,
        "reason": params.reason,
        "customer_info": params.customer_info,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "conversation_id": request.conversation_id,
    })

    if telephony is not None and request.call_sid:
      await telephony.transfer_call(request.call_sid, transfer_number)

    return ToolResponse(
        success=True,
        message=(
            f"I'll transfer you to our {params.department} team right away. If"
            " we get disconnected, you can reach them directly at"
            f" {transfer_number}. Please hold while I connect you."
        ),
        action="transfer",
        transfer_number=transfer_number,
        data=transfer_request,
    )
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("TOOLS: Transfer error: %s", e)
    return ToolResponse(
        success=True,
        message="I'll get someone to help you right away. Please hold.",
        action="transfer",
        transfer_number=DEPARTMENT_PHONES["general"],
    )


@router.post("/transcription")
async def receive_transcription(
    payload: TranscriptionPayload,
    dealership: DealershipService = Depends(
        dependencies.get_dealership_service
    ),
    crm: CRMService = Depends(dependencies.get_crm_service),
) -> dict[str, Any]:
  """Stores a post-call transcript and captures any contact details in it.

  Always acknowledges, so the voice platform does not redeliver.
  """
  try:
    await dealership.store_call_transcript({
        "call_id": payload.call_id,
        "transcript": payload.transcript,
        "duration": payload.duration,
        "metadata": payload.metadata,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    })

    contact = extraction.extract_lead_information(
        payload.transcript, payload.metadata
    )
    if contact.phone or contact.email:
      await crm.capture_contact(contact, call_id=payload.call_id)
    return {"received": True}
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("TOOLS: Transcription webhook error: %s", e)
    return {"received": True, "error": str(e)}


@router.post("/audio")
async def receive_audio(
    payload: AudioPayload,
    dealership: DealershipService = Depends(
        dependencies.get_dealership_service
    ),
) -> dict[str, Any]:
  """Stores post-call audio for quality assurance."""
  try:
    await dealership.store_call_audio({
        "call_id": payload.call_id,
        "audio_base64": payload.audio_base64,
        "duration": payload.duration,
        "metadata": payload.metadata,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    })
    return {"received": True}
  except Exception as e:  # pylint: disable=broad-exception-caught
    logging.exception("TOOLS: Audio webhook error: %s", e)
    return {"received": True, "error": str(e)}
