"""FastAPI router for dealer notification hooks and call metrics."""

import logging
from typing import Any

import fastapi

from dealer_voice import dependencies
from dealer_voice.schemas import tools as tools_lib
from dealer_voice.services import metrics_service as metrics_service_lib

APIRouter = fastapi.APIRouter
Body = fastapi.Body
Depends = fastapi.Depends
PostCallPayload = tools_lib.PostCallPayload
CallMetrics = metrics_service_lib.CallMetrics

router = APIRouter(prefix="/hooks", tags=["Dealer Hooks"])
_signed = [Depends(dependencies.verify_dealer_hook_signature)]


@router.post("/postcall", dependencies=_signed)
async def post_call(
    payload: PostCallPayload,
    metrics: CallMetrics = Depends(dependencies.get_call_metrics),
) -> dict[str, Any]:
  """Records a finished call in the metrics."""
  logging.info(
      "HOOKS: Post-call received. CallId: %s, Duration: %s, Status: %s,"
      " Agent: %s",
      payload.call_id,
      payload.duration,
      payload.status,
      payload.agent,
  )
  metrics.record(payload)
  if payload.requires_follow_up:
    logging.info("HOOKS: Follow-up required for call %s", payload.call_id)
  return {"success": True, "message": "Webhook processed successfully"}


@router.post("/lead", dependencies=_signed)
async def lead_hook(
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
  logging.info("HOOKS: Lead webhook received: %s", payload)
  return {"success": True, "message": "Lead webhook processed"}


@router.post("/service", dependencies=_signed)
async def service_hook(
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
  logging.info("HOOKS: Service webhook received: %s", payload)
  return {"success": True, "message": "Service webhook processed"}


@router.get("/metrics")
async def call_metrics(
    metrics: CallMetrics = Depends(dependencies.get_call_metrics),
) -> dict[str, Any]:
  return metrics.snapshot()
