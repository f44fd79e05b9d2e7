"""Pydantic schemas for voice-platform tool and post-call webhooks.

Tool parameters are all optional: the voice agent fills them from the
conversation, and a missing value has to produce a spoken fallback rather than
a validation error the caller never hears.
"""

from typing import Any

import pydantic

Field = pydantic.Field
BaseModel = pydantic.BaseModel
AliasChoices = pydantic.AliasChoices
ConfigDict = pydantic.ConfigDict


class InventorySearchParameters(BaseModel):
  make: str | None = Field(None, description="Vehicle manufacturer.")
  model: str | None = Field(None, description="Vehicle model.")
  year: int | None = Field(None, description="Model year.")
  price_max: float | None = Field(None, description="Maximum price.")
  type: str | None = Field(
      None, description="Vehicle type (SUV, Sedan, Truck, etc.)."
  )


class ServiceParameters(BaseModel):
  service_type: str | None = Field(None, description="Type of service needed.")
  preferred_date: str | None = Field(
      None, description="Preferred appointment date (YYYY-MM-DD)."
  )
  vehicle_info: str | None = Field(
      None, description="Vehicle year, make, and model."
  )
  customer_name: str | None = Field(None, description="Customer name.")
  phone: str | None = Field(None, description="Contact phone number.")


class TradeParameters(BaseModel):
  year: int | None = Field(None, description="Vehicle year.")
  make: str | None = Field(None, description="Vehicle manufacturer.")
  model: str | None = Field(None, description="Vehicle model.")
  mileage: int | None = Field(None, description="Current mileage.")
  condition: str | None = Field(
      None, description="Vehicle condition (excellent, good, fair)."
  )


class TransferParameters(BaseModel):
  department: str = Field("general", description="Department to transfer to.")
  reason: str | None = Field(None, description="Reason for transfer.")
  customer_info: dict[str, Any] = Field(
      default_factory=dict, description="Customer information collected."
  )


class InventoryToolRequest(BaseModel):
  parameters: InventorySearchParameters = Field(
      default_factory=InventorySearchParameters
  )
  conversation_id: str | None = None


class ServiceToolRequest(BaseModel):
  parameters: ServiceParameters = Field(default_factory=ServiceParameters)
  conversation_id: str | None = None


class TradeToolRequest(BaseModel):
  parameters: TradeParameters = Field(default_factory=TradeParameters)
  conversation_id: str | None = None


class TransferToolRequest(BaseModel):
  parameters: TransferParameters = Field(default_factory=TransferParameters)
  conversation_id: str | None = None
  call_sid: str | None = Field(
      None, description="Twilio call SID of the live call, when bridged."
  )


class ToolResponse(BaseModel):
  """What the voice agent reads back to the caller."""

  success: bool
  message: str
  data: Any = None
  transfer_to_human: bool | None = None
  department: str | None = None
  action: str | None = None
  transfer_number: str | None = None


class TranscriptionPayload(BaseModel):
  call_id: str | None = None
  transcript: str = ""
  duration: int | None = None
  metadata: dict[str, Any] = Field(default_factory=dict)


class AudioPayload(BaseModel):
  call_id: str | None = None
  audio_base64: str | None = None
  duration: int | None = None
  metadata: dict[str, Any] = Field(default_factory=dict)


class PostCallPayload(BaseModel):
  """Post-call notification sent to the dealer hooks."""

  model_config = ConfigDict(populate_by_name=True, extra="allow")

  call_id: str | None = Field(
      None, validation_alias=AliasChoices("callId", "call_id")
  )
  duration: int | None = None
  status: str | None = None
  agent: str | None = Field(
      None, validation_alias=AliasChoices("agent", "agent_id")
  )
  intent: str | None = None
  transferred: bool = False
  lead_captured: bool = Field(
      False, validation_alias=AliasChoices("leadCaptured", "lead_captured")
  )
  appointment_scheduled: bool = Field(
      False,
      validation_alias=AliasChoices(
          "appointmentScheduled", "appointment_scheduled"
      ),
  )
  requires_follow_up: bool = Field(
      False,
      validation_alias=AliasChoices("requiresFollowUp", "requires_follow_up"),
  )
  error: str | None = None
