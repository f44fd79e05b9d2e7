"""Pydantic schemas for finished calls and the records derived from them."""

from typing import Any, Literal

import pydantic

Field = pydantic.Field
BaseModel = pydantic.BaseModel
ConfigDict = pydantic.ConfigDict

Timeline = Literal[
    "immediate", "this_week", "this_month", "next_month", "exploring"
]
Sentiment = Literal["positive", "neutral", "negative"]
Outcome = Literal[
    "appointment_scheduled",
    "transferred_to_agent",
    "resolved",
    "information_provided",
]


class CallData(BaseModel):
  """A finished conversation as reported by the voice platform."""

  model_config = ConfigDict(frozen=True)

  call_id: str | None = Field(
      None, description="Identifier of the call on the voice platform."
  )
  duration: int = Field(0, description="Call duration in seconds.")
  transcript: str | None = Field(
      None, description="Raw transcript text. Missing is treated as empty."
  )
  customer_phone: str | None = Field(
      None, description="The caller's phone number."
  )
  customer_name: str | None = Field(
      None, description="Caller name, when the platform knows it."
  )
  tools_triggered: list[str] = Field(
      default_factory=list,
      description="Names of the tools the agent invoked during the call.",
  )
  tool_parameters: dict[str, dict[str, Any] | None] = Field(
      default_factory=dict,
      description="Invocation parameters keyed by tool name.",
  )
  resolution: bool | None = Field(
      None, description="Whether the caller's request was resolved."
  )
  recording_url: str | None = Field(
      None, description="Where the call recording can be fetched."
  )
  intent: str | None = Field(
      None, description="Intent detected by the voice platform."
  )


class CustomerInfo(BaseModel):
  """Customer fields derived from a call, ready for a CRM upsert."""

  phone: str | None = None
  name: str | None = None
  email: str | None = None
  preferences: dict[str, str] = Field(default_factory=dict)
  vehicle_interest: list[str] = Field(default_factory=list)


class ExtractedLeadInfo(BaseModel):
  """Sales-lead fields derived from a call transcript and its metadata."""

  name: str | None = None
  phone: str | None = None
  email: str | None = None
  interests: list[str] = Field(default_factory=list)
  budget: int | None = None
  timeline: Timeline = "exploring"
  trade_in: bool = False
  financing_interest: bool = False


class TranscriptLeadInfo(BaseModel):
  """Contact details pulled from a post-call transcription webhook."""

  has_contact_info: bool = True
  phone: str | None = None
  email: str | None = None
  intent: str = "general_inquiry"
  transcript_excerpt: str = ""


class Analytics(BaseModel):
  """Per-call analytics record."""

  call_id: str | None = None
  duration: int = 0
  customer_sentiment: Sentiment = "neutral"
  intent_detected: str | None = None
  tools_used: list[str] = Field(default_factory=list)
  resolution_status: bool | None = None
  follow_up_required: bool = False


class CompletionResult(BaseModel):
  """What the completion pipeline reports back to the caller."""

  customer_id: str
  analytics: Analytics
  crm_updated: bool = True
  lead_id: str | None = None
  follow_up_task_id: str | None = None


class ConversationCompletePayload(BaseModel):
  """Body of the conversation-complete trigger."""

  conversation_id: str | None = None
  call_data: CallData


class ConversationStartPayload(BaseModel):
  """Body of a request to open a new voice conversation."""

  customer_phone: str = Field(..., description="Phone number of the caller.")
  customer_name: str | None = None
  context: dict[str, Any] | str | None = None
