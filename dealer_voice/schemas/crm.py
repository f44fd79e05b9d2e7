"""Records owned by the CRM."""

import datetime
from typing import Any, Literal

import pydantic

Field = pydantic.Field
BaseModel = pydantic.BaseModel


def _now() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


class Customer(BaseModel):
  """A dealership customer, keyed by phone number."""

  id: str
  phone: str | None = None
  name: str | None = None
  email: str | None = None
  preferences: dict[str, Any] = Field(default_factory=dict)
  vehicle_interest: list[str] = Field(default_factory=list)
  communication_history: list[dict[str, Any]] = Field(default_factory=list)
  last_contact: datetime.datetime | None = None
  created_at: datetime.datetime | None = None
  updated_at: datetime.datetime | None = None


class ActivityRecord(BaseModel):
  """A logged voice call on a customer's timeline."""

  type: str = "voice_call"
  timestamp: datetime.datetime = Field(default_factory=_now)
  customer_id: str | None = None
  conversation_id: str | None = None
  duration: int = 0
  summary: str = ""
  sentiment: str = "neutral"
  outcome: str = ""
  follow_up_required: bool = False
  agent_type: str = "ai_voice"
  recording_url: str | None = None


class ContactInfo(BaseModel):
  name: str | None = None
  phone: str | None = None
  email: str | None = None


class Lead(BaseModel):
  """A sales opportunity created from a qualifying conversation."""

  id: str
  source: str = "voice_ai"
  status: str = "new"
  score: int = Field(50, ge=0, le=100)
  contact_info: ContactInfo = Field(default_factory=ContactInfo)
  customer_id: str | None = None
  interests: list[str] = Field(default_factory=list)
  budget: int | None = None
  timeline: str = "exploring"
  trade_in: bool = False
  financing_interest: bool = False
  assigned_to: str | None = None
  created_at: datetime.datetime = Field(default_factory=_now)


class FollowUpTask(BaseModel):
  """A scheduled follow-up call for a sales agent."""

  id: str
  type: str = "follow_up_call"
  customer_id: str
  lead_id: str | None = None
  scheduled_for: datetime.datetime
  priority: Literal["high", "normal"] = "normal"
  notes: str = ""
  assigned_to: str | None = None
  created_at: datetime.datetime = Field(default_factory=_now)
