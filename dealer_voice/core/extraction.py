"""Pattern-based extraction of customer and lead details from call transcripts.

Every function here is pure and total: a rule that does not match yields None
(or an empty list) instead of raising.
"""

import re
from typing import Any

from dealer_voice.schemas import call as call_lib

CallData = call_lib.CallData
CustomerInfo = call_lib.CustomerInfo
ExtractedLeadInfo = call_lib.ExtractedLeadInfo
TranscriptLeadInfo = call_lib.TranscriptLeadInfo
Timeline = call_lib.Timeline

_NAME_PATTERN = re.compile(r"my name is ([A-Za-z]+ [A-Za-z]+)", re.IGNORECASE)
_EMAIL_PATTERN = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
_PHONE_PATTERN = re.compile(r"\d{3}[-.]?\d{3}[-.]?\d{4}")
# Matches 4-6 digit amounts with at most one thousands separator; "500" is not
# a budget and "1,000,000" reads as 1000.
_BUDGET_PATTERN = re.compile(r"\$?(\d{1,3},?\d{3})")

# Ordered; the first phrase found decides the timeline.
_TIMELINE_PHRASES: tuple[tuple[tuple[str, ...], Timeline], ...] = (
    (("today", "now"), "immediate"),
    (("this week",), "this_week"),
    (("this month",), "this_month"),
    (("next month",), "next_month"),
)

_TRANSCRIPT_EXCERPT_LENGTH = 500

_DEFAULT_PREFERENCES = {
    "communication_channel": "voice",
    "best_time_to_call": "morning",
}


def extract_name(transcript: str | None) -> str | None:
  """Returns the "<First> <Last>" following "my name is", if any."""
  match = _NAME_PATTERN.search(transcript or "")
  return match.group(1) if match else None


def extract_email(transcript: str | None) -> str | None:
  match = _EMAIL_PATTERN.search(transcript or "")
  return match.group(0) if match else None


def extract_phone(transcript: str | None) -> str | None:
  """Returns the first 10-digit phone number, separators included."""
  match = _PHONE_PATTERN.search(transcript or "")
  return match.group(0) if match else None


def extract_budget(transcript: str | None) -> int | None:
  """Finds the first price-like amount in a transcript.

  Args:
    transcript: The raw transcript text.

  Returns:
    The amount in whole currency units, or None when nothing price-like was
    said.
  """
  match = _BUDGET_PATTERN.search(transcript or "")
  if not match:
    return None
  return int(match.group(1).replace(",", ""))


def classify_timeline(transcript: str | None) -> Timeline:
  """Classifies how soon the caller intends to buy.

  Plain substring matching, so "know" counts as "now".
  """
  lowered = (transcript or "").lower()
  for phrases, timeline in _TIMELINE_PHRASES:
    if any(phrase in lowered for phrase in phrases):
      return timeline
  return "exploring"


def has_trade_in(tools_triggered: list[str] | None) -> bool:
  return "check_trade_value" in (tools_triggered or [])


def has_financing_interest(transcript: str | None) -> bool:
  # Matches both "financing" and "finance".
  return "financ" in (transcript or "").lower()


def extract_vehicle_interest(call_data: CallData) -> list[str]:
  """Builds the vehicle the caller searched for from the inventory tool call.

  Args:
    call_data: The finished call.

  Returns:
    A single-element list such as ["2024 Toyota RAV4"] when the inventory
    search tool ran with parameters, else an empty list.
  """
  if "inventory_search" not in call_data.tools_triggered:
    return []

  search_params = call_data.tool_parameters.get("inventory_search")
  if not search_params:
    return []

  parts = [
      str(search_params.get(field) or "").strip()
      for field in ("year", "make", "model")
  ]
  vehicle = " ".join(part for part in parts if part)
  return [vehicle] if vehicle else []


def _caller_name(call_data: CallData) -> str | None:
  return call_data.customer_name or extract_name(call_data.transcript)


def extract_customer_info(call_data: CallData) -> CustomerInfo:
  """Derives the customer record to upsert into the CRM."""
  return CustomerInfo(
      phone=call_data.customer_phone,
      name=_caller_name(call_data),
      email=extract_email(call_data.transcript),
      preferences=dict(_DEFAULT_PREFERENCES),
      vehicle_interest=extract_vehicle_interest(call_data),
  )


def extract_lead_data(call_data: CallData) -> ExtractedLeadInfo:
  """Derives the full set of sales-lead fields for a qualifying call."""
  return ExtractedLeadInfo(
      name=_caller_name(call_data),
      phone=call_data.customer_phone,
      email=extract_email(call_data.transcript),
      interests=extract_vehicle_interest(call_data),
      budget=extract_budget(call_data.transcript),
      timeline=classify_timeline(call_data.transcript),
      trade_in=has_trade_in(call_data.tools_triggered),
      financing_interest=has_financing_interest(call_data.transcript),
  )


def extract_lead_information(
    transcript: str | None, metadata: dict[str, Any] | None
) -> TranscriptLeadInfo:
  """Extracts contact details from a post-call transcription webhook.

  Args:
    transcript: The transcript delivered by the voice platform.
    metadata: Call metadata; only "intent" is read.

  Returns:
    The contact details found, an intent and a short transcript excerpt.
  """
  transcript = transcript or ""
  metadata = metadata or {}
  return TranscriptLeadInfo(
      has_contact_info=True,
      phone=extract_phone(transcript),
      email=extract_email(transcript),
      intent=metadata.get("intent") or "general_inquiry",
      transcript_excerpt=transcript[:_TRANSCRIPT_EXCERPT_LENGTH],
  )
