"""Turns a finished voice conversation into CRM records."""

import datetime
import logging
from typing import Callable

from dealer_voice.core import analytics as analytics_lib
from dealer_voice.core import extraction
from dealer_voice.schemas import call as call_lib
from dealer_voice.services import crm_service as crm_service_lib

Analytics = call_lib.Analytics
CallData = call_lib.CallData
CompletionResult = call_lib.CompletionResult
Outcome = call_lib.Outcome
CRMService = crm_service_lib.CRMService
Clock = Callable[[], datetime.datetime]

# Tools whose use signals buying interest.
LEAD_INDICATOR_TOOLS = frozenset(
    {"inventory_search", "check_trade_value", "financing"}
)

_TOOL_ACTIONS = (
    ("inventory_search", "searched inventory"),
    ("schedule_service", "scheduled service"),
    ("check_trade_value", "inquired about trade-in"),
    ("transfer_to_human", "transferred to agent"),
)

_FOLLOW_UP_DELAY_DAYS = {
    "immediate": 1,
    "this_week": 3,
    "this_month": 7,
}
_DEFAULT_FOLLOW_UP_DELAY_DAYS = 14
_HIGH_PRIORITY_SCORE = 70


def _utcnow() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


def generate_conversation_summary(call_data: CallData) -> str:
  """Describes what the caller did, e.g. "Customer searched inventory."."""
  tools = call_data.tools_triggered
  actions = [phrase for tool, phrase in _TOOL_ACTIONS if tool in tools]
  activity = ", ".join(actions) if actions else "made a general inquiry"
  return (
      f"Customer {activity}. Call duration: {call_data.duration} seconds."
  )


def determine_outcome(call_data: CallData) -> Outcome:
  """Classifies the call outcome; earlier rules take precedence."""
  tools = call_data.tools_triggered
  if "schedule_service" in tools:
    return "appointment_scheduled"
  if "transfer_to_human" in tools:
    return "transferred_to_agent"
  if call_data.resolution:
    return "resolved"
  return "information_provided"


def should_create_lead(call_data: CallData) -> bool:
  return not LEAD_INDICATOR_TOOLS.isdisjoint(call_data.tools_triggered)


def calculate_follow_up_date(
    timeline: str, now: datetime.datetime
) -> datetime.datetime:
  """Schedules a follow-up sooner for callers who intend to buy sooner.

  Args:
    timeline: The caller's timeline classification.
    now: When the call completed.

  Returns:
    1, 3 or 7 days after `now` for immediate, this-week and this-month
    buyers; 14 days for everyone else.
  """
  days = _FOLLOW_UP_DELAY_DAYS.get(timeline, _DEFAULT_FOLLOW_UP_DELAY_DAYS)
  return now + datetime.timedelta(days=days)


class ConversationCompletionHandler:
  """Runs the post-call pipeline for one finished conversation at a time.

  The steps run strictly in order: analytics, customer upsert, activity log,
  lead creation and follow-up scheduling. Nothing is retried and earlier CRM
  writes are not undone if a later one fails; the exception reaches the
  caller.
  """

  def __init__(self, crm_service: CRMService, clock: Clock = _utcnow):
    self.crm_service = crm_service
    self.clock = clock

  async def complete(
      self, call_data: CallData, conversation_id: str | None = None
  ) -> CompletionResult:
    """Processes a finished call.

    Args:
      call_data: The finished call as reported by the voice platform.
      conversation_id: The platform conversation the call belongs to.

    Returns:
      The customer id, the call analytics and the ids of any lead and
      follow-up task created.
    """
    logging.info(
        "COMPLETION: Processing call %s (conversation %s).",
        call_data.call_id,
        conversation_id,
    )
    analytics = analytics_lib.process_call_analytics(call_data)

    customer_info = extraction.extract_customer_info(call_data)
    customer = await self.crm_service.upsert_customer(customer_info)

    await self.crm_service.log_conversation(
        customer_id=customer.id,
        conversation_id=conversation_id,
        duration=analytics.duration,
        summary=generate_conversation_summary(call_data),
        sentiment=analytics.customer_sentiment,
        outcome=determine_outcome(call_data),
        follow_up_required=analytics.follow_up_required,
        recording_url=call_data.recording_url,
    )

    lead_id = None
    follow_up_task_id = None
    if should_create_lead(call_data):
      lead_id, follow_up_task_id = await self._create_lead(
          call_data, customer.id, analytics
      )
    else:
      logging.info(
          "COMPLETION: Call %s did not qualify as a lead.", call_data.call_id
      )

    return CompletionResult(
        customer_id=customer.id,
        analytics=analytics,
        crm_updated=True,
        lead_id=lead_id,
        follow_up_task_id=follow_up_task_id,
    )

  async def _create_lead(
      self, call_data: CallData, customer_id: str, analytics: Analytics
  ) -> tuple[str, str | None]:
    lead_info = extraction.extract_lead_data(call_data)
    lead = await self.crm_service.create_lead(
        lead_info, customer_id=customer_id
    )

    if not analytics.follow_up_required:
      return lead.id, None

    task = await self.crm_service.schedule_follow_up(
        customer_id=customer_id,
        lead_id=lead.id,
        scheduled_date=calculate_follow_up_date(
            lead_info.timeline, self.clock()
        ),
        priority="high" if lead.score > _HIGH_PRIORITY_SCORE else "normal",
        notes=f"Follow up on {', '.join(lead_info.interests)}",
        assigned_to=lead.assigned_to,
    )
    return lead.id, task.id
