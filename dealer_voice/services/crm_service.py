"""CRM services.

`CRMService` is the capability interface the call-completion pipeline talks
to. `MockCRMService` keeps everything in memory and is what runs when no CRM
endpoint is configured; `HttpCRMService` talks to a JSON REST CRM.
"""

import abc
import asyncio
import datetime
import logging
import uuid
from typing import Any, Callable

import aiohttp

from dealer_voice.config import Settings
from dealer_voice.core import errors
from dealer_voice.core import scoring
from dealer_voice.schemas import call as call_lib
from dealer_voice.schemas import crm as crm_lib

ActivityRecord = crm_lib.ActivityRecord
ContactInfo = crm_lib.ContactInfo
Customer = crm_lib.Customer
FollowUpTask = crm_lib.FollowUpTask
Lead = crm_lib.Lead
CustomerInfo = call_lib.CustomerInfo
ExtractedLeadInfo = call_lib.ExtractedLeadInfo
TranscriptLeadInfo = call_lib.TranscriptLeadInfo
AgentAssigner = scoring.AgentAssigner
CRMError = errors.CRMError
SessionFactory = Callable[..., aiohttp.ClientSession]


def _now() -> datetime.datetime:
  return datetime.datetime.now(datetime.timezone.utc)


def _new_id(prefix: str) -> str:
  return f"{prefix}{uuid.uuid4().hex[:12].upper()}"


class CRMService(abc.ABC):
  """Operations the voice integration needs from a CRM.

  Customers are upserted by phone number. Leads are scored with
  `scoring.calculate_lead_score` and routed with the injected assigner, so
  every backend scores and assigns the same way.
  """

  def __init__(self, agent_assigner: AgentAssigner):
    self.agent_assigner = agent_assigner

  @abc.abstractmethod
  async def find_customer_by_phone(self, phone: str | None) -> Customer | None:
    """Returns the customer with this phone number, if there is one."""

  @abc.abstractmethod
  async def upsert_customer(self, customer_info: CustomerInfo) -> Customer:
    """Creates the customer, or updates the one sharing its phone number."""

  @abc.abstractmethod
  async def log_conversation(
      self,
      *,
      customer_id: str,
      duration: int,
      summary: str,
      sentiment: str,
      outcome: str,
      follow_up_required: bool,
      recording_url: str | None,
      conversation_id: str | None = None,
  ) -> ActivityRecord:
    """Adds a voice-call activity to the customer's history."""

  @abc.abstractmethod
  async def create_lead(
      self, lead_info: ExtractedLeadInfo, customer_id: str | None = None
  ) -> Lead:
    """Creates a scored and assigned sales lead."""

  @abc.abstractmethod
  async def schedule_follow_up(
      self,
      *,
      customer_id: str,
      lead_id: str | None,
      scheduled_date: datetime.datetime,
      priority: str,
      notes: str,
      assigned_to: str | None,
  ) -> FollowUpTask:
    """Schedules a follow-up call task."""

  @abc.abstractmethod
  async def capture_contact(
      self, contact: TranscriptLeadInfo, call_id: str | None = None
  ) -> dict[str, Any]:
    """Records contact details heard in a transcript.

    This is not a sales lead: it is neither scored nor assigned, and leads
    stay the business of the call-completion pipeline.
    """

  def build_lead_fields(
      self, lead_info: ExtractedLeadInfo, customer_id: str | None
  ) -> dict[str, Any]:
    """Returns the lead record fields, score and assignee included."""
    return {
        "source": "voice_ai",
        "status": "new",
        "score": scoring.calculate_lead_score(lead_info),
        "contact_info": ContactInfo(
            name=lead_info.name, phone=lead_info.phone, email=lead_info.email
        ),
        "customer_id": customer_id,
        "interests": list(lead_info.interests),
        "budget": lead_info.budget,
        "timeline": lead_info.timeline,
        "trade_in": lead_info.trade_in,
        "financing_interest": lead_info.financing_interest,
        "assigned_to": self.agent_assigner.assign(lead_info),
        "created_at": _now(),
    }


class MockCRMService(CRMService):
  """Keeps CRM records in memory.

  In a real deployment this is replaced by `HttpCRMService` or another
  backend implementing `CRMService`.
  """

  def __init__(self, agent_assigner: AgentAssigner, latency: float = 0.0):
    super().__init__(agent_assigner)
    self.latency = latency
    self.customers: dict[str, Customer] = {}
    self.leads: dict[str, Lead] = {}
    self.tasks: dict[str, FollowUpTask] = {}
    self.activities: list[ActivityRecord] = []
    self.contacts: list[dict[str, Any]] = []

  async def _simulate_latency(self):
    if self.latency:
      await asyncio.sleep(self.latency)

  async def find_customer_by_phone(self, phone: str | None) -> Customer | None:
    logging.info("CRM_SERVICE: Looking up customer by phone %s...", phone)
    await self._simulate_latency()
    if not phone:
      return None
    for customer in self.customers.values():
      if customer.phone == phone:
        return customer
    return None

  async def upsert_customer(self, customer_info: CustomerInfo) -> Customer:
    existing = await self.find_customer_by_phone(customer_info.phone)
    now = _now()

    if existing is None:
      customer = Customer(
          id=_new_id("CUST"),
          phone=customer_info.phone,
          name=customer_info.name,
          email=customer_info.email,
          preferences=dict(customer_info.preferences),
          vehicle_interest=list(customer_info.vehicle_interest),
          last_contact=now,
          created_at=now,
      )
      logging.info(
          "CRM_SERVICE: Creating new customer %s for %s.",
          customer.id,
          customer.phone,
      )
    else:
      # Fields the call did not reveal keep their stored values.
      customer = existing.model_copy(
          update={
              "name": customer_info.name or existing.name,
              "email": customer_info.email or existing.email,
              "preferences": {
                  **existing.preferences,
                  **customer_info.preferences,
              },
              "vehicle_interest": existing.vehicle_interest
              + [
                  vehicle
                  for vehicle in customer_info.vehicle_interest
                  if vehicle not in existing.vehicle_interest
              ],
              "last_contact": now,
              "updated_at": now,
          }
      )
      logging.info("CRM_SERVICE: Updating customer %s.", customer.id)

    self.customers[customer.id] = customer
    return customer

  async def log_conversation(
      self,
      *,
      customer_id: str,
      duration: int,
      summary: str,
      sentiment: str,
      outcome: str,
      follow_up_required: bool,
      recording_url: str | None,
      conversation_id: str | None = None,
  ) -> ActivityRecord:
    activity = ActivityRecord(
        customer_id=customer_id,
        conversation_id=conversation_id,
        duration=duration,
        summary=summary,
        sentiment=sentiment,
        outcome=outcome,
        follow_up_required=follow_up_required,
        recording_url=recording_url,
    )
    logging.info("CRM_SERVICE: Adding activity to customer %s.", customer_id)
    await self._simulate_latency()

    customer = self.customers.get(customer_id)
    if customer is not None:
      customer.communication_history.append(activity.model_dump(mode="json"))
    self.activities.append(activity)
    return activity

  async def create_lead(
      self, lead_info: ExtractedLeadInfo, customer_id: str | None = None
  ) -> Lead:
    fields = self.build_lead_fields(lead_info, customer_id)
    lead = Lead(id=_new_id("LEAD"), **fields)
    logging.info(
        "CRM_SERVICE: Creating lead %s (score %s) assigned to %s.",
        lead.id,
        lead.score,
        lead.assigned_to,
    )
    await self._simulate_latency()
    self.leads[lead.id] = lead
    return lead

  async def schedule_follow_up(
      self,
      *,
      customer_id: str,
      lead_id: str | None,
      scheduled_date: datetime.datetime,
      priority: str,
      notes: str,
      assigned_to: str | None,
  ) -> FollowUpTask:
    task = FollowUpTask(
        id=_new_id("TASK"),
        customer_id=customer_id,
        lead_id=lead_id,
        scheduled_for=scheduled_date,
        priority=priority,
        notes=notes,
        assigned_to=assigned_to,
    )
    logging.info(
        "CRM_SERVICE: Scheduling %s priority follow-up %s for %s.",
        task.priority,
        task.id,
        task.scheduled_for.isoformat(),
    )
    await self._simulate_latency()
    self.tasks[task.id] = task
    return task

  async def capture_contact(
      self, contact: TranscriptLeadInfo, call_id: str | None = None
  ) -> dict[str, Any]:
    record = {
        "id": _new_id("CONT"),
        "call_id": call_id,
        **contact.model_dump(exclude={"has_contact_info"}),
        "captured_at": _now(),
    }
    logging.info(
        "CRM_SERVICE: Captured contact %s from call %s.", record["id"], call_id
    )
    await self._simulate_latency()
    self.contacts.append(record)
    return record


class HttpCRMService(CRMService):
  """Talks to a JSON REST CRM.

  Expected resources, relative to the endpoint: `GET /customers?phone=`,
  `POST /customers`, `PATCH /customers/{id}`,
  `POST /customers/{id}/activities`, `POST /leads`, `POST /tasks` and
  `POST /contacts`.
  """

  def __init__(
      self,
      endpoint: str,
      api_key: str,
      agent_assigner: AgentAssigner,
      session_factory: SessionFactory = aiohttp.ClientSession,
  ):
    super().__init__(agent_assigner)
    self.endpoint = endpoint.rstrip("/")
    self.api_key = api_key
    self._session_factory = session_factory
    logging.info("SERVICE: CRM client initialized for %s.", self.endpoint)

  async def _request(
      self,
      method: str,
      path: str,
      payload: dict[str, Any] | None = None,
      params: dict[str, str] | None = None,
  ) -> Any:
    """Sends one request to the CRM and returns the decoded JSON body.

    Args:
      method: HTTP method.
      path: Resource path relative to the CRM endpoint.
      payload: JSON body, if any.
      params: Query string parameters, if any.

    Returns:
      The decoded JSON response.

    Raises:
      CRMError: On transport errors and non-2xx responses.
    """
    url = f"{self.endpoint}{path}"
    headers = {
        "Authorization": f"Bearer {self.api_key}",
        "Content-Type": "application/json",
    }
    try:
      async with self._session_factory(headers=headers) as session:
        async with session.request(
            method, url, json=payload, params=params
        ) as response:
          if response.status >= 400:
            body = await response.text()
            raise CRMError(
                f"CRM {method} {path} failed with {response.status}: {body}"
            )
          return await response.json()
    except aiohttp.ClientError as e:
      logging.error("CRM_SERVICE: %s %s failed: %s", method, url, e)
      raise CRMError(f"CRM {method} {path} failed: {e}") from e

  async def find_customer_by_phone(self, phone: str | None) -> Customer | None:
    if not phone:
      return None
    logging.info("CRM_SERVICE: Looking up customer by phone %s...", phone)
    found = await self._request("GET", "/customers", params={"phone": phone})
    if isinstance(found, dict):
      found = found.get("customers", [])
    return Customer.model_validate(found[0]) if found else None

  async def upsert_customer(self, customer_info: CustomerInfo) -> Customer:
    existing = await self.find_customer_by_phone(customer_info.phone)
    payload = customer_info.model_dump(mode="json")
    payload["last_contact"] = _now().isoformat()

    if existing is None:
      logging.info(
          "CRM_SERVICE: Creating new customer for %s.", customer_info.phone
      )
      payload["communication_history"] = []
      body = await self._request("POST", "/customers", payload)
    else:
      logging.info("CRM_SERVICE: Updating customer %s.", existing.id)
      payload = {
          key: value for key, value in payload.items() if value is not None
      }
      body = await self._request("PATCH", f"/customers/{existing.id}", payload)
    return Customer.model_validate(body)

  async def log_conversation(
      self,
      *,
      customer_id: str,
      duration: int,
      summary: str,
      sentiment: str,
      outcome: str,
      follow_up_required: bool,
      recording_url: str | None,
      conversation_id: str | None = None,
  ) -> ActivityRecord:
    activity = ActivityRecord(
        customer_id=customer_id,
        conversation_id=conversation_id,
        duration=duration,
        summary=summary,
        sentiment=sentiment,
        outcome=outcome,
        follow_up_required=follow_up_required,
        recording_url=recording_url,
    )
    logging.info("CRM_SERVICE: Adding activity to customer %s.", customer_id)
    await self._request(
        "POST",
        f"/customers/{customer_id}/activities",
        activity.model_dump(mode="json"),
    )
    return activity

  async def create_lead(
      self, lead_info: ExtractedLeadInfo, customer_id: str | None = None
  ) -> Lead:
    fields = self.build_lead_fields(lead_info, customer_id)
    payload = Lead(id="", **fields).model_dump(mode="json", exclude={"id"})
    body = await self._request("POST", "/leads", payload)
    lead = Lead.model_validate({**payload, **body})
    logging.info(
        "CRM_SERVICE: Created lead %s (score %s) assigned to %s.",
        lead.id,
        lead.score,
        lead.assigned_to,
    )
    return lead

  async def schedule_follow_up(
      self,
      *,
      customer_id: str,
      lead_id: str | None,
      scheduled_date: datetime.datetime,
      priority: str,
      notes: str,
      assigned_to: str | None,
  ) -> FollowUpTask:
    payload = {
        "type": "follow_up_call",
        "customer_id": customer_id,
        "lead_id": lead_id,
        "scheduled_for": scheduled_date.isoformat(),
        "priority": priority,
        "notes": notes,
        "assigned_to": assigned_to,
        "created_at": _now().isoformat(),
    }
    body = await self._request("POST", "/tasks", payload)
    task = FollowUpTask.model_validate({**payload, **body})
    logging.info("CRM_SERVICE: Scheduled follow-up %s.", task.id)
    return task

  async def capture_contact(
      self, contact: TranscriptLeadInfo, call_id: str | None = None
  ) -> dict[str, Any]:
    payload = {
        "call_id": call_id,
        **contact.model_dump(exclude={"has_contact_info"}),
        "captured_at": _now().isoformat(),
    }
    body = await self._request("POST", "/contacts", payload)
    logging.info("CRM_SERVICE: Captured contact from call %s.", call_id)
    return {**payload, **body}


def build_crm_service(
    settings: Settings, agent_assigner: AgentAssigner | None = None
) -> CRMService:
  """Returns the CRM backend selected by the settings."""
  if agent_assigner is None:
    agent_assigner = scoring.RandomAgentAssigner(settings.SALES_AGENTS)
  if settings.CRM_API_ENDPOINT:
    return HttpCRMService(
        endpoint=settings.CRM_API_ENDPOINT,
        api_key=settings.CRM_API_KEY,
        agent_assigner=agent_assigner,
    )
  logging.info("SERVICE: No CRM endpoint configured, using in-memory CRM.")
  return MockCRMService(agent_assigner)
