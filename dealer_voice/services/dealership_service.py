"""Mocked dealership back office: inventory, service calendar and appraisals.

In a real application these would query the dealer management system, the
service scheduler and a valuation API.
"""

import datetime
import logging
import uuid
from typing import Any

_INVENTORY = (
    {
        "year": 2024,
        "make": "Toyota",
        "model": "RAV4",
        "price": 35000,
        "mileage": 100,
        "vin": "ABC123",
        "color": "Blue",
        "features": ["AWD", "Leather", "Sunroof"],
    },
    {
        "year": 2023,
        "make": "Honda",
        "model": "CR-V",
        "price": 32000,
        "mileage": 5000,
        "vin": "XYZ789",
        "color": "Silver",
        "features": ["AWD", "Navigation", "Heated Seats"],
    },
)

_TRADE_IN_BASE_VALUE = 20000
_DEPRECIATION_PER_YEAR = 1500
_AVERAGE_ANNUAL_MILEAGE = 12000
_VALUE_PER_MILE = 0.1
_CONDITION_MULTIPLIERS = {"excellent": 1.1, "good": 1.0, "fair": 0.85}
_VALUATION_FACTORS = ["year", "mileage", "condition", "market_demand"]


def _new_id(prefix: str) -> str:
  return f"{prefix}{uuid.uuid4().hex[:12].upper()}"


class MockDealershipService:
  """Mocks the dealership systems the voice agent's tools reach into."""

  def __init__(self, reference_year: int = 2024):
    self.reference_year = reference_year
    self.transcripts: dict[str, dict[str, Any]] = {}
    self.recordings: dict[str, dict[str, Any]] = {}
    self.appointments: list[dict[str, Any]] = []
    self.transfer_queue: list[dict[str, Any]] = []

  async def search_inventory(
      self, criteria: dict[str, Any]
  ) -> list[dict[str, Any]]:
    """Returns vehicles on the lot; the mock ignores the criteria."""
    logging.info("DEALERSHIP: Searching inventory with %s.", criteria)
    return [dict(vehicle) for vehicle in _INVENTORY]

  async def check_service_availability(
      self, date: str | None, service_type: str | None
  ) -> dict[str, Any]:
    logging.info(
        "DEALERSHIP: Checking %s availability on %s.", service_type, date
    )
    return {"available": True, "next_available_slot": "10:00 AM"}

  async def get_alternative_service_dates(
      self, preferred_date: str, service_type: str | None
  ) -> list[str]:
    """Offers the two days following the preferred date.

    Args:
      preferred_date: The date the caller asked for, as YYYY-MM-DD.
      service_type: The requested service.

    Returns:
      Two dates formatted as MM/DD/YYYY.

    Raises:
      ValueError: If the preferred date cannot be parsed.
    """
    del service_type  # Unused.
    start = datetime.date.fromisoformat(preferred_date)
    return [
        (start + datetime.timedelta(days=offset)).strftime("%m/%d/%Y")
        for offset in (1, 2)
    ]

  async def create_service_appointment(
      self, details: dict[str, Any]
  ) -> dict[str, Any]:
    appointment = {
        "appointment_id": _new_id("APT"),
        **details,
        "time": details.get("time_slot"),
        "confirmation_sent": True,
    }
    logging.info(
        "DEALERSHIP: Booked appointment %s.", appointment["appointment_id"]
    )
    self.appointments.append(appointment)
    return appointment

  async def get_trade_in_value(self, vehicle: dict[str, Any]) -> dict[str, Any]:
    """Estimates a trade-in value from age, mileage and condition.

    Args:
      vehicle: Mapping with "year", "mileage" and "condition".

    Returns:
      The min, max and average estimate and the factors considered.

    Raises:
      ValueError: If the condition is not one of excellent, good or fair.
      TypeError: If year or mileage is missing.
    """
    condition = (vehicle.get("condition") or "").lower()
    if condition not in _CONDITION_MULTIPLIERS:
      raise ValueError(f"Unknown vehicle condition: {condition!r}")

    year_factor = (self.reference_year - vehicle["year"]) * (
        _DEPRECIATION_PER_YEAR
    )
    mileage_factor = (vehicle["mileage"] - _AVERAGE_ANNUAL_MILEAGE) * (
        _VALUE_PER_MILE
    )
    estimated_value = (
        _TRADE_IN_BASE_VALUE - year_factor - mileage_factor
    ) * _CONDITION_MULTIPLIERS[condition]

    return {
        "min": round(estimated_value * 0.9),
        "max": round(estimated_value * 1.1),
        "average": round(estimated_value),
        "factors": list(_VALUATION_FACTORS),
    }

  async def queue_for_human_agent(
      self, request: dict[str, Any]
  ) -> dict[str, Any]:
    queued = {
        "queue_id": _new_id("Q"),
        "estimated_wait": "30 seconds",
        "position": 1,
        **request,
    }
    logging.info(
        "DEALERSHIP: Queued transfer %s to %s.",
        queued["queue_id"],
        request.get("department"),
    )
    self.transfer_queue.append(queued)
    return queued

  async def store_call_transcript(self, data: dict[str, Any]) -> bool:
    logging.info("DEALERSHIP: Storing transcript for %s.", data.get("call_id"))
    self.transcripts[data.get("call_id") or _new_id("CALL")] = data
    return True

  async def store_call_audio(self, data: dict[str, Any]) -> bool:
    logging.info("DEALERSHIP: Storing audio for %s.", data.get("call_id"))
    self.recordings[data.get("call_id") or _new_id("CALL")] = data
    return True
