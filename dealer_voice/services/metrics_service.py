"""In-process call metrics fed by post-call notifications."""

import collections
import datetime
import logging
import threading
from typing import Any

from dealer_voice.schemas import tools as tools_lib

PostCallPayload = tools_lib.PostCallPayload

_MAX_ERRORS = 100


class CallMetrics:
  """Aggregates call counts, per-agent volume, intents and recent errors.

  Counters live in memory and reset when the process restarts.
  """

  def __init__(self):
    self._lock = threading.Lock()
    self.started_at = datetime.datetime.now(datetime.timezone.utc)
    self.calls = collections.Counter()
    self.agents: collections.Counter[str] = collections.Counter()
    self.intents: collections.Counter[str] = collections.Counter()
    self.errors: collections.deque[dict[str, Any]] = collections.deque(
        maxlen=_MAX_ERRORS
    )
    self.duration_total = 0
    self.duration_count = 0

  def record(self, call: PostCallPayload) -> None:
    """Adds one finished call to the metrics."""
    with self._lock:
      self.calls["total"] += 1
      if call.status in ("answered", "abandoned"):
        self.calls[call.status] += 1
      if call.transferred:
        self.calls["transferred"] += 1
      if call.lead_captured:
        self.calls["leads_captured"] += 1
      if call.appointment_scheduled:
        self.calls["appointments_scheduled"] += 1
      if call.duration is not None:
        self.duration_total += call.duration
        self.duration_count += 1
      if call.agent:
        self.agents[call.agent] += 1
      if call.intent:
        self.intents[call.intent] += 1
      if call.error:
        self.errors.append({
            "timestamp": datetime.datetime.now(
                datetime.timezone.utc
            ).isoformat(),
            "error": call.error,
            "agent": call.agent,
        })
    if call.error:
      logging.warning(
          "METRICS: Call %s reported error: %s", call.call_id, call.error
      )

  def snapshot(self) -> dict[str, Any]:
    """Returns the current metrics as a JSON-friendly dictionary."""
    with self._lock:
      total = self.calls["total"]
      answered = self.calls["answered"]
      return {
          "uptime_seconds": int(
              (
                  datetime.datetime.now(datetime.timezone.utc)
                  - self.started_at
              ).total_seconds()
          ),
          "calls": {
              "total": total,
              "answered": answered,
              "abandoned": self.calls["abandoned"],
              "transferred": self.calls["transferred"],
              "leads_captured": self.calls["leads_captured"],
              "appointments_scheduled": self.calls["appointments_scheduled"],
          },
          "answer_rate": round(answered / total * 100, 1) if total else 0.0,
          "avg_call_duration": (
              round(self.duration_total / self.duration_count, 1)
              if self.duration_count
              else 0.0
          ),
          "agents": dict(self.agents.most_common()),
          "intents": dict(self.intents.most_common()),
          "errors": list(self.errors),
      }
