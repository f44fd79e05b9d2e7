"""Lead scoring and sales-agent assignment."""

import itertools
import random
import threading
from typing import Protocol, Sequence

from dealer_voice.schemas import call as call_lib

ExtractedLeadInfo = call_lib.ExtractedLeadInfo

BASE_LEAD_SCORE = 50
MAX_LEAD_SCORE = 100
HIGH_BUDGET_THRESHOLD = 30000


def calculate_lead_score(lead_info: ExtractedLeadInfo) -> int:
  """Scores a lead between 0 and 100.

  The adjustments are additive and can overshoot before the cap, e.g. an
  immediate buyer with a high budget and a trade-in scores 105 and is capped
  to 100.

  Args:
    lead_info: The extracted lead fields.

  Returns:
    The capped score.
  """
  score = BASE_LEAD_SCORE

  if lead_info.timeline == "immediate":
    score += 30
  if lead_info.timeline == "this_month":
    score += 20
  if lead_info.budget and lead_info.budget > HIGH_BUDGET_THRESHOLD:
    score += 15
  if lead_info.trade_in:
    score += 10
  if lead_info.financing_interest:
    score += 10

  return min(score, MAX_LEAD_SCORE)


class AgentAssigner(Protocol):
  """Picks the sales agent a new lead is routed to."""

  def assign(self, lead_info: ExtractedLeadInfo) -> str:
    ...


class RandomAgentAssigner:
  """Assigns leads uniformly at random from the agent pool."""

  def __init__(self, agents: Sequence[str], rng: random.Random | None = None):
    if not agents:
      raise ValueError("At least one sales agent is required.")
    self.agents = list(agents)
    self._rng = rng or random.Random()

  def assign(self, lead_info: ExtractedLeadInfo) -> str:
    del lead_info  # Unused.
    return self._rng.choice(self.agents)


class RoundRobinAgentAssigner:
  """Assigns leads to each agent in turn."""

  def __init__(self, agents: Sequence[str]):
    if not agents:
      raise ValueError("At least one sales agent is required.")
    self.agents = list(agents)
    self._cycle = itertools.cycle(self.agents)
    self._lock = threading.Lock()

  def assign(self, lead_info: ExtractedLeadInfo) -> str:
    del lead_info  # Unused.
    with self._lock:
      return next(self._cycle)
