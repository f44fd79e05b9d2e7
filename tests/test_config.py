"""Tests for environment-driven settings."""

import pytest

from dealer_voice.config import Settings


class TestSalesAgents:

  def test_default_roster(self, monkeypatch):
    monkeypatch.delenv("SALES_AGENTS", raising=False)
    settings = Settings(_env_file=None)
    assert settings.SALES_AGENTS == ["agent1", "agent2", "agent3"]

  @pytest.mark.parametrize(
      "raw",
      ["amy,bo", " amy , bo ,", '["amy", "bo"]'],
  )
  def test_from_environment(self, monkeypatch, raw):
    monkeypatch.setenv("SALES_AGENTS", raw)
    assert Settings(_env_file=None).SALES_AGENTS == ["amy", "bo"]

  def test_single_agent(self, monkeypatch):
    monkeypatch.setenv("SALES_AGENTS", "amy")
    assert Settings(_env_file=None).SALES_AGENTS == ["amy"]

  def test_list_passed_directly(self):
    settings = Settings(_env_file=None, SALES_AGENTS=["amy"])
    assert settings.SALES_AGENTS == ["amy"]
