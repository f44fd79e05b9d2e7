"""Defines the dealership voice agent as registered with the voice platform."""

from typing import Any

from dealer_voice.config import Settings
from dealer_voice.prompts import instructions
from dealer_voice.tools import catalog

_AGENT_NAME = "Dealer Logic Assistant"
_LANGUAGE = "en-US"
_TEMPERATURE = 0.7
_VOICE_STABILITY = 0.8
_VOICE_SIMILARITY_BOOST = 0.75

# Phrases that steer the agent towards a tool.
_WORKFLOWS = {
    "inventory_inquiry": {
        "trigger": ["looking for", "do you have", "availability", "in stock"],
        "action": "inventory_search",
    },
    "service_booking": {
        "trigger": ["service", "appointment", "maintenance", "repair"],
        "action": "schedule_service",
    },
    "trade_in": {
        "trigger": ["trade", "sell my car", "value of my"],
        "action": "check_trade_value",
    },
}

_KNOWLEDGE_BASE = {
    "source": "dealer_inventory_db",
    "update_frequency": "realtime",
    "categories": [
        "vehicles",
        "services",
        "financing",
        "promotions",
        "dealership_info",
    ],
}


def build_agent_definition(settings: Settings) -> dict[str, Any]:
  """Builds the agent creation request for the voice platform.

  Args:
    settings: Application settings; supplies the dealer name, the voice and
      the public webhook URL the tools call back into.

  Returns:
    The JSON body for the agent creation endpoint.
  """
  webhook_url = settings.WEBHOOK_BASE_URL.rstrip("/")
  return {
      "name": _AGENT_NAME,
      "language": _LANGUAGE,
      "temperature": _TEMPERATURE,
      "system_prompt": instructions.get_instructions(settings.DEALER_NAME),
      "first_message": instructions.get_greeting(settings.DEALER_NAME),
      "voice_settings": {
          "voice_id": settings.ELEVENLABS_VOICE_ID,
          "stability": _VOICE_STABILITY,
          "similarity_boost": _VOICE_SIMILARITY_BOOST,
      },
      "tools": catalog.get_tools_configuration(webhook_url),
      "workflows": _WORKFLOWS,
      "knowledge_base": _KNOWLEDGE_BASE,
      "webhooks": {
          "post_call_transcription": f"{webhook_url}/transcription",
          "post_call_audio": f"{webhook_url}/audio",
      },
  }
