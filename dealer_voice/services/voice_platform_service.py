"""Client for the ElevenLabs Conversational AI REST API."""

import logging
from typing import Any, Callable

import aiohttp

from dealer_voice.agents import dealer_agent
from dealer_voice.config import Settings
from dealer_voice.core import errors

VoicePlatformError = errors.VoicePlatformError
SessionFactory = Callable[..., aiohttp.ClientSession]


class ElevenLabsVoiceService:
  """Registers the dealership agent and manages its conversations."""

  def __init__(
      self,
      settings: Settings,
      session_factory: SessionFactory = aiohttp.ClientSession,
  ):
    self.settings = settings
    self.base_url = settings.ELEVENLABS_BASE_URL.rstrip("/")
    self.agent_id = settings.ELEVENLABS_AGENT_ID
    self._session_factory = session_factory

  async def _request(
      self, method: str, path: str, payload: dict[str, Any] | None = None
  ) -> dict[str, Any]:
    """Calls the voice platform and returns the decoded JSON body.

    Raises:
      VoicePlatformError: On transport errors and non-2xx responses.
    """
    headers = {
        "xi-api-key": self.settings.ELEVENLABS_API_KEY,
        "Content-Type": "application/json",
    }
    try:
      async with self._session_factory(headers=headers) as session:
        async with session.request(
            method, f"{self.base_url}{path}", json=payload
        ) as response:
          if response.status >= 400:
            body = await response.text()
            logging.error(
                "VOICE_PLATFORM: %s %s failed with %s: %s",
                method,
                path,
                response.status,
                body,
            )
            raise VoicePlatformError(
                f"Voice platform returned {response.status}: {body}"
            )
          return await response.json()
    except aiohttp.ClientError as e:
      logging.error("VOICE_PLATFORM: %s %s failed: %s", method, path, e)
      raise VoicePlatformError(str(e)) from e

  async def setup_agent(self) -> dict[str, Any]:
    """Creates the dealership agent on the voice platform.

    Returns:
      The platform's agent record, including its "agent_id".
    """
    definition = dealer_agent.build_agent_definition(self.settings)
    agent = await self._request(
        "POST", "/conversational-ai/agents", definition
    )
    if agent.get("agent_id"):
      self.agent_id = agent["agent_id"]
    logging.info("VOICE_PLATFORM: Agent '%s' ready.", self.agent_id)
    return agent

  async def start_conversation(
      self, metadata: dict[str, Any] | None = None
  ) -> dict[str, Any]:
    """Opens a conversation session with the agent.

    Args:
      metadata: Caller context handed to the agent (CRM id, name, phone).

    Returns:
      The platform's conversation record with "conversation_id" and
      "session_url".
    """
    conversation = await self._request(
        "POST",
        "/conversational-ai/conversations",
        {"agent_id": self.agent_id, "metadata": metadata or {}},
    )
    logging.info(
        "VOICE_PLATFORM: Conversation %s started.",
        conversation.get("conversation_id"),
    )
    return conversation

  async def get_conversation_status(
      self, conversation_id: str
  ) -> dict[str, Any]:
    return await self._request(
        "GET", f"/conversational-ai/conversations/{conversation_id}"
    )
