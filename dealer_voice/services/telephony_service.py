"""This module provides a Twilio telephony service."""

import logging
from typing import Any, Callable

import aiohttp
from twilio.twiml import voice_response

from dealer_voice.config import Settings
from dealer_voice.core import errors

TelephonyError = errors.TelephonyError
VoiceResponse = voice_response.VoiceResponse
SessionFactory = Callable[..., aiohttp.ClientSession]

_TWILIO_API_BASE = "https://api.twilio.com/2010-04-01/Accounts"


class TwilioTelephonyService:
  """Controls live calls and sends text messages via the Twilio REST API.

  The voice platform owns the conversation; this service only steps in to
  hand a caller to a human department and to confirm bookings by SMS.
  """

  def __init__(
      self,
      settings: Settings,
      session_factory: SessionFactory = aiohttp.ClientSession,
  ):
    self.account_sid = settings.TWILIO_ACCOUNT_SID
    self.from_number = settings.TWILIO_VIRTUAL_PHONE_NUMBER
    self.auth = aiohttp.BasicAuth(
        login=settings.TWILIO_ACCOUNT_SID, password=settings.TWILIO_AUTH_TOKEN
    )
    self._session_factory = session_factory
    logging.info("SERVICE: Twilio client initialized successfully.")

  async def _post(self, path: str, data: dict[str, str]) -> dict[str, Any]:
    """Posts a form to the account's REST resource.

    Raises:
      TelephonyError: On transport errors and non-2xx responses.
    """
    url = f"{_TWILIO_API_BASE}/{self.account_sid}/{path}"
    try:
      async with self._session_factory(auth=self.auth) as session:
        async with session.post(url, data=data) as response:
          body = await response.json()
          if response.status >= 400:
            raise TelephonyError(
                f"Twilio returned {response.status}:"
                f" {body.get('message', body)}"
            )
          return body
    except aiohttp.ClientError as e:
      raise TelephonyError(str(e)) from e

  @staticmethod
  def build_transfer_twiml(phone_number: str) -> str:
    """Returns TwiML that bridges the live call to `phone_number`."""
    twiml_response = VoiceResponse()
    twiml_response.say("Please hold while I connect you.")
    twiml_response.dial(phone_number)
    return twiml_response.to_xml()

  async def transfer_call(self, call_sid: str, phone_number: str) -> bool:
    """Redirects a live call to a department phone number.

    Args:
        call_sid: The SID of the call to redirect.
        phone_number: The department number to dial.

    Returns:
        True if Twilio accepted the redirect, False otherwise.
    """
    try:
      logging.info(
          "SERVICE: Transferring call SID %s to %s.", call_sid, phone_number
      )
      call = await self._post(
          f"Calls/{call_sid}.json",
          {"Twiml": self.build_transfer_twiml(phone_number)},
      )
      logging.info(
          "SERVICE: Call %s redirected, status '%s'.",
          call_sid,
          call.get("status"),
      )
      return True
    except TelephonyError as e:
      logging.warning(
          "SERVICE_WARNING: Failed to transfer call %s (it may have already"
          " ended): %s",
          call_sid,
          e,
      )
      return False

  async def send_sms(self, to: str, body: str) -> str | None:
    """Sends a text message from the dealership number.

    Args:
        to: The recipient's phone number.
        body: The message text.

    Returns:
        The message SID if Twilio accepted the message, None otherwise.
    """
    try:
      message = await self._post(
          "Messages.json",
          {"From": self.from_number, "To": to, "Body": body},
      )
      logging.info("SERVICE: SMS %s sent to %s.", message.get("sid"), to)
      return message.get("sid")
    except TelephonyError as e:
      logging.error("SERVICE_ERROR: Failed to send SMS to %s: %s", to, e)
      return None


def build_telephony_service(
    settings: Settings,
) -> TwilioTelephonyService | None:
  """Returns the Twilio service, or None when Twilio is not configured."""
  if not settings.telephony_enabled:
    logging.info("SERVICE: Twilio not configured; transfers and SMS disabled.")
    return None
  return TwilioTelephonyService(settings)
