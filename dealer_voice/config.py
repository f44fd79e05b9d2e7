"""Settings for the Dealer Voice integration service."""

import json
from typing import Annotated, Any

import pydantic
import pydantic_settings

field_validator = pydantic.field_validator
SettingsConfigDict = pydantic_settings.SettingsConfigDict
BaseSettings = pydantic_settings.BaseSettings
NoDecode = pydantic_settings.NoDecode


class Settings(BaseSettings):
  """Settings for the Dealer Voice integration service.

  Built once at application startup and handed to the collaborators that need
  it, so tests can construct their own instance without touching the
  environment.

  `SALES_AGENTS` accepts a comma-separated list (`amy,bo`) as well as a JSON
  array (`["amy", "bo"]`).
  """

  model_config = SettingsConfigDict(
      env_file='.env', env_file_encoding='utf-8', extra='ignore'
  )
  APP_NAME: str = 'Dealer Voice Integration'
  DEALER_NAME: str = 'Dealer Logic Arizona'
  LOG_LEVEL: str = 'INFO'

  # Voice platform
  ELEVENLABS_API_KEY: str = ''
  ELEVENLABS_AGENT_ID: str = ''
  ELEVENLABS_VOICE_ID: str = 'rachel'
  ELEVENLABS_BASE_URL: str = 'https://api.elevenlabs.io/v1'
  ELEVENLABS_WEBHOOK_SECRET: str = ''
  WEBHOOK_BASE_URL: str = 'https://api.dealerlogic.com'

  # Dealer hooks (post-call, lead and service notifications)
  WEBHOOK_SECRET: str = ''

  # CRM. Leave the endpoint empty to run against the in-memory CRM.
  CRM_API_ENDPOINT: str = ''
  CRM_API_KEY: str = ''
  SALES_AGENTS: Annotated[list[str], NoDecode] = ['agent1', 'agent2', 'agent3']

  # Telephony Service. Transfers and SMS are skipped when unset.
  TWILIO_ACCOUNT_SID: str = ''
  TWILIO_AUTH_TOKEN: str = ''
  TWILIO_VIRTUAL_PHONE_NUMBER: str = ''

  # Trade-in valuation model year the depreciation is measured against.
  TRADE_IN_REFERENCE_YEAR: int = 2024

  @field_validator('SALES_AGENTS', mode='before')
  @classmethod
  def split_sales_agents(cls, value: Any) -> Any:
    if not isinstance(value, str):
      return value
    if value.strip().startswith('['):
      return json.loads(value)
    return [agent.strip() for agent in value.split(',') if agent.strip()]

  @property
  def telephony_enabled(self) -> bool:
    return bool(
        self.TWILIO_ACCOUNT_SID
        and self.TWILIO_AUTH_TOKEN
        and self.TWILIO_VIRTUAL_PHONE_NUMBER
    )
