"""Exceptions raised by the integration's collaborators."""


class IntegrationError(Exception):
  """Base class for failures of an external system."""


class CRMError(IntegrationError):
  """The CRM rejected a request or could not be reached."""


class VoicePlatformError(IntegrationError):
  """The voice platform API rejected a request or could not be reached."""


class TelephonyError(IntegrationError):
  """Twilio rejected a request or could not be reached."""


class InvalidSignatureError(Exception):
  """A webhook arrived with a signature that does not match its body."""
