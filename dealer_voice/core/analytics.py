"""Post-call analytics: keyword sentiment and follow-up detection."""

from dealer_voice.schemas import call as call_lib

Analytics = call_lib.Analytics
CallData = call_lib.CallData
Sentiment = call_lib.Sentiment

POSITIVE_WORDS = frozenset(
    {"great", "excellent", "perfect", "wonderful", "amazing", "helpful"}
)
NEGATIVE_WORDS = frozenset(
    {"bad", "terrible", "awful", "horrible", "disappointed", "frustrated"}
)
FOLLOW_UP_TRIGGERS = (
    "call me back",
    "follow up",
    "get back to me",
    "need to think",
    "discuss with",
    "send me information",
)

_SENTIMENT_THRESHOLD = 2


def analyze_sentiment(transcript: str | None) -> Sentiment:
  """Scores a transcript by counting positive and negative keywords.

  Tokens are split on whitespace only, so "great!" does not count as "great".
  The score is not normalized by length.

  Args:
    transcript: The raw transcript text.

  Returns:
    "positive" when the score is above 2, "negative" when below -2, else
    "neutral".
  """
  score = 0
  for word in (transcript or "").lower().split():
    if word in POSITIVE_WORDS:
      score += 1
    if word in NEGATIVE_WORDS:
      score -= 1

  if score > _SENTIMENT_THRESHOLD:
    return "positive"
  if score < -_SENTIMENT_THRESHOLD:
    return "negative"
  return "neutral"


def requires_follow_up(transcript: str | None) -> bool:
  lowered = (transcript or "").lower()
  return any(trigger in lowered for trigger in FOLLOW_UP_TRIGGERS)


def process_call_analytics(call_data: CallData) -> Analytics:
  """Builds the analytics record for a finished call."""
  return Analytics(
      call_id=call_data.call_id,
      duration=call_data.duration,
      customer_sentiment=analyze_sentiment(call_data.transcript),
      intent_detected=call_data.intent,
      tools_used=list(call_data.tools_triggered),
      resolution_status=call_data.resolution,
      follow_up_required=requires_follow_up(call_data.transcript),
  )
