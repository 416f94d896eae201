"""
services/classifier_service.py
------------------------------
External natural-language classifier for maintenance tickets.

Every call is:
  1. Executed (mock or real OpenAI) with a low temperature and a bounded
     max_tokens so output is short and repeatable.
  2. Tracked in MLflow (latency, prompt/response length, outcome).

The service returns the model's raw text. Parsing and validation belong to
the classification pipeline, which treats anything unexpected as a failure.

Mock mode (no OPENAI_API_KEY) answers from a small keyword table so the
pipeline can be exercised end-to-end in local development.
"""

import json
import time
from typing import Any, Optional

from upkeep.core.config import settings
from upkeep.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are a maintenance issue classifier."

PROMPT_TEMPLATE = """You are a building maintenance expert. Analyze the following maintenance request:

"{request}"

Based on the request, determine:
1. The most appropriate category: plumbing, electrical, hvac, structural, appliance, or general
2. The urgency level (1-5) where:
   1 = Low priority (can be scheduled anytime)
   2 = Minor issue (should be addressed within 2 weeks)
   3 = Normal priority (should be addressed within a week)
   4 = Important (should be addressed within 48 hours)
   5 = Emergency (requires immediate attention)

Respond with a JSON object in the following format only, no other text:
{{"category": "category_name", "urgency": urgency_number}}"""


class ClassificationError(Exception):
    """Any failure to obtain a valid category/urgency pair."""


def build_prompt(description: str, issue_title: Optional[str] = None) -> str:
    """Combine the optional title and the description into one request."""
    request = description.strip()
    if issue_title and issue_title.strip():
        request = f"{issue_title.strip()}: {request}"
    return PROMPT_TEMPLATE.format(request=request)


# Checked in order; first hit wins.
_MOCK_CATEGORY_KEYWORDS = [
    ("plumbing", ("faucet", "leak", "drip", "toilet", "pipe", "drain", "sink", "water heater", "clog")),
    ("electrical", ("outlet", "breaker", "wiring", "light", "spark", "power", "switch")),
    ("hvac", ("heat", "furnace", "air condition", "a/c", "ac ", "thermostat", "vent", "hvac")),
    ("appliance", ("fridge", "refrigerator", "dishwasher", "oven", "stove", "washer", "dryer", "microwave")),
    ("structural", ("crack", "ceiling", "roof", "wall", "floor", "foundation", "window", "door")),
]

_MOCK_EMERGENCY_KEYWORDS = ("flood", "fire", "gas smell", "smoke", "sparking", "no heat", "burst")


class ClassifierService:

    def __init__(self, client: Any = None) -> None:
        if client is not None:
            self._use_mock = False
            self._client = client
        elif settings.OPENAI_API_KEY:
            import openai
            self._use_mock = False
            self._client = openai.AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.CLASSIFIER_TIMEOUT_SECONDS,
            )
        else:
            self._use_mock = True
            self._client = None
            logger.info("ClassifierService in MOCK mode — set OPENAI_API_KEY for real classification")

    @property
    def is_mock(self) -> bool:
        return self._use_mock

    async def classify(
        self,
        description: str,
        issue_title: Optional[str] = None,
        ticket_id: str = "unknown",
    ) -> str:
        """
        Send one classification request and return the raw response text.

        Raises:
            ClassificationError: the external call failed or returned nothing.
        """
        prompt = build_prompt(description, issue_title)
        start = time.monotonic()
        outcome = "ok"
        response = ""

        try:
            if self._use_mock:
                response = self._mock_classify(f"{issue_title or ''} {description}")
            else:
                response = await self._openai_classify(prompt)
        except Exception:
            outcome = "error"
            raise
        finally:
            latency_ms = round((time.monotonic() - start) * 1000, 1)
            logger.info(
                "Classifier call finished",
                ticket_id=ticket_id,
                latency_ms=latency_ms,
                mock=self._use_mock,
                outcome=outcome,
            )
            # Track in MLflow (non-blocking, never raises)
            from upkeep.services.mlflow_service import track_classifier_call
            track_classifier_call(
                prompt=prompt,
                response=response,
                latency_ms=latency_ms,
                ticket_id=ticket_id,
                mock=self._use_mock,
                outcome=outcome,
            )

        return response

    # ── Mock implementation ──────────────────────────────────────────────────

    def _mock_classify(self, text: str) -> str:
        lowered = text.lower()
        category = "general"
        for name, keywords in _MOCK_CATEGORY_KEYWORDS:
            if any(k in lowered for k in keywords):
                category = name
                break
        urgency = 5 if any(k in lowered for k in _MOCK_EMERGENCY_KEYWORDS) else 3
        return json.dumps({"category": category, "urgency": urgency})

    # ── OpenAI implementation ────────────────────────────────────────────────

    async def _openai_classify(self, prompt: str) -> str:
        try:
            completion = await self._client.chat.completions.create(
                model=settings.CLASSIFIER_MODEL,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=settings.CLASSIFIER_MAX_TOKENS,
                temperature=settings.CLASSIFIER_TEMPERATURE,
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            logger.error("OpenAI API error", error=str(exc))
            raise ClassificationError(f"Classifier call failed: {exc}") from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise ClassificationError("Classifier returned an empty response")
        return content.strip()


# Shared by every classification run
classifier_service = ClassifierService()
