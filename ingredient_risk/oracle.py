"""
Classifier Oracle

External best-effort classifier consulted only when the knowledge base and
the safe-list have no answer for a phrase. The resolver depends on the
abstract interface so tests can inject deterministic stubs.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from ingredient_risk.errors import OracleUnavailableError
from ingredient_risk.models import OracleJudgment
from ingredient_risk.prompt import build_messages

logger = logging.getLogger(__name__)


class ClassifierOracle(ABC):
    """Interface for the external ingredient classifier."""

    @abstractmethod
    async def classify(self, phrase: str, context_text: str, language: str) -> OracleJudgment:
        """
        Classify one ingredient phrase.

        Args:
            phrase: The unmatched ingredient phrase
            context_text: Full original ingredient text
            language: "zh" or "en"

        Raises:
            OracleUnavailableError: on timeout, transport error or unusable payload
        """
        pass


class UnavailableOracle(ClassifierOracle):
    """Used when no classifier is configured; every phrase falls back to the default entry."""

    async def classify(self, phrase: str, context_text: str, language: str) -> OracleJudgment:
        raise OracleUnavailableError("No ingredient classifier configured")


def _find_first_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Pull the first {...} block out of free text."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError:
        return None


def parse_judgment(content: Optional[str]) -> OracleJudgment:
    """
    Parse the classifier's message content into an OracleJudgment.

    Raises:
        OracleUnavailableError: empty, malformed or partial payload
    """
    if not content or not content.strip():
        raise OracleUnavailableError("Classifier returned an empty response")

    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        data = _find_first_json_object(content)

    # Table-shaped responses: {"table": [{...}]}
    if isinstance(data, dict) and isinstance(data.get("table"), list) and data["table"]:
        data = data["table"][0]

    if not isinstance(data, dict):
        raise OracleUnavailableError("Classifier response is not a JSON object")

    try:
        return OracleJudgment.model_validate(data)
    except ValidationError as e:
        raise OracleUnavailableError(f"Classifier response failed validation: {e.error_count()} error(s)") from e


class OpenAIClassifierOracle(ClassifierOracle):
    """Chat-completions classifier returning a JSON object per phrase."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 10.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        # Retries are left to the caller; the resolver enforces its own deadline
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def classify(self, phrase: str, context_text: str, language: str) -> OracleJudgment:
        messages = build_messages(phrase, context_text, language)

        try:
            response = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=0.2,
            )
        except OpenAIError as e:
            raise OracleUnavailableError(f"Classifier request failed: {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise OracleUnavailableError("Classifier response has no message content") from e

        judgment = parse_judgment(content)
        logger.debug("Classifier judged %r as %s/%s", phrase, judgment.risk_level, judgment.child_risk)
        return judgment
