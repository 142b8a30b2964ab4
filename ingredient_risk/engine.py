"""
Ingredient Risk Engine

Wires the tokenizer, the risk resolver and the verdict aggregator into one
call: free-text ingredient list in, AnalysisResult out. The engine holds no
per-request state, so one instance serves concurrent analyses.
"""

import asyncio
import logging
from typing import Optional

from ingredient_risk.aggregator import CHILD_SAFETY_POLICIES, aggregate, nothing_detected
from ingredient_risk.errors import NoInputError
from ingredient_risk.knowledge_base.loader import KnowledgeBase
from ingredient_risk.models import AnalysisResult, AnalyzeRequest
from ingredient_risk.oracle import ClassifierOracle, UnavailableOracle
from ingredient_risk.resolver import RiskResolver
from ingredient_risk.tokenizer import IngredientTokenizer

logger = logging.getLogger(__name__)


class IngredientRiskEngine:

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        oracle: Optional[ClassifierOracle] = None,
        tokenizer: Optional[IngredientTokenizer] = None,
        child_safety_policy: str = "avoid_only",
        oracle_timeout: float = 10.0,
        max_concurrency: int = 4,
    ):
        if child_safety_policy not in CHILD_SAFETY_POLICIES:
            raise ValueError(f"Unknown child safety policy: {child_safety_policy}")

        self.knowledge_base = knowledge_base
        self.tokenizer = tokenizer or IngredientTokenizer()
        self.child_safety_policy = child_safety_policy
        self.resolver = RiskResolver(
            knowledge_base,
            oracle or UnavailableOracle(),
            oracle_timeout=oracle_timeout,
            max_concurrency=max_concurrency,
        )

    async def analyze(self, request: AnalyzeRequest, resolved_text: Optional[str] = None) -> AnalysisResult:
        """
        Analyze one request.

        Args:
            request: Inbound request
            resolved_text: Ingredient text resolved from the request's barcode, if any

        Raises:
            NoInputError: neither ingredient text nor barcode-resolved text is present
        """
        text = request.ingredient_text if request.ingredient_text and request.ingredient_text.strip() else resolved_text
        if not text or not text.strip():
            raise NoInputError(barcode=request.barcode)

        phrases = self.tokenizer.split(text)
        if not phrases:
            logger.info("Ingredient text yielded no phrases (%d chars)", len(text))
            return nothing_detected(request.language)

        entries = await self.resolver.resolve(phrases, context_text=text, language=request.language)
        result = aggregate(entries, request.language, self.child_safety_policy)

        logger.info(
            "Analyzed %d phrases: verdict=%s child_safe=%s score=%d",
            len(entries), result.overall_verdict, result.child_safe_overall, result.processed_score,
        )
        return result

    async def analyze_text(self, text: str, language: str = "en") -> AnalysisResult:
        return await self.analyze(AnalyzeRequest(ingredient_text=text, language=language))

    def analyze_sync(self, request: AnalyzeRequest, resolved_text: Optional[str] = None) -> AnalysisResult:
        """Synchronous wrapper for analyze()."""
        return asyncio.run(self.analyze(request, resolved_text))
