import asyncio
import logging
from typing import Optional

import config
from core.barcode import BarcodeResolver, ProductCatalog
from ingredient_risk.engine import IngredientRiskEngine
from ingredient_risk.errors import IngredientRiskError, NoInputError
from ingredient_risk.knowledge_base.loader import KnowledgeBase, load_knowledge_base
from ingredient_risk.models import AnalysisResult, AnalyzeRequest, ErrorResult
from ingredient_risk.oracle import ClassifierOracle, OpenAIClassifierOracle, UnavailableOracle

logger = logging.getLogger(__name__)


class AnalysisService:
    """Request-level orchestration: barcode resolution, then the engine."""

    def __init__(self, engine: IngredientRiskEngine, barcode_resolver: Optional[BarcodeResolver] = None):
        self.engine = engine
        self.barcode_resolver = barcode_resolver

    @property
    def knowledge_base(self) -> KnowledgeBase:
        return self.engine.knowledge_base

    async def analyze(self, request: AnalyzeRequest) -> AnalysisResult:
        """
        Analyze a request, resolving its barcode first when no text was typed.

        Raises:
            NoInputError: no text and the barcode (if any) did not resolve to ingredient text
        """
        has_text = bool(request.ingredient_text and request.ingredient_text.strip())

        product = None
        if not has_text and request.barcode and self.barcode_resolver:
            product = await asyncio.to_thread(self.barcode_resolver.resolve, request.barcode)
            if product is None or not product.ingredients_text.strip():
                logger.info("Barcode %s has no ingredient text", request.barcode)
                raise NoInputError("Barcode did not resolve to ingredient text", barcode=request.barcode)

        result = await self.engine.analyze(request, resolved_text=product.ingredients_text if product else None)

        if product is not None:
            result = result.model_copy(update={"product_name": product.name or None, "barcode": product.barcode})
        elif request.barcode:
            result = result.model_copy(update={"barcode": request.barcode})
        return result


def error_result(error: IngredientRiskError, language: str = "en") -> ErrorResult:
    return ErrorResult(
        error_kind=error.kind,
        message=error.localized_message(language),
        language=language if language in ("zh", "en") else "en",
    )


def build_oracle() -> ClassifierOracle:
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set; unmatched ingredients will use the default entry")
        return UnavailableOracle()
    return OpenAIClassifierOracle(
        api_key=config.OPENAI_API_KEY,
        model=config.OPENAI_MODEL,
        timeout=config.ORACLE_TIMEOUT_SECONDS,
    )


def build_service(
    knowledge_base: Optional[KnowledgeBase] = None,
    oracle: Optional[ClassifierOracle] = None,
    barcode_resolver: Optional[BarcodeResolver] = None,
) -> AnalysisService:
    """
    Build the process-wide service from configuration.

    The knowledge base is loaded once here; MalformedKBError propagates so the
    process refuses to serve with an inconsistent KB.
    """
    kb = knowledge_base or load_knowledge_base(config.KNOWLEDGE_BASE_PATH)

    engine = IngredientRiskEngine(
        kb,
        oracle=oracle or build_oracle(),
        child_safety_policy=config.CHILD_SAFETY_POLICY,
        oracle_timeout=config.ORACLE_TIMEOUT_SECONDS,
        max_concurrency=config.ORACLE_MAX_CONCURRENCY,
    )

    if barcode_resolver is None:
        barcode_resolver = BarcodeResolver(
            ProductCatalog(config.PRODUCT_DB_PATH),
            use_open_food_facts=config.OPEN_FOOD_FACTS_ENABLED,
            timeout=config.OPEN_FOOD_FACTS_TIMEOUT_SECONDS,
        )

    return AnalysisService(engine, barcode_resolver)
