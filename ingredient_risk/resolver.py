import asyncio
import logging
from typing import Dict, List, Optional, Set

from ingredient_risk.knowledge_base.constants import ALL_SAFE_INGREDIENTS, DEFAULT_NOTE, SAFE_INGREDIENT_NOTE
from ingredient_risk.knowledge_base.loader import KnowledgeBase
from ingredient_risk.matcher import find_match
from ingredient_risk.models import IngredientEntry
from ingredient_risk.oracle import ClassifierOracle
from ingredient_risk.text import normalize_text

logger = logging.getLogger(__name__)


def default_entry(phrase: str, language: str) -> IngredientEntry:
    """Entry used when no source yields a result: {moderate, unknown, gray, "no data"}."""
    return IngredientEntry(
        raw_text=phrase,
        risk_level="moderate",
        child_risk="unknown",
        regulatory_note=DEFAULT_NOTE.get(language, DEFAULT_NOTE["en"]),
        source="default",
    )


class RiskResolver:
    """
    Turns tokenized phrases into IngredientEntry rows.

    Resolution order per phrase: knowledge base, safe-list, classifier oracle,
    default entry. Oracle lookups run concurrently, each under its own
    timeout; the output keeps input order.
    """

    def __init__(
        self,
        knowledge_base: KnowledgeBase,
        oracle: ClassifierOracle,
        safe_ingredients: Optional[Set[str]] = None,
        oracle_timeout: float = 10.0,
        max_concurrency: int = 4,
    ):
        self.kb = knowledge_base
        self.oracle = oracle
        self.safe_ingredients = ALL_SAFE_INGREDIENTS if safe_ingredients is None else set(safe_ingredients)
        self.oracle_timeout = oracle_timeout
        self.max_concurrency = max(1, max_concurrency)

    def resolve_locally(self, phrase: str, language: str) -> Optional[IngredientEntry]:
        """KB match or safe-list hit, without touching the oracle."""
        found = find_match(phrase, self.kb)
        if found:
            record, alias = found
            logger.debug("Phrase %r matched %s via alias %r", phrase, record.canonical_id, alias)
            return IngredientEntry(
                raw_text=phrase,
                matched_record=record,
                risk_level=record.risk_level,
                child_risk=record.child_risk,
                regulatory_note=record.note_for(language),
                source="knowledge_base",
                regulated_additive=True,
            )

        if normalize_text(phrase) in self.safe_ingredients:
            return IngredientEntry(
                raw_text=phrase,
                risk_level="healthy",
                child_risk="safe",
                regulatory_note=SAFE_INGREDIENT_NOTE.get(language, SAFE_INGREDIENT_NOTE["en"]),
                source="safe_list",
            )

        return None

    async def resolve(self, phrases: List[str], context_text: str = "", language: str = "en") -> List[IngredientEntry]:
        entries: List[Optional[IngredientEntry]] = [self.resolve_locally(p, language) for p in phrases]

        # Identical phrases share one oracle call
        semaphore = asyncio.Semaphore(self.max_concurrency)
        pending: Dict[str, asyncio.Task] = {}
        slots: Dict[int, str] = {}

        for index, (phrase, entry) in enumerate(zip(phrases, entries)):
            if entry is not None:
                continue
            key = normalize_text(phrase)
            if key not in pending:
                pending[key] = asyncio.create_task(
                    self._consult_oracle(phrase, context_text, language, semaphore)
                )
            slots[index] = key

        if pending:
            await asyncio.gather(*pending.values())

        resolved = []
        for index, phrase in enumerate(phrases):
            entry = entries[index]
            if entry is None:
                shared = pending[slots[index]].result()
                # Keep each row's own raw text
                entry = shared if shared.raw_text == phrase else shared.model_copy(update={"raw_text": phrase})
            resolved.append(entry)
        return resolved

    async def _consult_oracle(
        self,
        phrase: str,
        context_text: str,
        language: str,
        semaphore: asyncio.Semaphore,
    ) -> IngredientEntry:
        # The deadline starts when the task does, so queueing for a slot counts
        # against it and a whole request finishes within one oracle_timeout.
        try:
            judgment = await asyncio.wait_for(
                self._classify(phrase, context_text, language, semaphore),
                timeout=self.oracle_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Classifier timed out after %.1fs for %r; using default entry", self.oracle_timeout, phrase)
            return default_entry(phrase, language)
        except Exception as e:
            # A single unrecognized ingredient must not abort the scan
            logger.warning("Classifier unavailable for %r (%s); using default entry", phrase, e)
            return default_entry(phrase, language)

        return IngredientEntry(
            raw_text=phrase,
            risk_level=judgment.risk_level,
            child_risk=judgment.child_risk,
            regulatory_note=judgment.regulatory_note or DEFAULT_NOTE.get(language, DEFAULT_NOTE["en"]),
            source="oracle",
            regulated_additive=judgment.regulated_additive,
        )

    async def _classify(self, phrase: str, context_text: str, language: str, semaphore: asyncio.Semaphore):
        async with semaphore:
            return await self.oracle.classify(phrase, context_text, language)
