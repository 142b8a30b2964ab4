from typing import Optional, Tuple

from ingredient_risk.knowledge_base.loader import KnowledgeBase
from ingredient_risk.knowledge_base.models import AdditiveRecord
from ingredient_risk.text import normalize_text


def find_match(phrase: str, kb: KnowledgeBase) -> Optional[Tuple[AdditiveRecord, str]]:
    """
    Find the best KB record for one ingredient phrase.

    A record matches when the normalized phrase contains any of its aliases.
    The longest matching alias wins; equal lengths fall back to the
    lexicographically smallest canonical id.

    Returns:
        (record, matched alias) or None
    """
    normalized = normalize_text(phrase)
    if not normalized:
        return None

    # Candidates are pre-sorted in precedence order
    for alias, record in kb.match_candidates:
        if len(alias) > len(normalized):
            continue
        if alias in normalized:
            return record, alias

    return None


def match_phrase(phrase: str, kb: KnowledgeBase) -> Optional[AdditiveRecord]:
    """Best matching AdditiveRecord for a phrase, or None."""
    found = find_match(phrase, kb)
    return found[0] if found else None
