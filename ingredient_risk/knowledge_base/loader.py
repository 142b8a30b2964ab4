"""
Additive Knowledge Base

Loads the curated additive records from JSON, registers every alias in its
normalized form and refuses to build a knowledge base that breaks the
uniqueness invariants (one record per canonical id, one record per alias).
The resulting object is read-only and shared by all concurrent analyses.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ingredient_risk.errors import MalformedKBError
from ingredient_risk.knowledge_base.models import AdditiveRecord
from ingredient_risk.text import normalize_text

logger = logging.getLogger(__name__)

DEFAULT_KB_PATH = Path(__file__).parent / "additives.json"


def _alias_set(record: AdditiveRecord) -> List[str]:
    """All normalized aliases a record answers to, including its names and E-number."""
    aliases = set()
    for alias in record.aliases:
        normalized = normalize_text(alias)
        if not normalized:
            raise MalformedKBError(
                f"Record '{record.canonical_id}' has an alias that is empty after normalization: {alias!r}"
            )
        aliases.add(normalized)

    for extra in (record.canonical_id, record.display_name_en, record.display_name_zh, record.e_number):
        normalized = normalize_text(extra or "")
        if normalized:
            aliases.add(normalized)

    return sorted(aliases)


class KnowledgeBase:
    """Immutable registry of additive records indexed by canonical id and alias."""

    def __init__(self, records: Iterable[AdditiveRecord], version: int = 1):
        self.version = version

        by_id: Dict[str, AdditiveRecord] = {}
        alias_owner: Dict[str, str] = {}

        for record in records:
            if not record.canonical_id.strip():
                raise MalformedKBError("Record with empty canonical_id")
            if record.canonical_id in by_id:
                raise MalformedKBError(f"Duplicate canonical_id: '{record.canonical_id}'")

            aliases = _alias_set(record)
            for alias in aliases:
                owner = alias_owner.get(alias)
                if owner is not None:
                    raise MalformedKBError(
                        f"Alias '{alias}' is claimed by both '{owner}' and '{record.canonical_id}'"
                    )
                alias_owner[alias] = record.canonical_id

            by_id[record.canonical_id] = record.model_copy(update={"aliases": tuple(aliases)})

        self._records: Tuple[AdditiveRecord, ...] = tuple(by_id[k] for k in sorted(by_id))
        self._by_id: Mapping[str, AdditiveRecord] = MappingProxyType(by_id)
        self._alias_owner: Mapping[str, str] = MappingProxyType(alias_owner)

        # Longest alias first, then canonical id, so the first hit is the winner
        self._candidates: Tuple[Tuple[str, AdditiveRecord], ...] = tuple(
            sorted(
                ((alias, by_id[owner]) for alias, owner in alias_owner.items()),
                key=lambda item: (-len(item[0]), item[1].canonical_id, item[0]),
            )
        )

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AdditiveRecord]:
        return iter(self._records)

    def __contains__(self, canonical_id: object) -> bool:
        return canonical_id in self._by_id

    @property
    def records(self) -> Tuple[AdditiveRecord, ...]:
        return self._records

    @property
    def alias_index(self) -> Mapping[str, str]:
        """Normalized alias -> canonical id."""
        return self._alias_owner

    @property
    def match_candidates(self) -> Tuple[Tuple[str, AdditiveRecord], ...]:
        """(alias, record) pairs in match precedence order."""
        return self._candidates

    def get(self, canonical_id: str) -> Optional[AdditiveRecord]:
        return self._by_id.get(canonical_id)


def build_knowledge_base(raw_records: List[Dict[str, Any]], version: int = 1) -> KnowledgeBase:
    """Validate raw record dicts and build a KnowledgeBase."""
    records = []
    for index, raw in enumerate(raw_records):
        try:
            records.append(AdditiveRecord.model_validate(raw))
        except ValidationError as e:
            raise MalformedKBError(f"Invalid additive record at index {index}: {e}") from e
    return KnowledgeBase(records, version=version)


def load_knowledge_base(path: Optional[Path] = None) -> KnowledgeBase:
    """
    Load the knowledge base from a JSON file.

    Args:
        path: JSON file with {"version": int, "additives": [...]}; defaults to the packaged file

    Raises:
        MalformedKBError: the file is missing, unreadable or breaks an invariant
    """
    kb_path = Path(path) if path else DEFAULT_KB_PATH
    try:
        with open(kb_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise MalformedKBError(f"Knowledge base not found: {kb_path}") from e
    except json.JSONDecodeError as e:
        raise MalformedKBError(f"Knowledge base is not valid JSON: {kb_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("additives"), list):
        raise MalformedKBError(f"Knowledge base has no 'additives' list: {kb_path}")

    kb = build_knowledge_base(data["additives"], version=data.get("version", 1))
    logger.info("Loaded %d additive records (%d aliases) from %s", len(kb), len(kb.alias_index), kb_path)
    return kb


@lru_cache(maxsize=1)
def load_default_knowledge_base() -> KnowledgeBase:
    return load_knowledge_base(DEFAULT_KB_PATH)
