"""
Build the additive knowledge base from the Taiwan FDA additive list.

Reads the official CSV (Chinese or English headers), infers a risk level for
each row, applies manual override annotations and merges the rows into the
curated knowledge base. Curated records always win. Alias collisions are
resolved in favour of the record whose canonical id sorts first, and the
merged result is validated with the runtime loader before it is written.

Usage:
    python scripts/build_tw_additives.py --csv data/tw-additives-source.csv \
        --overrides data/tw-additives-overrides.json \
        --out ingredient_risk/knowledge_base/additives.json
"""

import argparse
import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ingredient_risk.errors import IngredientRiskError
from ingredient_risk.knowledge_base.loader import DEFAULT_KB_PATH, build_knowledge_base
from ingredient_risk.text import normalize_text

logger = logging.getLogger(__name__)

# Accepted header spellings per field
COLUMN_CANDIDATES: Dict[str, List[str]] = {
    "name_zh": ["name_zh", "中文品名", "品名", "中文名稱"],
    "name_en": ["name_en", "英文品名", "英文名稱"],
    "category": ["category", "功能類別", "用途類別"],
    "e_code": ["e_code", "E code", "E-code", "代號", "E編碼", "編號"],
    "restriction": ["restriction", "使用限制", "限制說明"],
    "notes": ["notes", "備註"],
}

CHILD_RISK_BY_RISK = {
    "healthy": "safe",
    "low": "safe",
    "moderate": "limit",
    "harmful": "avoid",
}


def infer_risk(category: str, name_en: str) -> str:
    """Conservative risk heuristics from category and English name."""
    c = normalize_text(category)
    n = normalize_text(name_en)
    if re.search(r"nitrite|nitrate", n):
        return "harmful"
    if re.search(r"tartrazine|e102|yellow 5", n):
        return "harmful"
    if re.search(r"benzoate|sorbate|sulphite|sulfite", n):
        return "moderate"
    if "caffeine" in n:
        return "moderate"
    if re.search(r"colou?r|著色", c):
        return "moderate"
    if re.search(r"preservative|防腐", c):
        return "moderate"
    if re.search(r"antioxidant|emulsifier|stabilizer|thickener|acidity regulator|抗氧化|乳化|黏稠|品質改良", c):
        return "low"
    return "moderate"


def _pick(row: Dict[str, Any], keys: List[str]) -> str:
    for k in keys:
        value = row.get(k)
        if value is not None and not (isinstance(value, float) and pd.isna(value)) and str(value).strip():
            return str(value).strip()
    return ""


def _e_code_aliases(e_code: str) -> List[str]:
    aliases = [e_code]
    digits = re.sub(r"[^0-9a-zA-Z]", "", e_code).lower()
    if re.fullmatch(r"e?\d+[a-z]?", digits):
        number = digits.lstrip("e")
        aliases.extend([f"e{number}", f"ins {number}"])
    return aliases


def read_regulatory_csv(csv_path: Path) -> List[Dict[str, Any]]:
    """Read the official CSV into raw rows with canonical field names."""
    df = pd.read_csv(csv_path, encoding="utf-8-sig", dtype=str, skip_blank_lines=True)
    rows = []
    for raw in df.to_dict(orient="records"):
        row = {field: _pick(raw, keys) for field, keys in COLUMN_CANDIDATES.items()}
        if not row["name_en"] and not row["name_zh"]:
            continue
        rows.append(row)
    logger.info("Read %d rows from %s", len(rows), csv_path)
    return rows


def row_to_record(row: Dict[str, str], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Convert one CSV row to a raw additive record, applying overrides."""
    name_en = row["name_en"] or row["name_zh"]
    name_zh = row["name_zh"] or row["name_en"]
    e_code = row.get("e_code") or ""

    risk = infer_risk(row.get("category", ""), name_en)
    child_risk = CHILD_RISK_BY_RISK[risk]
    note = row.get("notes") or row.get("restriction") or ""
    aliases = [name_en, name_zh] + (_e_code_aliases(e_code) if e_code else [])

    # Overrides may be keyed by any of the row's normalized names
    for key in {normalize_text(a) for a in aliases if a}:
        override = overrides.get(key)
        if not override:
            continue
        if override.get("status"):
            risk = override["status"]
            child_risk = CHILD_RISK_BY_RISK.get(risk, child_risk)
        if override.get("childRisk"):
            child_risk = override["childRisk"]
        elif isinstance(override.get("childSafe"), bool):
            child_risk = "safe" if override["childSafe"] else "avoid"
        if override.get("notes"):
            note = override["notes"]
        aliases.extend(override.get("aliases", []))

    return {
        "canonical_id": normalize_text(name_en),
        "display_name_en": name_en,
        "display_name_zh": name_zh,
        "e_number": e_code or None,
        "category": row.get("category") or None,
        "aliases": sorted({a for a in aliases if normalize_text(a)}),
        "risk_level": risk,
        "child_risk": child_risk,
        "regulatory_note": note,
        "regulatory_note_zh": row.get("restriction") or None,
    }


def _record_aliases(record: Dict[str, Any]) -> set:
    names = list(record.get("aliases", [])) + [
        record.get("canonical_id"),
        record.get("display_name_en"),
        record.get("display_name_zh"),
        record.get("e_number"),
    ]
    return {normalize_text(n) for n in names if n and normalize_text(n)}


def merge_records(curated: List[Dict[str, Any]], regulatory: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Merge regulatory rows into the curated records.

    Curated records win on canonical id and on every alias they claim. Among
    regulatory rows, a colliding alias stays with the record whose canonical
    id sorts first; rows left without any alias of their own are dropped.
    """
    merged: Dict[str, Dict[str, Any]] = {r["canonical_id"]: r for r in curated}
    claimed: Dict[str, str] = {}
    for record in curated:
        for alias in _record_aliases(record):
            claimed[alias] = record["canonical_id"]

    for record in sorted(regulatory, key=lambda r: r["canonical_id"]):
        cid = record["canonical_id"]
        if not cid or cid in merged:
            logger.info("Skipping regulatory row '%s': already curated", cid)
            continue

        own = _record_aliases(record)
        taken = {a for a in own if a in claimed}

        # Names and E-number cannot be dropped like plain aliases
        names = {normalize_text(record.get(k) or "") for k in ("canonical_id", "display_name_en", "display_name_zh", "e_number")}
        clash = sorted(names & taken)
        if clash:
            logger.warning("Skipping regulatory row '%s': %s already belongs to '%s'", cid, clash[0], claimed[clash[0]])
            continue

        if taken:
            logger.warning("Dropping aliases %s from '%s': already claimed", sorted(taken), cid)
        record = dict(record)
        record["aliases"] = [a for a in record["aliases"] if normalize_text(a) not in taken]

        merged[cid] = record
        for alias in own - taken:
            claimed[alias] = cid

    return [merged[k] for k in sorted(merged)]


def build(csv_path: Optional[Path], overrides_path: Optional[Path], curated_path: Path, out_path: Path) -> int:
    """Run the build; returns the number of records written."""
    with open(curated_path, "r", encoding="utf-8") as f:
        curated_doc = json.load(f)
    curated = curated_doc.get("additives", [])

    overrides: Dict[str, Any] = {}
    if overrides_path and Path(overrides_path).exists():
        with open(overrides_path, "r", encoding="utf-8") as f:
            overrides = {normalize_text(k): v for k, v in json.load(f).items()}

    regulatory = []
    if csv_path:
        regulatory = [row_to_record(row, overrides) for row in read_regulatory_csv(Path(csv_path))]

    records = merge_records(curated, regulatory)

    # Refuse to write a KB the runtime would reject
    build_knowledge_base(records, version=curated_doc.get("version", 1))

    doc = {
        "version": curated_doc.get("version", 1),
        "jurisdiction": curated_doc.get("jurisdiction", "TW"),
        "additives": records,
    }
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(doc, f, ensure_ascii=False, indent=2)

    logger.info("Built %s with %d additives", out_path, len(records))
    return len(records)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Merge the Taiwan FDA additive CSV into the additive knowledge base",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--csv', type=Path, help='Official Taiwan FDA additive CSV')
    parser.add_argument('--overrides', type=Path, help='Manual override annotations (JSON)')
    parser.add_argument('--curated', type=Path, default=DEFAULT_KB_PATH, help='Curated knowledge base JSON')
    parser.add_argument('--out', type=Path, default=DEFAULT_KB_PATH, help='Output knowledge base JSON')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    try:
        build(args.csv, args.overrides, args.curated, args.out)
    except (IngredientRiskError, OSError, ValueError) as e:
        logger.error("Refusing to write knowledge base: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
