import argparse
import json

import pytest

from ingredient_risk.errors import MalformedKBError
from ingredient_risk.knowledge_base.loader import load_knowledge_base
from main import cmd_build_kb
from scripts.build_tw_additives import build, infer_risk, merge_records, read_regulatory_csv, row_to_record
from scripts.build_tw_additives import main as script_main

CURATED = {
    "version": 2,
    "jurisdiction": "TW",
    "additives": [
        {
            "canonical_id": "aspartame",
            "display_name_en": "Aspartame",
            "display_name_zh": "阿斯巴甜",
            "e_number": "E951",
            "aliases": ["e951"],
            "risk_level": "harmful",
            "child_risk": "avoid",
            "regulatory_note": "Curated note",
        }
    ],
}

CSV_ZH = (
    "中文品名,英文品名,功能類別,代號,使用限制,備註\n"
    "阿斯巴甜,Aspartame,甜味劑,E951,限量,\n"
    "亞硝酸鈉,Sodium Nitrite,保色劑,E250,肉製品限量,\n"
    "己二烯酸鉀,Potassium Sorbate,防腐劑,E202,,\n"
    "玉米糖膠,Xanthan Gum,黏稠劑 thickener,E415,,\n"
    ",,,,,\n"
)


@pytest.fixture
def curated_path(tmp_path):
    path = tmp_path / "curated.json"
    path.write_text(json.dumps(CURATED, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def csv_path(tmp_path):
    path = tmp_path / "tw.csv"
    path.write_text("﻿" + CSV_ZH, encoding="utf-8")
    return path


@pytest.mark.parametrize("category,name,expected", [
    ("保色劑", "Sodium Nitrite", "harmful"),
    ("著色劑", "Tartrazine", "harmful"),
    ("防腐劑", "Sodium Benzoate", "moderate"),
    ("", "Caffeine", "moderate"),
    ("著色劑", "Caramel", "moderate"),
    ("antioxidant", "Tocopherol", "low"),
    ("乳化劑", "Lecithin", "low"),
    ("", "Something New", "moderate"),
])
def test_infer_risk(category, name, expected):
    assert infer_risk(category, name) == expected


def test_read_csv_with_chinese_headers(csv_path):
    rows = read_regulatory_csv(csv_path)

    assert [r["name_en"] for r in rows] == ["Aspartame", "Sodium Nitrite", "Potassium Sorbate", "Xanthan Gum"]
    assert rows[1]["name_zh"] == "亞硝酸鈉"
    assert rows[1]["e_code"] == "E250"
    assert rows[1]["restriction"] == "肉製品限量"


def test_row_to_record_with_override():
    row = {
        "name_zh": "己二烯酸鉀", "name_en": "Potassium Sorbate", "category": "防腐劑",
        "e_code": "E202", "restriction": "", "notes": "",
    }
    overrides = {"potassium sorbate": {"status": "low", "notes": "Reviewed", "aliases": ["sorbate k"]}}

    record = row_to_record(row, overrides)

    assert record["canonical_id"] == "potassium sorbate"
    assert record["risk_level"] == "low"
    assert record["child_risk"] == "safe"
    assert record["regulatory_note"] == "Reviewed"
    assert {"e202", "ins 202", "sorbate k"} <= set(record["aliases"])


def test_curated_records_win():
    regulatory = [{
        "canonical_id": "aspartame", "display_name_en": "Aspartame", "display_name_zh": "阿斯巴甜",
        "aliases": ["aspartame"], "risk_level": "moderate", "child_risk": "limit",
    }]
    merged = merge_records(CURATED["additives"], regulatory)
    assert len(merged) == 1
    assert merged[0]["regulatory_note"] == "Curated note"


def test_colliding_alias_is_dropped_from_later_record():
    regulatory = [
        {"canonical_id": "alpha gum", "display_name_en": "Alpha Gum", "display_name_zh": "甲膠",
         "aliases": ["gum x"], "risk_level": "low", "child_risk": "safe"},
        {"canonical_id": "beta gum", "display_name_en": "Beta Gum", "display_name_zh": "乙膠",
         "aliases": ["Gum-X", "beta"], "risk_level": "low", "child_risk": "safe"},
    ]
    merged = {r["canonical_id"]: r for r in merge_records([], regulatory)}

    assert merged["alpha gum"]["aliases"] == ["gum x"]
    assert merged["beta gum"]["aliases"] == ["beta"]


def test_build_writes_loadable_kb(curated_path, csv_path, tmp_path):
    overrides = tmp_path / "overrides.json"
    overrides.write_text(json.dumps({"Xanthan Gum": {"status": "healthy"}}), encoding="utf-8")
    out = tmp_path / "out" / "additives.json"

    count = build(csv_path, overrides, curated_path, out)

    assert count == 4
    kb = load_knowledge_base(out)
    assert kb.version == 2
    assert kb.get("aspartame").regulatory_note == "Curated note"
    assert kb.get("sodium nitrite").risk_level == "harmful"
    assert kb.get("sodium nitrite").child_risk == "avoid"
    assert kb.get("xanthan gum").risk_level == "healthy"
    assert kb.alias_index["e250"] == "sodium nitrite"


def test_build_without_csv_copies_curated(curated_path, tmp_path):
    out = tmp_path / "additives.json"
    assert build(None, None, curated_path, out) == 1


def test_build_refuses_invalid_records(tmp_path):
    curated = tmp_path / "curated.json"
    curated.write_text(json.dumps({"additives": [{"canonical_id": "x", "display_name_en": "X", "risk_level": "bad"}]}),
                       encoding="utf-8")
    out = tmp_path / "additives.json"

    with pytest.raises(MalformedKBError):
        build(None, None, curated, out)
    assert not out.exists()


def _build_kb_args(tmp_path, **overrides):
    args = {
        "csv": None,
        "overrides": None,
        "curated": str(tmp_path / "curated.json"),
        "out": str(tmp_path / "out.json"),
    }
    args.update(overrides)
    return argparse.Namespace(**args)


def test_cli_refuses_missing_curated_file(tmp_path):
    args = _build_kb_args(tmp_path, curated=str(tmp_path / "missing.json"))

    assert cmd_build_kb(args) == 1
    assert not (tmp_path / "out.json").exists()


def test_cli_refuses_unparseable_csv(curated_path, tmp_path):
    bad_csv = tmp_path / "bad.csv"
    bad_csv.write_text("name_en,category\nNisin,preservative\nNatamycin,preservative,extra,columns\n", encoding="utf-8")
    args = _build_kb_args(tmp_path, csv=str(bad_csv), curated=str(curated_path))

    assert cmd_build_kb(args) == 1
    assert not (tmp_path / "out.json").exists()


def test_script_main_refuses_missing_csv(curated_path, tmp_path):
    out = tmp_path / "out.json"
    code = script_main(["--csv", str(tmp_path / "nope.csv"), "--curated", str(curated_path), "--out", str(out)])

    assert code == 1
    assert not out.exists()
