import asyncio

import pytest

import config
from conftest import FailingOracle
from core.barcode import BarcodeResolver, ProductCatalog, ProductRecord
from core.service import build_service, error_result
from ingredient_risk.errors import MalformedKBError, NoInputError, OracleUnavailableError
from ingredient_risk.models import AnalyzeRequest


@pytest.fixture
def catalog(tmp_path):
    catalog = ProductCatalog(tmp_path / "products.db")
    catalog.upsert(ProductRecord(barcode="4710000000001", name="Diet Soda", ingredients_text="水、阿斯巴甜"))
    catalog.upsert(ProductRecord(barcode="4710000000002", name="Mystery Snack", ingredients_text=""))
    return catalog


@pytest.fixture
def service(kb, catalog):
    return build_service(
        knowledge_base=kb,
        oracle=FailingOracle(),
        barcode_resolver=BarcodeResolver(catalog, use_open_food_facts=False),
    )


def test_barcode_resolves_to_text(service):
    result = asyncio.run(service.analyze(AnalyzeRequest(barcode="4710000000001", language="zh")))

    assert result.product_name == "Diet Soda"
    assert result.barcode == "4710000000001"
    assert result.overall_verdict == "harmful"
    assert result.regulated_additives == ["阿斯巴甜"]


@pytest.mark.parametrize("barcode", ["4710000000002", "4719999999999"])
def test_unresolved_barcode_is_no_input(service, barcode):
    with pytest.raises(NoInputError) as exc_info:
        asyncio.run(service.analyze(AnalyzeRequest(barcode=barcode, language="zh")))
    assert exc_info.value.barcode == barcode
    assert exc_info.value.localized_message("zh") == "條碼找到但產品標籤缺失。"


def test_typed_text_skips_barcode_lookup(service):
    result = asyncio.run(service.analyze(AnalyzeRequest(ingredient_text="water", barcode="4710000000001")))
    assert result.overall_verdict == "healthy"
    assert result.product_name is None
    assert result.barcode == "4710000000001"


def test_nothing_at_all(service):
    with pytest.raises(NoInputError):
        asyncio.run(service.analyze(AnalyzeRequest()))


def test_error_results():
    assert error_result(NoInputError(), "en").error_kind == "NoInput"
    assert error_result(MalformedKBError("bad"), "zh").message == "掃描失敗，請再試一次。"
    assert error_result(OracleUnavailableError("down"), "fr").language == "en"


def test_build_service_refuses_malformed_kb(tmp_path, monkeypatch):
    bad = tmp_path / "kb.json"
    bad.write_text('{"additives": [{"canonical_id": "a"}]}', encoding="utf-8")
    monkeypatch.setattr(config, "KNOWLEDGE_BASE_PATH", bad)

    with pytest.raises(MalformedKBError):
        build_service(oracle=FailingOracle())
