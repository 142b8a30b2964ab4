import asyncio
import time

from conftest import ConcurrencyProbeOracle, FailingOracle, FixedOracle, SlowOracle
from ingredient_risk.resolver import RiskResolver, default_entry


def _resolve(resolver, phrases, language="en"):
    return asyncio.run(resolver.resolve(phrases, context_text=", ".join(phrases), language=language))


def test_resolution_order_kb_then_safe_list_then_oracle(kb):
    oracle = FixedOracle(risk_level="low", child_risk="safe", regulatory_note="Plant extract")
    entries = _resolve(RiskResolver(kb, oracle), ["Aspartame", "mystery extract", "water"])

    assert [e.raw_text for e in entries] == ["Aspartame", "mystery extract", "water"]
    assert [e.source for e in entries] == ["knowledge_base", "oracle", "safe_list"]
    assert entries[0].matched_record.canonical_id == "aspartame"
    assert entries[0].regulated_additive is True
    assert entries[1].regulatory_note == "Plant extract"
    assert entries[2].risk_level == "healthy"
    assert [c[0] for c in oracle.calls] == ["mystery extract"]


def test_oracle_receives_full_context_and_language(kb):
    oracle = FixedOracle()
    asyncio.run(RiskResolver(kb, oracle).resolve(["mystery"], context_text="糖、mystery", language="zh"))
    assert oracle.calls == [("mystery", "糖、mystery", "zh")]


def test_kb_entry_uses_language_note(kb):
    entries = _resolve(RiskResolver(kb, FixedOracle()), ["阿斯巴甜"], language="zh")
    assert entries[0].regulatory_note == kb.get("aspartame").regulatory_note_zh


def test_identical_phrases_share_one_oracle_call(kb):
    oracle = FixedOracle()
    entries = _resolve(RiskResolver(kb, oracle), ["Mystery", "mystery", "MYSTERY "])

    assert len(oracle.calls) == 1
    assert [e.raw_text for e in entries] == ["Mystery", "mystery", "MYSTERY "]
    assert len({(e.risk_level, e.child_risk) for e in entries}) == 1


def test_oracle_failure_yields_default_entry(kb):
    oracle = FailingOracle()
    entries = _resolve(RiskResolver(kb, oracle), ["mystery powder", "aspartame"])

    assert entries[0] == default_entry("mystery powder", "en")
    assert entries[0].source == "default"
    assert entries[0].badge_color == "gray"
    assert entries[0].regulatory_note == "no data"
    assert entries[1].source == "knowledge_base"


def test_oracle_timeout_yields_default_entry(kb):
    resolver = RiskResolver(kb, SlowOracle(delay=5.0), oracle_timeout=0.05)
    entries = _resolve(resolver, ["mystery powder"], language="zh")

    assert entries[0].source == "default"
    assert entries[0].risk_level == "moderate"
    assert entries[0].child_risk == "unknown"
    assert entries[0].regulatory_note == "無資料"


def test_one_slow_phrase_does_not_block_others(kb):
    class MixedOracle(FixedOracle):
        async def classify(self, phrase, context_text, language):
            if phrase == "slow":
                await asyncio.sleep(5.0)
            return await super().classify(phrase, context_text, language)

    entries = _resolve(RiskResolver(kb, MixedOracle(), oracle_timeout=0.1), ["slow", "fast"])

    assert entries[0].source == "default"
    assert entries[1].source == "oracle"


def test_oracle_concurrency_is_bounded(kb):
    oracle = ConcurrencyProbeOracle()
    phrases = [f"mystery {i}" for i in range(6)]
    entries = _resolve(RiskResolver(kb, oracle, max_concurrency=2), phrases)

    assert oracle.peak <= 2
    assert [e.raw_text for e in entries] == phrases


def test_empty_oracle_note_falls_back_to_no_data(kb):
    entries = _resolve(RiskResolver(kb, FixedOracle(regulatory_note="")), ["mystery"])
    assert entries[0].regulatory_note == "no data"
    assert entries[0].badge_color == "yellow"


def test_custom_safe_list(kb):
    resolver = RiskResolver(kb, FailingOracle(), safe_ingredients={"kombu"})
    entries = _resolve(resolver, ["Kombu", "water"])
    assert entries[0].source == "safe_list"
    assert entries[1].source == "default"


def test_resolve_locally_skips_oracle(kb):
    resolver = RiskResolver(kb, FailingOracle())
    assert resolver.resolve_locally("mystery", "en") is None
    assert resolver.resolve_locally("sugar", "en").source == "safe_list"


def test_queued_phrases_share_the_request_deadline(kb):
    resolver = RiskResolver(kb, SlowOracle(delay=5.0), oracle_timeout=0.2, max_concurrency=1)
    phrases = [f"mystery {i}" for i in range(4)]

    started = time.monotonic()
    entries = _resolve(resolver, phrases)
    elapsed = time.monotonic() - started

    assert [e.source for e in entries] == ["default"] * 4
    # Serialized per-slot deadlines would take 4 x 0.2s
    assert elapsed < 0.6
