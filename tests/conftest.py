import asyncio
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep config away from the developer's .env and network
os.environ["OPENAI_API_KEY"] = ""
os.environ["OPEN_FOOD_FACTS_ENABLED"] = "false"
os.environ["PRODUCT_DB_PATH"] = str(Path(tempfile.mkdtemp(prefix="fse-tests-")) / "products.db")

from ingredient_risk.errors import OracleUnavailableError
from ingredient_risk.knowledge_base.loader import load_default_knowledge_base
from ingredient_risk.models import OracleJudgment
from ingredient_risk.oracle import ClassifierOracle


class FixedOracle(ClassifierOracle):
    """Returns the same judgment for every phrase and records each call."""

    def __init__(self, judgment=None, **overrides):
        self.judgment = judgment or OracleJudgment(
            risk_level=overrides.get("risk_level", "moderate"),
            child_risk=overrides.get("child_risk", "limit"),
            regulatory_note=overrides.get("regulatory_note", "Classifier note"),
            regulated_additive=overrides.get("regulated_additive", False),
        )
        self.calls = []

    async def classify(self, phrase, context_text, language):
        self.calls.append((phrase, context_text, language))
        return self.judgment


class FailingOracle(ClassifierOracle):

    def __init__(self):
        self.calls = 0

    async def classify(self, phrase, context_text, language):
        self.calls += 1
        raise OracleUnavailableError("classifier down")


class SlowOracle(ClassifierOracle):
    """Sleeps past any reasonable test timeout."""

    def __init__(self, delay=5.0):
        self.delay = delay

    async def classify(self, phrase, context_text, language):
        await asyncio.sleep(self.delay)
        return OracleJudgment(risk_level="harmful", child_risk="avoid")


class ConcurrencyProbeOracle(ClassifierOracle):
    """Tracks the peak number of in-flight classify calls."""

    def __init__(self, delay=0.02):
        self.delay = delay
        self.active = 0
        self.peak = 0

    async def classify(self, phrase, context_text, language):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        return OracleJudgment(risk_level="low", child_risk="safe")


@pytest.fixture
def kb():
    return load_default_knowledge_base()
