from typing import Any, List, Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from ingredient_risk.knowledge_base.models import (
    AdditiveRecord,
    BadgeColor,
    ChildRisk,
    Language,
    RiskLevel,
    badge_for,
)


EntrySource = Literal["knowledge_base", "safe_list", "oracle", "default"]
Verdict = Literal["healthy", "moderate", "harmful"]


class AnalyzeRequest(BaseModel):
    """Inbound request from the UI/API layer."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ingredient_text: Optional[str] = None
    barcode: Optional[str] = None
    language: Language = "en"


class IngredientEntry(BaseModel):
    """One row of a resolved analysis."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    raw_text: str
    matched_record: Optional[AdditiveRecord] = None
    risk_level: RiskLevel
    child_risk: ChildRisk
    regulatory_note: str
    source: EntrySource
    regulated_additive: bool = False

    @computed_field(alias="badgeColor")
    @property
    def badge_color(self) -> BadgeColor:
        if self.source == "default":
            return "gray"
        return badge_for(self.risk_level)

    def display_name(self, language: str = "en") -> str:
        if self.matched_record is not None:
            return self.matched_record.display_name(language)
        return self.raw_text


class AnalysisResult(BaseModel):
    """Engine output contract."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ingredients: List[IngredientEntry]
    overall_verdict: Verdict
    child_safe_overall: bool
    processed_score: int = Field(ge=1, le=10)
    summary_text: str
    language: Language = "en"
    status: Literal["ok", "nothing_detected"] = "ok"
    warnings: List[str] = []
    regulated_additives: List[str] = []
    is_natural_product: bool = False
    product_name: Optional[str] = None
    barcode: Optional[str] = None


class ErrorResult(BaseModel):
    """Structured error returned to the UI instead of a crash."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error_kind: str
    message: str
    language: Language = "en"


_RISK_SYNONYMS = {
    "high": "harmful",
    "medium": "moderate",
    "safe": "healthy",
}

_CHILD_RISK_SYNONYMS = {
    "ok": "safe",
    "yes": "safe",
    "no": "avoid",
}


class OracleJudgment(BaseModel):
    """
    Structured judgment returned by the external classifier.

    Accepts the camelCase wire names as well as the older variants
    (capitalised levels, "High"/"Low", boolean childRisk, taiwanFDA note).
    """
    model_config = ConfigDict(populate_by_name=True)

    risk_level: RiskLevel = Field(validation_alias=AliasChoices("riskLevel", "risk_level", "status"))
    child_risk: ChildRisk = Field(validation_alias=AliasChoices("childRisk", "child_risk"))
    regulatory_note: str = Field(
        default="",
        validation_alias=AliasChoices("regulatoryNote", "regulatory_note", "taiwanFDA", "taiwanRule"),
    )
    regulated_additive: bool = Field(
        default=False,
        validation_alias=AliasChoices("regulatedAdditive", "regulated_additive"),
    )

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _RISK_SYNONYMS.get(lowered, lowered)
        return value

    @field_validator("child_risk", mode="before")
    @classmethod
    def _normalize_child_risk(cls, value: Any) -> Any:
        # Boolean form means "has a child risk"
        if isinstance(value, bool):
            return "avoid" if value else "safe"
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _CHILD_RISK_SYNONYMS.get(lowered, lowered)
        return value

    @field_validator("regulatory_note", mode="before")
    @classmethod
    def _none_note(cls, value: Any) -> Any:
        return "" if value is None else value
