from typing import Dict, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel


RiskLevel = Literal["healthy", "low", "moderate", "harmful"]
ChildRisk = Literal["safe", "limit", "avoid", "unknown"]
BadgeColor = Literal["green", "yellow", "red", "gray"]
Language = Literal["zh", "en"]

# healthy < low < moderate < harmful
RISK_SEVERITY: Dict[str, int] = {
    "healthy": 0,
    "low": 1,
    "moderate": 2,
    "harmful": 3,
}

BADGE_BY_RISK: Dict[str, str] = {
    "healthy": "green",
    "low": "green",
    "moderate": "yellow",
    "harmful": "red",
}


def badge_for(risk_level: str) -> str:
    """Badge colour derived from a risk level; unknown levels are gray."""
    return BADGE_BY_RISK.get(risk_level, "gray")


class AdditiveRecord(BaseModel):
    """One row of the additive knowledge base."""
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    canonical_id: str
    display_name_en: str
    display_name_zh: str = ""
    e_number: Optional[str] = None
    category: Optional[str] = None
    aliases: Tuple[str, ...] = ()
    risk_level: RiskLevel
    child_risk: ChildRisk = "unknown"
    regulatory_note: str = ""
    regulatory_note_zh: Optional[str] = None
    description: Optional[str] = None

    @computed_field(alias="badgeColor")
    @property
    def badge_color(self) -> BadgeColor:
        return badge_for(self.risk_level)

    def display_name(self, language: str = "en") -> str:
        if language == "zh" and self.display_name_zh:
            return self.display_name_zh
        return self.display_name_en

    def note_for(self, language: str = "en") -> str:
        if language == "zh" and self.regulatory_note_zh:
            return self.regulatory_note_zh
        return self.regulatory_note
