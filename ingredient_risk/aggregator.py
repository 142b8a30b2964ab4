from typing import Dict, List, Literal

from ingredient_risk.knowledge_base.models import RISK_SEVERITY
from ingredient_risk.models import AnalysisResult, IngredientEntry


ChildSafetyPolicy = Literal["avoid_only", "strict"]

CHILD_SAFETY_POLICIES = ("avoid_only", "strict")

SCORE_MIN = 1
SCORE_MAX = 10
HARMFUL_POINTS = 3
MODERATE_POINTS = 2
REGULATED_ORACLE_POINTS = 2

SUMMARY_TEMPLATES: Dict[str, Dict[str, str]] = {
    "healthy": {
        "en": "Clean product – no flagged ingredients",
        "zh": "成分單純 – 未發現需注意的成分",
    },
    "moderate": {
        "en": "Some additives – check child safety",
        "zh": "含部分添加物 – 請留意兒童食用安全",
    },
    "harmful": {
        "en": "Avoid – contains harmful or banned additives",
        "zh": "建議避免 – 含有有害或禁用添加物",
    },
    "nothing_detected": {
        "en": "No analyzable ingredients were detected",
        "zh": "未偵測到可分析的成分",
    },
}

WARNING_TEMPLATES: Dict[str, Dict[str, str]] = {
    "not_for_children": {
        "en": "{name} is not suitable for children",
        "zh": "{name} 不適合兒童食用",
    },
    "regulation": {
        "en": "{name}: {note}",
        "zh": "{name}：{note}",
    },
    "tip": {
        "en": "Tip: Avoid artificial colorings, sweeteners, and preservatives especially for young kids.",
        "zh": "提醒：幼童應盡量避免人工色素、甜味劑及防腐劑。",
    },
}


def _template(templates: Dict[str, Dict[str, str]], key: str, language: str) -> str:
    return templates[key].get(language, templates[key]["en"])


def overall_verdict(entries: List[IngredientEntry]) -> str:
    """Worst-of rule; "low" collapses into "healthy"."""
    worst = max((RISK_SEVERITY[e.risk_level] for e in entries), default=0)
    if worst >= RISK_SEVERITY["harmful"]:
        return "harmful"
    if worst >= RISK_SEVERITY["moderate"]:
        return "moderate"
    return "healthy"


def child_safe_overall(entries: List[IngredientEntry], policy: str = "avoid_only") -> bool:
    """
    Child safety across all entries.

    avoid_only: unsafe iff any entry is "avoid".
    strict: unsafe iff any entry is not "safe".
    """
    if policy == "strict":
        return all(e.child_risk == "safe" for e in entries)
    if policy == "avoid_only":
        return not any(e.child_risk == "avoid" for e in entries)
    raise ValueError(f"Unknown child safety policy: {policy}")


def processed_score(entries: List[IngredientEntry]) -> int:
    """Processed-food score, 1 (clean) to 10 (heavily processed)."""
    score = SCORE_MIN
    for entry in entries:
        if entry.risk_level == "harmful":
            score += HARMFUL_POINTS
        elif entry.risk_level == "moderate":
            score += MODERATE_POINTS
        if entry.source == "oracle" and entry.regulated_additive:
            score += REGULATED_ORACLE_POINTS
    return max(SCORE_MIN, min(SCORE_MAX, score))


def summary_text(verdict: str, language: str = "en") -> str:
    return _template(SUMMARY_TEMPLATES, verdict, language)


def health_warnings(entries: List[IngredientEntry], verdict: str, language: str = "en") -> List[str]:
    """Child and regulatory warnings for harmful entries, plus a general tip."""
    warnings = []
    seen = set()
    for entry in entries:
        if entry.risk_level != "harmful":
            continue
        name = entry.display_name(language)
        if name in seen:
            continue
        seen.add(name)
        if entry.child_risk == "avoid":
            warnings.append(_template(WARNING_TEMPLATES, "not_for_children", language).format(name=name))
        if entry.source != "default" and entry.regulatory_note:
            warnings.append(
                _template(WARNING_TEMPLATES, "regulation", language).format(name=name, note=entry.regulatory_note)
            )

    if verdict != "healthy":
        warnings.append(_template(WARNING_TEMPLATES, "tip", language))
    return warnings


def regulated_additives(entries: List[IngredientEntry], language: str = "en") -> List[str]:
    names = []
    for entry in entries:
        if entry.regulated_additive:
            name = entry.display_name(language)
            if name not in names:
                names.append(name)
    return names


def aggregate(entries: List[IngredientEntry], language: str = "en", policy: str = "avoid_only") -> AnalysisResult:
    """Combine resolved entries into the final AnalysisResult."""
    if not entries:
        return nothing_detected(language)

    verdict = overall_verdict(entries)
    return AnalysisResult(
        ingredients=list(entries),
        overall_verdict=verdict,
        child_safe_overall=child_safe_overall(entries, policy),
        processed_score=processed_score(entries),
        summary_text=summary_text(verdict, language),
        language=language,
        warnings=health_warnings(entries, verdict, language),
        regulated_additives=regulated_additives(entries, language),
        is_natural_product=all(e.risk_level == "healthy" for e in entries),
    )


def nothing_detected(language: str = "en") -> AnalysisResult:
    """Input was present but yielded no phrases."""
    return AnalysisResult(
        ingredients=[],
        overall_verdict="healthy",
        child_safe_overall=True,
        processed_score=SCORE_MIN,
        summary_text=_template(SUMMARY_TEMPLATES, "nothing_detected", language),
        language=language,
        status="nothing_detected",
    )
