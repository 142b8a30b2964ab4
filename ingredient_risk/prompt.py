import json
from typing import Dict, List


# Pre-built prompt skeleton (loaded once at module import)
SYSTEM_PROMPT_SKELETON = """You are a Taiwan food-safety assistant. Output ONLY valid JSON.

Classify ONE food ingredient for consumer risk, judged against Taiwan FDA food additive rules.

DECISION RULES:
• healthy: whole food or nutrient, no concern
• low: permitted additive, no meaningful concern within limits
• moderate: permitted additive with intake limits or mixed evidence
• harmful: banned, restricted for health reasons, or linked to harm in children

CHILD RISK:
• safe | limit | avoid | unknown

Set "regulatedAdditive" to true only if the ingredient is a food additive listed or restricted by Taiwan FDA.
Write "regulatoryNote" in {language_name}, one short sentence.

OUTPUT: JSON object with exactly these keys:
{{
  "riskLevel": "healthy" | "low" | "moderate" | "harmful",
  "childRisk": "safe" | "limit" | "avoid" | "unknown",
  "badge": "green" | "yellow" | "red" | "gray",
  "regulatoryNote": string,
  "regulatedAdditive": boolean
}}
"""

LANGUAGE_NAMES = {
    "en": "English",
    "zh": "Traditional Chinese",
}


def build_system_prompt(language: str) -> str:
    return SYSTEM_PROMPT_SKELETON.format(language_name=LANGUAGE_NAMES.get(language, "English"))


def build_messages(phrase: str, context_text: str, language: str) -> List[Dict[str, str]]:
    """Messages for one classification call."""
    payload = {
        "ingredientPhrase": phrase,
        "contextText": context_text or "",
        "language": language,
    }
    return [
        {"role": "system", "content": build_system_prompt(language)},
        {"role": "user", "content": json.dumps(payload, ensure_ascii=False)},
    ]
