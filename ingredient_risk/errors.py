"""
Error kinds raised by the ingredient risk engine.

Each error carries a stable ``kind`` (used by the API/CLI when building an
ErrorResult) and can render a zh/en message for the UI retry affordance.
"""

from typing import Dict


ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "NoInput": {
        "en": "No ingredient text or barcode provided. Please scan the label again.",
        "zh": "未提供成分文字或條碼，請重新掃描標籤。",
    },
    "BarcodeNotFound": {
        "en": "Barcode found but product label missing.",
        "zh": "條碼找到但產品標籤缺失。",
    },
    "OracleUnavailable": {
        "en": "Ingredient classifier is unavailable.",
        "zh": "成分分類服務暫時無法使用。",
    },
    "MalformedKB": {
        "en": "Scan failed, please try again.",
        "zh": "掃描失敗，請再試一次。",
    },
}


class IngredientRiskError(Exception):
    """Base class for engine errors."""

    kind = "Error"

    def localized_message(self, language: str = "en") -> str:
        messages = ERROR_MESSAGES.get(self.kind, ERROR_MESSAGES["MalformedKB"])
        return messages.get(language, messages["en"])


class NoInputError(IngredientRiskError):
    """No ingredient text, barcode-resolved text or image text was supplied."""

    kind = "NoInput"

    def __init__(self, message: str = "No ingredient text supplied", barcode: str = None):
        super().__init__(message)
        self.barcode = barcode

    def localized_message(self, language: str = "en") -> str:
        # An unresolved barcode gets the more specific message
        key = "BarcodeNotFound" if self.barcode else self.kind
        messages = ERROR_MESSAGES[key]
        return messages.get(language, messages["en"])


class OracleUnavailableError(IngredientRiskError):
    """Per-phrase classification failed (timeout, transport, malformed payload)."""

    kind = "OracleUnavailable"


class MalformedKBError(IngredientRiskError):
    """The knowledge base failed its uniqueness/alias invariants at load time."""

    kind = "MalformedKB"
