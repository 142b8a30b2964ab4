import re
from typing import Iterable, List


DEFAULT_DELIMITERS = (",", "，", "、", ";", "；", "\n", "\r", "·", "・")
DEFAULT_BRACKETS = ("(", ")", "（", "）", "[", "]", "【", "】")

# "Ingredients:" / "成分：" header in front of the whole list
_HEADER_PATTERN = re.compile(r'^\s*(?:ingredients?|成分|原料|配料|內容物)\s*[:：]\s*', re.IGNORECASE)

# Sub-ingredient markers such as "米糠（含胚芽）" or "(contains: soy)"
_MARKER_PATTERN = re.compile(
    r'^(?:含有|包含|內含|含|(?:containing|contains|contain|including|incl)\b\.?)\s*[:：]?\s*',
    re.IGNORECASE,
)

# Quantity qualifiers: "2% or less of salt", "less than 1% of", "鹽 1.5%"
_QUANTITY_PREFIX_PATTERN = re.compile(
    r'^(?:less than\s+)?\d+(?:[.,]\d+)?\s*%\s*(?:or less\b\s*)?(?:of\b\s*)?(?:the following\b\s*)?[:：]?\s*',
    re.IGNORECASE,
)
_QUANTITY_SUFFIX_PATTERN = re.compile(r'\s*\d+(?:[.,]\d+)?\s*%$')

_STRIP_CHARS = " \t　.。:：*-–—•_|"


def _separator_regex(separator: str) -> str:
    # A comma between two digits is a decimal comma ("1,5%")
    if separator == ",":
        return r'(?<!\d),|,(?!\d)'
    return re.escape(separator)


class IngredientTokenizer:
    """
    Splits a raw ingredient list into ordered candidate phrases.

    Parenthetical content is kept as extra phrases right after the parent
    ingredient. Casing is preserved for display.
    """

    def __init__(self, delimiters: Iterable[str] = DEFAULT_DELIMITERS, brackets: Iterable[str] = DEFAULT_BRACKETS):
        separators = list(delimiters) + list(brackets)
        if not separators:
            raise ValueError("At least one delimiter is required")
        self.separator_pattern = re.compile("|".join(_separator_regex(s) for s in separators))

    def split(self, text: str) -> List[str]:
        if not text or not text.strip():
            return []

        text = _HEADER_PATTERN.sub("", text, count=1)

        phrases = []
        for piece in self.separator_pattern.split(text):
            phrase = self._clean(piece)
            if phrase:
                phrases.append(phrase)
        return phrases

    def _clean(self, piece: str) -> str:
        phrase = piece.strip(_STRIP_CHARS)
        phrase = _MARKER_PATTERN.sub("", phrase, count=1)
        phrase = _QUANTITY_PREFIX_PATTERN.sub("", phrase, count=1)
        phrase = _QUANTITY_SUFFIX_PATTERN.sub("", phrase, count=1)
        phrase = phrase.strip(_STRIP_CHARS)

        # Pure punctuation is not an ingredient
        if not re.search(r'\w', phrase):
            return ""
        return phrase


_default_tokenizer = IngredientTokenizer()


def split_ingredients(text: str) -> List[str]:
    """Split text with the default delimiter set."""
    return _default_tokenizer.split(text)
