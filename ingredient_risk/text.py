import re
import unicodedata


def normalize_text(text: str) -> str:
    """
    Normalize text for alias matching.
    - Unicode NFKC (full-width letters, digits and brackets become ASCII)
    - Lowercase
    - Hyphens, underscores, slashes and dots become spaces
    - Collapse whitespace
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFKC", text).lower()

    # "beta-carotene" and "fd&c red no. 40" must match their spaced spellings
    text = re.sub(r'[\-_/.]', ' ', text)

    text = re.sub(r'\s+', ' ', text).strip()

    return text
