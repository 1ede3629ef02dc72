import re

from utils.constants import NORMALIZED_KEY_LENGTH

_DIGITS = re.compile(r"\d+")
_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)


def normalize_description(description: str) -> str:
    """Collapse a free-text description into a grouping key.

    "NETFLIX 4521" and "Netflix 7788" both become "netflix".
    """
    if not description:
        return ""
    key = description.lower()
    key = _DIGITS.sub("", key)
    key = _NON_WORD.sub("", key)
    return key.strip()[:NORMALIZED_KEY_LENGTH]


def contains_keyword(text: str, keywords) -> bool:
    lowered = (text or "").lower()
    return any(k in lowered for k in keywords)
