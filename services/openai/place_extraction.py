"""Best-effort extraction of place names from a narration text.

The result only seeds a "don't repeat these" hint for the next prompt, so
false positives and misses are acceptable.
"""

import re
from typing import List

import config

_SENTENCE_SPLIT = re.compile(r"[.!?]\s+")

# A run of capitalised words, allowing "of"/"de"/"the" inside (e.g. "Museum of Modern Art").
_NAME = r"[A-Z][\w'-]+(?:\s+(?:(?:of|de|la|the)\s+)?[A-Z][\w'-]+)*"
_LEAD_IN_PATTERN = re.compile(r"\b(?:the|near|at|by|visit|to)\s+(" + _NAME + r")")
_NAME_PATTERN = re.compile(r"\b(" + _NAME + r")")
_CONTRACTION = re.compile(r"'(?:ll|re|ve|d|m|t)$", re.IGNORECASE)

STOP_WORDS = {
    "the", "and", "or", "but", "if", "when", "where", "what", "how", "why",
    "this", "that", "these", "those", "here", "there", "just", "also", "then",
    "you", "your", "its", "it's", "while", "nearby", "next", "visit", "welcome",
    "don't", "take", "walk", "head", "from", "with",
}


def _keep(candidate: str, sentence_start: bool) -> bool:
    if len(candidate) <= 3 or _CONTRACTION.search(candidate.split()[0]):
        return False
    # A lone capitalised word opening a sentence is usually just an ordinary word.
    if sentence_start and " " not in candidate:
        return False
    return candidate.lower() not in STOP_WORDS


def extract_place_names(text: str, limit: int = config.MAX_EXTRACTED_PLACE_NAMES) -> List[str]:
    """Return up to `limit` capitalised phrases that look like place names."""
    places: List[str] = []
    if not text:
        return places
    for sentence in _SENTENCE_SPLIT.split(text.strip()):
        for pattern in (_LEAD_IN_PATTERN, _NAME_PATTERN):
            for match in pattern.finditer(sentence):
                candidate = " ".join(match.group(1).split())
                if _keep(candidate, match.start(1) == 0) and candidate not in places:
                    places.append(candidate)
    return places[:limit]
