"""
Address normalization for similarity comparison.

"Bailpar District Dandeli" and "bailpar dandeli" must compare equal, so
administrative qualifiers and directions are dropped along with
punctuation. Deterministic and idempotent: the output of normalize_location
is a fixed point of normalize_location.
"""

from typing import Optional
import unicodedata

# Administrative-division and direction words, including the local
# transliterations (uttar = north, dakshin = south, purba = east,
# paschim = west).
QUALIFIER_WORDS = frozenset({
    "district", "dist", "taluk", "tehsil",
    "north", "south", "east", "west",
    "uttar", "dakshin", "purba", "paschim",
})


def blank_punctuation(text: str) -> str:
    # Unicode categories P* and S*. Combining marks (Mn/Mc) stay, so Indic
    # vowel signs and viramas remain part of their word.
    return "".join(" " if unicodedata.category(ch)[0] in "PS" else ch for ch in text)


def normalize_location(raw_address: Optional[str]) -> str:
    """
    Canonical comparison key for a free-text address.

    - Lower-cases and trims
    - Replaces punctuation/symbols with spaces
    - Drops qualifier words
    - Collapses whitespace runs to one space

    Never raises; None or empty input yields "".
    """
    if not raw_address or not isinstance(raw_address, str):
        return ""

    cleaned = blank_punctuation(raw_address.lower())
    tokens = [token for token in cleaned.split() if token not in QUALIFIER_WORDS]
    return " ".join(tokens)
