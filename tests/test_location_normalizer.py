import pytest

from app.utils.location import normalize_location


def test_qualifiers_and_case_removed():
    assert normalize_location("Bailpar District Dandeli") == "bailpar dandeli"
    assert normalize_location("bailpar dandeli") == "bailpar dandeli"


def test_punctuation_and_whitespace_collapsed():
    assert normalize_location("  Bailpar,   DANDELI!! ") == "bailpar dandeli"
    assert normalize_location("MG_Road/5th-Cross") == "mg road 5th cross"


def test_direction_words_dropped():
    assert normalize_location("North Uttar Kannada, Dist. Karwar") == "kannada karwar"
    assert normalize_location("Paschim Bardhaman Taluk") == "bardhaman"


def test_indic_words_kept_whole():
    assert normalize_location("ಬೈಲ್ಪಾರ್, ದಾಂಡೇಲಿ") == "ಬೈಲ್ಪಾರ್ ದಾಂಡೇಲಿ"
    assert normalize_location("हलियाल रोड।") == "हलियाल रोड"
    assert normalize_location("ಹಳಿಯಾಳ ರಸ್ತೆ ದಾಂಡೇಲಿ").split() == ["ಹಳಿಯಾಳ", "ರಸ್ತೆ", "ದಾಂಡೇಲಿ"]


def test_different_indic_streets_share_only_the_town():
    from app.services.similarity.heuristic import jaccard

    a = set(normalize_location("ಬೈಲ್ಪಾರ್ ದಾಂಡೇಲಿ").split())
    b = set(normalize_location("ಹಳಿಯಾಳ ರಸ್ತೆ ದಾಂಡೇಲಿ").split())

    assert a & b == {"ದಾಂಡೇಲಿ"}
    assert jaccard(a, b) == 0.25


@pytest.mark.parametrize("raw", [None, "", "   ", "District", ",,, ;"])
def test_empty_inputs(raw):
    assert normalize_location(raw) == ""


@pytest.mark.parametrize("raw", [
    "Bailpar District Dandeli",
    "12, Station Road (near Clock Tower), Hubli-Dharwad",
    "Dakshin   Kannada__Mangaluru",
    "ಬೈಲ್ಪಾರ್ ದಾಂಡೇಲಿ",
])
def test_idempotent(raw):
    once = normalize_location(raw)
    assert normalize_location(once) == once
