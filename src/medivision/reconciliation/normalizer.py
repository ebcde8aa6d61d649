# ============================================================================
# src/medivision/reconciliation/normalizer.py
# ============================================================================
"""
Medication Name Normalization

Maps free-text medication names read off labels and discharge documents
onto a stable identity key:
- case-insensitive, punctuation stripped, whitespace collapsed
- strengths ("20mg") and dosage-form words ("tablet", "ER") removed
- brand/generic aliases resolved to active ingredients
- optional OCR-typo tolerance via edit distance
"""

import re
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from ..config import reconciliation_settings
from ..constants.medication_db import fuzzy_lookup, lookup_ingredients

logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")
_STRENGTH = re.compile(
    r"(?<![a-z])\d+(?:[.,]\d+)?\s*(?:mg|mcg|ug|g|ml|iu|units?|meq|%)(?![a-z])"
)
_BARE_NUMBER = re.compile(r"(?<![a-z])\d+(?:[.,]\d+)?(?![a-z])")

FORM_WORDS = frozenset({
    "tablet", "tablets", "tab", "tabs", "capsule", "capsules", "cap", "caps",
    "softgel", "softgels", "oral", "solution", "suspension", "liquid", "chewable",
    "er", "xr", "sr", "dr", "ec", "la", "cr", "extended", "delayed", "release",
    "regular", "extra", "maximum", "strength", "low", "dose", "generic", "brand",
    "po", "by", "mouth",
})

SALT_WORDS = frozenset({
    "hcl", "hydrochloride", "sodium", "potassium", "succinate", "tartrate",
    "besylate", "maleate", "citrate", "mesylate", "calcium",
})


@dataclass(frozen=True)
class ResolvedName:
    normalized: str                 # cleaned display-independent form
    key: str                        # identity used for merging
    ingredients: Tuple[str, ...]    # active ingredients, empty when unknown
    known: bool


def normalize_name(name: str) -> str:
    """Lower-case, strip punctuation and strengths, collapse whitespace."""
    text = (name or "").lower()
    text = _STRENGTH.sub(" ", text)
    text = _PUNCTUATION.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def _strip_words(text: str, words: frozenset) -> str:
    kept = [w for w in text.split(" ") if w and w not in words]
    return " ".join(kept)


def _ingredient_key(ingredients: Tuple[str, ...]) -> str:
    return " + ".join(sorted(ingredients))


@lru_cache(maxsize=4096)
def resolve_name(
    name: str,
    fuzzy: Optional[bool] = None,
    max_distance: Optional[int] = None,
    min_length: Optional[int] = None,
) -> ResolvedName:
    """
    Resolve a medication name to its identity key.

    Deterministic for a given name and settings.

    Args:
        name: Raw name as extracted
        fuzzy: Allow edit-distance matching (default from settings)
        max_distance: Edit distance tolerated (default from settings)
        min_length: Names shorter than this never fuzzy-match

    Returns:
        ResolvedName
    """
    if fuzzy is None:
        fuzzy = reconciliation_settings.FUZZY_NAME_MATCHING
    if max_distance is None:
        max_distance = reconciliation_settings.FUZZY_MAX_DISTANCE
    if min_length is None:
        min_length = reconciliation_settings.FUZZY_MIN_LENGTH

    normalized = normalize_name(name)
    without_forms = _strip_words(normalized, FORM_WORDS)
    without_salts = _strip_words(without_forms, SALT_WORDS)
    without_numbers = _WHITESPACE.sub(" ", _BARE_NUMBER.sub(" ", without_salts)).strip()

    for candidate in (normalized, without_forms, without_salts, without_numbers):
        if not candidate:
            continue
        ingredients = lookup_ingredients(candidate)
        if ingredients:
            return ResolvedName(normalized, _ingredient_key(ingredients), ingredients, True)

    base = without_numbers or without_forms or normalized
    if fuzzy and max_distance > 0 and len(base) >= min_length:
        alias = fuzzy_lookup(base, max_distance)
        if alias:
            ingredients = lookup_ingredients(alias)
            logger.info(f"Resolved {name!r} to {alias!r} by approximate match")
            return ResolvedName(normalized, _ingredient_key(ingredients), ingredients, True)

    return ResolvedName(normalized, base, (), False)
