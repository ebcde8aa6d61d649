# ============================================================================
# src/medivision/constants/__init__.py
# ============================================================================
"""
Convenient imports for all constants
"""

from .medication_db import (
    INGREDIENTS,
    COMBINATION_PRODUCTS,
    OTC_KEYWORDS,
    ALIAS_INDEX,
    levenshtein_distance,
    lookup_ingredients,
    fuzzy_lookup,
    get_drug_classes,
    is_otc_ingredient,
)
from .interactions import InteractionRule, INTERACTION_RULES
from .frequency_rules import FrequencyRule, FREQUENCY_RULES
