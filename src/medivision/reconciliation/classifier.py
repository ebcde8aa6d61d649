# ============================================================================
# src/medivision/reconciliation/classifier.py
# ============================================================================
"""
OTC vs prescription classification.

Listed ingredients use the knowledge table (a combination product is OTC
only when every component is). Unlisted names are OTC when they look like
a vitamin or supplement, otherwise Rx.
"""

from functools import lru_cache

from ..constants.medication_db import OTC_KEYWORDS, is_otc_ingredient
from ..core.context.enums import MedicationCategory
from .normalizer import resolve_name


@lru_cache(maxsize=2048)
def classify(name: str) -> MedicationCategory:
    resolved = resolve_name(name)

    if resolved.known:
        flags = [is_otc_ingredient(i) for i in resolved.ingredients]
        if flags and all(flags):
            return MedicationCategory.OTC
        return MedicationCategory.RX

    if any(keyword in resolved.normalized for keyword in OTC_KEYWORDS):
        return MedicationCategory.OTC

    return MedicationCategory.RX
