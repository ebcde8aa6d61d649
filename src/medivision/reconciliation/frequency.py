# ============================================================================
# src/medivision/reconciliation/frequency.py
# ============================================================================
"""
Frequency parsing: free-text dosing frequency -> initial time slots.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import reconciliation_settings
from ..constants.frequency_rules import FREQUENCY_RULES
from ..core.context.enums import TimeSlot

logger = logging.getLogger(__name__)

# OCR splits words with line breaks, doubled spaces or hyphens ("twice-daily")
_SEPARATORS = re.compile(r"[\s\-\/]+")


@dataclass(frozen=True)
class SlotAssignment:
    slots: Tuple[TimeSlot, ...]
    rule: Optional[str]         # matched rule name, None on fallback

    @property
    def is_fallback(self) -> bool:
        return self.rule is None

    @property
    def note(self) -> Optional[str]:
        if not self.is_fallback:
            return None
        return (
            f"Frequency could not be interpreted; defaulted to "
            f"{', '.join(s.value for s in self.slots)}. Please confirm the timing."
        )


def normalize_frequency(frequency: Optional[str]) -> str:
    """Lower-case and collapse whitespace, hyphen and slash runs to one space."""
    return _SEPARATORS.sub(" ", (frequency or "").lower()).strip()


def derive_slots(frequency: Optional[str]) -> SlotAssignment:
    """
    Map frequency text onto slots using the fixed rule table.

    Examples:
        "twice daily" -> (morning, evening)
        "HS"          -> (bedtime,)
        "as needed"   -> (morning,) fallback
    """
    text = normalize_frequency(frequency)

    if text:
        for rule in FREQUENCY_RULES:
            if rule.pattern.search(text):
                return SlotAssignment(tuple(TimeSlot(s) for s in rule.slots), rule.name)

    logger.debug(f"No frequency rule matched {frequency!r}")
    default = TimeSlot(reconciliation_settings.DEFAULT_SLOT)
    return SlotAssignment((default,), None)
