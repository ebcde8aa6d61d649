# ============================================================================
# src/medivision/constants/frequency_rules.py
# ============================================================================
"""
Frequency text -> time slot rule table.

Rules are tried in order against the lower-cased frequency text and the
first match wins, so more specific patterns ("twice daily") precede the
generic ones ("daily").
"""

import re
from dataclasses import dataclass
from typing import Pattern, Tuple


def _token(pattern: str) -> str:
    # Word-ish boundaries that also work around abbreviations like "h.s."
    return rf"(?<![a-z0-9])(?:{pattern})(?![a-z0-9])"


@dataclass(frozen=True)
class FrequencyRule:
    name: str
    pattern: Pattern
    slots: Tuple[str, ...]


def _rule(name: str, alternatives: Tuple[str, ...], slots: Tuple[str, ...]) -> FrequencyRule:
    return FrequencyRule(name, re.compile(_token("|".join(alternatives))), slots)


FREQUENCY_RULES: Tuple[FrequencyRule, ...] = (
    _rule("four_times_daily", (
        r"four times (?:a |per )?day",
        r"four times daily",
        r"4 times (?:a |per )?day",
        r"4 times daily",
        r"4x (?:a |per )?day",
        r"4x daily",
        r"q\.?i\.?d\.?",
        r"every 6 hours",
        r"q\.?6\.?h\.?",
    ), ("morning", "noon", "evening", "bedtime")),

    _rule("three_times_daily", (
        r"three times (?:a |per )?day",
        r"three times daily",
        r"3 times (?:a |per )?day",
        r"3 times daily",
        r"3x (?:a |per )?day",
        r"3x daily",
        r"t\.?i\.?d\.?",
        r"every 8 hours",
        r"q\.?8\.?h\.?",
    ), ("morning", "noon", "evening")),

    _rule("twice_daily", (
        r"twice (?:a |per )?day",
        r"twice daily",
        r"two times (?:a |per )?day",
        r"two times daily",
        r"2 times (?:a |per )?day",
        r"2 times daily",
        r"2x (?:a |per )?day",
        r"2x daily",
        r"b\.?i\.?d\.?",
        r"every 12 hours",
        r"q\.?12\.?h\.?",
        r"(?:every |in the )?morning (?:and|&) (?:in the |every )?evening",
        r"a\.?m\.? (?:and|&) p\.?m\.?",
    ), ("morning", "evening")),

    _rule("with_meals", (
        r"with (?:each |every |all )?meals",
        r"with breakfast,? lunch,? and dinner",
    ), ("morning", "noon", "evening")),

    _rule("bedtime", (
        r"at bedtime",
        r"bedtime",
        r"before (?:sleep|sleeping|bed)",
        r"at night",
        r"nightly",
        r"h\.?s\.?",
        r"q\.?h\.?s\.?",
    ), ("bedtime",)),

    _rule("evening", (
        r"every evening",
        r"in the evening",
        r"with (?:dinner|supper)",
        r"q\.?p\.?m\.?",
    ), ("evening",)),

    _rule("noon", (
        r"at noon",
        r"midday",
        r"with lunch",
    ), ("noon",)),

    _rule("once_daily", (
        r"once (?:a |per )?day",
        r"once daily",
        r"one time (?:a |per )?day",
        r"1 time (?:a |per )?day",
        r"daily",
        r"every day",
        r"every morning",
        r"in the morning",
        r"with breakfast",
        r"q\.?d\.?",
        r"q\.?a\.?m\.?",
    ), ("morning",)),
)
