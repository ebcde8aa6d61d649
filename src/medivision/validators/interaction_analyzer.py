# ============================================================================
# src/medivision/validators/interaction_analyzer.py
# ============================================================================
"""
Interaction & Duplication Analysis

Produces the warning list for a reconciled medication set:
- Same drug recorded from both hospital and home sources (merged)
- Duplicate therapy (two entries sharing an active ingredient,
  e.g. "Tylenol PM" + "Acetaminophen")
- Known interacting pairs from constants.interactions

Output is deterministic for a given medication list, and every warning
references only ids present in that list.
"""

import logging
from itertools import combinations
from typing import FrozenSet, List, Sequence

from ..constants.interactions import INTERACTION_RULES, InteractionRule
from ..constants.medication_db import get_drug_classes
from ..core.context.analysis import MedicationWarning
from ..core.context.enums import SourceType
from ..core.context.medication import Medication
from ..reconciliation.normalizer import resolve_name

logger = logging.getLogger(__name__)


class InteractionAnalyzer:
    """
    Rule-based warning generator.

    Unlisted medications carry no ingredient or class tags and so never
    trigger interaction warnings. For duplicate therapy they are identified
    by their normalised name, so two unlisted entries with the same name
    are still flagged.
    """

    def __init__(self, rules: Sequence[InteractionRule] = INTERACTION_RULES):
        self.rules = tuple(rules)

    def analyze(self, medications: Sequence[Medication]) -> List[MedicationWarning]:
        resolved = {m.id: resolve_name(m.name) for m in medications}
        ingredients = {i: frozenset(r.ingredients) for i, r in resolved.items()}
        identities = {
            i: ingredients[i] if r.known else frozenset([r.key] if r.key else [])
            for i, r in resolved.items()
        }
        tags = {m.id: self._tags(ingredients[m.id]) for m in medications}

        warnings: List[MedicationWarning] = []
        duplicate_pairs = set()

        for med in medications:
            if self._merged_across_sources(med):
                warnings.append(MedicationWarning(
                    description=(
                        f"{med.name} appears on both the discharge list and a home "
                        f"bottle ({', '.join(med.merged_from)}); recorded once."
                    ),
                    related_medication_ids=[med.id],
                ))

        for a, b in combinations(medications, 2):
            if a.id == b.id:
                continue
            shared = sorted(identities[a.id] & identities[b.id])
            if shared:
                duplicate_pairs.add((a.id, b.id))
                warnings.append(MedicationWarning(
                    description=(
                        f"Possible duplicate therapy: {a.name} and {b.name} "
                        f"both contain {', '.join(shared)}."
                    ),
                    related_medication_ids=[a.id, b.id],
                ))

        for a, b in combinations(medications, 2):
            if a.id == b.id or (a.id, b.id) in duplicate_pairs:
                continue
            for rule in self.rules:
                if self._rule_applies(rule, tags[a.id], tags[b.id]):
                    warnings.append(MedicationWarning(
                        description=f"{a.name} + {b.name}: {rule.description}",
                        related_medication_ids=[a.id, b.id],
                    ))

        logger.info(f"Analysis produced {len(warnings)} warnings for {len(medications)} medications")
        return warnings

    @staticmethod
    def _tags(ingredients: FrozenSet[str]) -> FrozenSet[str]:
        tags = set(ingredients)
        for ingredient in ingredients:
            tags.update(get_drug_classes(ingredient))
        return frozenset(tags)

    @staticmethod
    def _merged_across_sources(med: Medication) -> bool:
        sources = med.merged_sources
        return SourceType.HOSPITAL in sources and SourceType.HOME in sources

    @staticmethod
    def _rule_applies(rule: InteractionRule, left: FrozenSet[str], right: FrozenSet[str]) -> bool:
        return (
            (rule.left in left and rule.right in right)
            or (rule.right in left and rule.left in right)
        )


def analyze(medications: Sequence[Medication]) -> List[MedicationWarning]:
    return InteractionAnalyzer().analyze(medications)
