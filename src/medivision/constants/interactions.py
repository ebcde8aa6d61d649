# ============================================================================
# src/medivision/constants/interactions.py
# ============================================================================
"""
Known interacting pairs.

Each side of a rule is either a drug class from medication_db or a single
ingredient name. Rules are checked in table order, which fixes the order of
interaction warnings. Incomplete by nature; absence of a warning is not a
statement of safety.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class InteractionRule:
    left: str
    right: str
    description: str


INTERACTION_RULES: Tuple[InteractionRule, ...] = (
    # Bleeding
    InteractionRule("anticoagulant", "nsaid",
                    "increased bleeding risk (anticoagulant with NSAID)"),
    InteractionRule("anticoagulant", "antiplatelet",
                    "increased bleeding risk (anticoagulant with antiplatelet)"),
    InteractionRule("antiplatelet", "nsaid",
                    "increased GI bleeding risk; ibuprofen may blunt aspirin's cardioprotective effect"),
    InteractionRule("nsaid", "nsaid",
                    "two NSAIDs together add GI bleeding and kidney risk"),
    InteractionRule("anticoagulant", "bleeding_risk_supplement",
                    "supplement may increase bleeding risk with anticoagulant"),
    InteractionRule("anticoagulant", "ssri",
                    "increased bleeding risk (SSRI with anticoagulant)"),
    InteractionRule("ssri", "nsaid",
                    "increased GI bleeding risk (SSRI with NSAID)"),
    InteractionRule("warfarin", "vitamin_k",
                    "vitamin K can reduce warfarin's effect; keep intake consistent"),
    InteractionRule("warfarin", "fluoroquinolone",
                    "antibiotic may raise INR and bleeding risk"),
    InteractionRule("warfarin", "macrolide",
                    "antibiotic may raise INR and bleeding risk"),
    InteractionRule("anticoagulant", "cyp3a4_inducer",
                    "St. John's wort can reduce anticoagulant levels"),

    # Serotonin / CNS depression
    InteractionRule("ssri", "serotonergic",
                    "risk of serotonin syndrome"),
    InteractionRule("opioid", "benzodiazepine",
                    "risk of profound sedation and respiratory depression"),
    InteractionRule("opioid", "sedative_hypnotic",
                    "additive CNS and respiratory depression"),
    InteractionRule("opioid", "sedating_antihistamine",
                    "additive sedation"),
    InteractionRule("benzodiazepine", "sedating_antihistamine",
                    "additive sedation; fall risk"),

    # Kidney / potassium / blood pressure
    InteractionRule("ace_inhibitor", "potassium_sparing_diuretic",
                    "risk of high potassium (hyperkalemia)"),
    InteractionRule("arb", "potassium_sparing_diuretic",
                    "risk of high potassium (hyperkalemia)"),
    InteractionRule("ace_inhibitor", "potassium_supplement",
                    "risk of high potassium (hyperkalemia)"),
    InteractionRule("arb", "potassium_supplement",
                    "risk of high potassium (hyperkalemia)"),
    InteractionRule("ace_inhibitor", "arb",
                    "dual renin-angiotensin blockade; kidney injury and hyperkalemia risk"),
    InteractionRule("nsaid", "ace_inhibitor",
                    "NSAID may reduce blood pressure control and harm kidney function"),
    InteractionRule("nsaid", "arb",
                    "NSAID may reduce blood pressure control and harm kidney function"),
    InteractionRule("pde5_inhibitor", "nitrate",
                    "risk of severe low blood pressure"),

    # Cardiac / metabolism
    InteractionRule("digoxin", "amiodarone",
                    "amiodarone raises digoxin levels (toxicity risk)"),
    InteractionRule("simvastatin", "strong_cyp3a4_inhibitor",
                    "raised statin levels; muscle damage risk"),
    InteractionRule("atorvastatin", "strong_cyp3a4_inhibitor",
                    "raised statin levels; muscle damage risk"),

    # Absorption (separate doses)
    InteractionRule("levothyroxine", "calcium",
                    "calcium reduces levothyroxine absorption; separate by 4 hours"),
    InteractionRule("levothyroxine", "iron_supplement",
                    "iron reduces levothyroxine absorption; separate by 4 hours"),
    InteractionRule("fluoroquinolone", "calcium",
                    "calcium binds the antibiotic; separate doses"),
    InteractionRule("fluoroquinolone", "magnesium",
                    "magnesium binds the antibiotic; separate doses"),
    InteractionRule("fluoroquinolone", "iron_supplement",
                    "iron binds the antibiotic; separate doses"),
)
