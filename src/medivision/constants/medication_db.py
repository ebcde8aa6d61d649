# ============================================================================
# src/medivision/constants/medication_db.py
# ============================================================================
"""
Medication Knowledge Table.

Small, hand-curated lookup of active ingredients: brand/generic aliases,
drug classes (used by the interaction table) and OTC availability. This is
a decision-support aid, not a complete drug database; anything not listed
falls back to name-based heuristics.
"""

import logging
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def levenshtein_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein_distance(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = range(len(s2) + 1)
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


# ingredient -> classes, OTC availability, brand/alternate names
INGREDIENTS: Dict[str, Dict] = {
    # Lipid lowering
    "atorvastatin": {"classes": ["statin"], "otc": False, "aliases": ["lipitor"]},
    "simvastatin": {"classes": ["statin"], "otc": False, "aliases": ["zocor"]},
    "rosuvastatin": {"classes": ["statin"], "otc": False, "aliases": ["crestor"]},
    "pravastatin": {"classes": ["statin"], "otc": False, "aliases": ["pravachol"]},

    # Blood pressure / heart
    "lisinopril": {"classes": ["ace_inhibitor"], "otc": False, "aliases": ["zestril", "prinivil"]},
    "enalapril": {"classes": ["ace_inhibitor"], "otc": False, "aliases": ["vasotec"]},
    "losartan": {"classes": ["arb"], "otc": False, "aliases": ["cozaar"]},
    "valsartan": {"classes": ["arb"], "otc": False, "aliases": ["diovan"]},
    "metoprolol": {"classes": ["beta_blocker"], "otc": False,
                   "aliases": ["lopressor", "toprol", "toprol xl", "metoprolol succinate", "metoprolol tartrate"]},
    "atenolol": {"classes": ["beta_blocker"], "otc": False, "aliases": ["tenormin"]},
    "carvedilol": {"classes": ["beta_blocker"], "otc": False, "aliases": ["coreg"]},
    "amlodipine": {"classes": ["calcium_channel_blocker"], "otc": False, "aliases": ["norvasc"]},
    "hydrochlorothiazide": {"classes": ["diuretic"], "otc": False, "aliases": ["hctz", "microzide"]},
    "furosemide": {"classes": ["diuretic"], "otc": False, "aliases": ["lasix"]},
    "spironolactone": {"classes": ["diuretic", "potassium_sparing_diuretic"], "otc": False,
                       "aliases": ["aldactone"]},
    "digoxin": {"classes": ["cardiac_glycoside"], "otc": False, "aliases": ["lanoxin"]},
    "amiodarone": {"classes": ["antiarrhythmic"], "otc": False, "aliases": ["pacerone", "cordarone"]},
    "nitroglycerin": {"classes": ["nitrate"], "otc": False, "aliases": ["nitrostat"]},
    "isosorbide mononitrate": {"classes": ["nitrate"], "otc": False, "aliases": ["imdur"]},
    "potassium chloride": {"classes": ["potassium_supplement"], "otc": False,
                           "aliases": ["klor con", "k dur", "kcl"]},

    # Anticoagulants / antiplatelets
    "warfarin": {"classes": ["anticoagulant"], "otc": False, "aliases": ["coumadin", "jantoven"]},
    "apixaban": {"classes": ["anticoagulant"], "otc": False, "aliases": ["eliquis"]},
    "rivaroxaban": {"classes": ["anticoagulant"], "otc": False, "aliases": ["xarelto"]},
    "dabigatran": {"classes": ["anticoagulant"], "otc": False, "aliases": ["pradaxa"]},
    "clopidogrel": {"classes": ["antiplatelet"], "otc": False, "aliases": ["plavix"]},

    # Analgesics
    "aspirin": {"classes": ["nsaid", "antiplatelet"], "otc": True,
                "aliases": ["asa", "bayer", "ecotrin", "baby aspirin", "acetylsalicylic acid"]},
    "ibuprofen": {"classes": ["nsaid"], "otc": True, "aliases": ["advil", "motrin"]},
    "naproxen": {"classes": ["nsaid"], "otc": True, "aliases": ["aleve", "naprosyn", "naproxen sodium"]},
    "celecoxib": {"classes": ["nsaid"], "otc": False, "aliases": ["celebrex"]},
    "diclofenac": {"classes": ["nsaid"], "otc": False, "aliases": ["voltaren", "cataflam"]},
    "acetaminophen": {"classes": ["analgesic"], "otc": True,
                      "aliases": ["tylenol", "paracetamol", "apap", "panadol"]},
    "tramadol": {"classes": ["opioid", "serotonergic"], "otc": False, "aliases": ["ultram"]},
    "oxycodone": {"classes": ["opioid"], "otc": False, "aliases": ["oxycontin", "roxicodone"]},
    "hydrocodone": {"classes": ["opioid"], "otc": False, "aliases": []},

    # Diabetes / thyroid
    "metformin": {"classes": ["biguanide"], "otc": False, "aliases": ["glucophage"]},
    "glipizide": {"classes": ["sulfonylurea"], "otc": False, "aliases": ["glucotrol"]},
    "insulin glargine": {"classes": ["insulin"], "otc": False, "aliases": ["lantus", "basaglar"]},
    "levothyroxine": {"classes": ["thyroid_hormone"], "otc": False,
                      "aliases": ["synthroid", "levoxyl", "euthyrox"]},

    # GI
    "omeprazole": {"classes": ["ppi"], "otc": True, "aliases": ["prilosec"]},
    "esomeprazole": {"classes": ["ppi"], "otc": True, "aliases": ["nexium"]},
    "pantoprazole": {"classes": ["ppi"], "otc": False, "aliases": ["protonix"]},
    "famotidine": {"classes": ["h2_blocker"], "otc": True, "aliases": ["pepcid"]},
    "calcium carbonate": {"classes": ["antacid", "calcium"], "otc": True,
                          "aliases": ["tums", "os cal", "caltrate", "calcium"]},
    "senna": {"classes": ["laxative"], "otc": True, "aliases": ["senokot", "sennosides"]},
    "docusate": {"classes": ["laxative"], "otc": True, "aliases": ["colace", "docusate sodium"]},
    "polyethylene glycol": {"classes": ["laxative"], "otc": True, "aliases": ["miralax"]},
    "loperamide": {"classes": ["antidiarrheal"], "otc": True, "aliases": ["imodium"]},

    # CNS
    "sertraline": {"classes": ["ssri"], "otc": False, "aliases": ["zoloft"]},
    "fluoxetine": {"classes": ["ssri"], "otc": False, "aliases": ["prozac"]},
    "escitalopram": {"classes": ["ssri"], "otc": False, "aliases": ["lexapro"]},
    "citalopram": {"classes": ["ssri"], "otc": False, "aliases": ["celexa"]},
    "trazodone": {"classes": ["serotonergic"], "otc": False, "aliases": ["desyrel"]},
    "lorazepam": {"classes": ["benzodiazepine"], "otc": False, "aliases": ["ativan"]},
    "alprazolam": {"classes": ["benzodiazepine"], "otc": False, "aliases": ["xanax"]},
    "diazepam": {"classes": ["benzodiazepine"], "otc": False, "aliases": ["valium"]},
    "zolpidem": {"classes": ["sedative_hypnotic"], "otc": False, "aliases": ["ambien"]},
    "gabapentin": {"classes": ["anticonvulsant"], "otc": False, "aliases": ["neurontin"]},

    # Allergy / cough / sleep
    "diphenhydramine": {"classes": ["sedating_antihistamine"], "otc": True,
                        "aliases": ["benadryl", "zzzquil"]},
    "doxylamine": {"classes": ["sedating_antihistamine"], "otc": True, "aliases": ["unisom"]},
    "loratadine": {"classes": ["antihistamine"], "otc": True, "aliases": ["claritin"]},
    "cetirizine": {"classes": ["antihistamine"], "otc": True, "aliases": ["zyrtec"]},
    "dextromethorphan": {"classes": ["antitussive", "serotonergic"], "otc": True,
                         "aliases": ["robitussin", "delsym"]},

    # Anti-infectives
    "amoxicillin": {"classes": ["penicillin"], "otc": False, "aliases": ["amoxil"]},
    "ciprofloxacin": {"classes": ["fluoroquinolone"], "otc": False, "aliases": ["cipro"]},
    "azithromycin": {"classes": ["macrolide"], "otc": False, "aliases": ["zithromax", "z pak"]},
    "clarithromycin": {"classes": ["macrolide", "strong_cyp3a4_inhibitor"], "otc": False,
                       "aliases": ["biaxin"]},

    # Other Rx
    "prednisone": {"classes": ["corticosteroid"], "otc": False, "aliases": ["deltasone"]},
    "allopurinol": {"classes": ["xanthine_oxidase_inhibitor"], "otc": False, "aliases": ["zyloprim"]},
    "tamsulosin": {"classes": ["alpha_blocker"], "otc": False, "aliases": ["flomax"]},
    "sildenafil": {"classes": ["pde5_inhibitor"], "otc": False, "aliases": ["viagra", "revatio"]},

    # Supplements
    "fish oil": {"classes": ["omega3", "bleeding_risk_supplement"], "otc": True,
                 "aliases": ["omega 3", "omega 3 fish oil", "omega 3 fatty acids"]},
    "ginkgo biloba": {"classes": ["bleeding_risk_supplement"], "otc": True, "aliases": ["ginkgo"]},
    "st johns wort": {"classes": ["serotonergic", "cyp3a4_inducer"], "otc": True,
                      "aliases": ["st john s wort", "saint johns wort", "hypericum"]},
    "vitamin d3": {"classes": ["vitamin"], "otc": True,
                   "aliases": ["vitamin d", "cholecalciferol", "d3"]},
    "vitamin k": {"classes": ["vitamin", "vitamin_k"], "otc": True, "aliases": ["phytonadione"]},
    "vitamin b12": {"classes": ["vitamin"], "otc": True, "aliases": ["cyanocobalamin", "b12"]},
    "ferrous sulfate": {"classes": ["iron_supplement"], "otc": True,
                        "aliases": ["iron", "feosol", "slow fe"]},
    "magnesium oxide": {"classes": ["magnesium"], "otc": True, "aliases": ["mag ox", "magnesium"]},
    "melatonin": {"classes": ["sleep_aid"], "otc": True, "aliases": []},
    "multivitamin": {"classes": ["vitamin", "iron_supplement", "calcium"], "otc": True,
                     "aliases": ["centrum", "one a day", "multi vitamin"]},
}

# Brand combinations -> component ingredients
COMBINATION_PRODUCTS: Dict[str, Tuple[str, ...]] = {
    "tylenol pm": ("acetaminophen", "diphenhydramine"),
    "advil pm": ("ibuprofen", "diphenhydramine"),
    "aleve pm": ("naproxen", "diphenhydramine"),
    "nyquil": ("acetaminophen", "dextromethorphan", "doxylamine"),
    "excedrin": ("acetaminophen", "aspirin"),
    "percocet": ("oxycodone", "acetaminophen"),
    "norco": ("hydrocodone", "acetaminophen"),
    "vicodin": ("hydrocodone", "acetaminophen"),
    "losartan hctz": ("losartan", "hydrochlorothiazide"),
    "hyzaar": ("losartan", "hydrochlorothiazide"),
    "zestoretic": ("lisinopril", "hydrochlorothiazide"),
}

# Name fragments that mark an unlisted product as over-the-counter
OTC_KEYWORDS = (
    "vitamin", "multivitamin", "supplement", "probiotic", "omega", "fish oil",
    "calcium", "magnesium", "zinc", "iron", "biotin", "folic acid", "glucosamine",
    "chondroitin", "turmeric", "curcumin", "coq10", "coenzyme", "collagen",
    "melatonin", "fiber", "psyllium", "elderberry", "echinacea", "ginseng",
    "herbal", "extract", "gummies",
)


def _build_alias_index() -> Dict[str, Tuple[str, ...]]:
    index: Dict[str, Tuple[str, ...]] = {}
    for ingredient, info in INGREDIENTS.items():
        index[ingredient] = (ingredient,)
        for alias in info["aliases"]:
            index[alias] = (ingredient,)
    for product, ingredients in COMBINATION_PRODUCTS.items():
        index[product] = tuple(ingredients)
    return index


# normalized alias -> active ingredients
ALIAS_INDEX: Dict[str, Tuple[str, ...]] = _build_alias_index()


def lookup_ingredients(normalized_name: str) -> Optional[Tuple[str, ...]]:
    """Exact alias lookup on an already-normalized name."""
    return ALIAS_INDEX.get(normalized_name)


@lru_cache(maxsize=2048)
def fuzzy_lookup(normalized_name: str, max_distance: int = 1) -> Optional[str]:
    """
    Closest alias within ``max_distance`` edits, tolerating OCR typos.

    Ties are broken alphabetically so the result is deterministic.
    """
    best: Optional[Tuple[int, str]] = None
    for alias in ALIAS_INDEX:
        if abs(len(alias) - len(normalized_name)) > max_distance:
            continue
        distance = levenshtein_distance(normalized_name, alias)
        if distance <= max_distance and (best is None or (distance, alias) < best):
            best = (distance, alias)

    if best:
        logger.debug(f"Fuzzy matched {normalized_name!r} -> {best[1]!r} (distance={best[0]})")
        return best[1]
    return None


def get_drug_classes(ingredient: str) -> List[str]:
    info = INGREDIENTS.get(ingredient)
    return list(info["classes"]) if info else []


def is_otc_ingredient(ingredient: str) -> Optional[bool]:
    """True/False for listed ingredients, None when unknown."""
    info = INGREDIENTS.get(ingredient)
    return info["otc"] if info else None
