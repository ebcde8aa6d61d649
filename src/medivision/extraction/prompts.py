# ============================================================================
# src/medivision/extraction/prompts.py
# ============================================================================
"""
Prompts for the vision/translation collaborator.

The extraction prompt only asks the model to READ. Merging, scheduling,
classification and interaction checks are recomputed deterministically by
the core, so whatever the model says about them is ignored.
"""

import json
from typing import Any, Dict

EXTRACTION_PROMPT = """You are assisting a clinical pharmacist with medication reconciliation.

The attached images are hospital discharge summaries, prescription lists, or
photos of medication and supplement bottles.

For EVERY medication visible in EVERY image, extract one entry:
- name: drug or product name exactly as printed
- dosage: strength per dose (e.g. "20mg", "2 tablets")
- frequency: how often, as written (e.g. "twice daily", "BID", "at bedtime")
- instructions: extra directions (e.g. "take with food")
- source: "HOSPITAL" for discharge/prescription documents, "HOME" for bottle labels
- reasoning: quote the text the frequency/dosage came from (e.g. "Label says BID")

Rules:
- On bottle labels read the "Directions" or "Suggested Use" section.
- Ignore supplement facts / ingredient lists unless they name the active drug.
- On discharge documents skip medications listed under "Discontinue" or "Stop".
- Do NOT merge entries across images; list each one as seen.
- If a field is not visible use an empty string.

Respond with JSON only, no markdown:
{"medications": [{"id": "", "name": "", "dosage": "", "frequency": "",
  "instructions": "", "source": "HOSPITAL", "reasoning": ""}]}
"""


TRANSLATION_PROMPT = """Translate this medication schedule into {language}.

Rules:
1. medications: translate "frequency", "instructions" and "reasoning".
   Keep every "id" EXACTLY as given. Keep "name" and "dosage" as they are,
   transliterating only where {language} requires its own script.
   Do not add or remove medications.
2. warnings: translate "description" only; keep "relatedMedicationIds".
3. labels: translate every value, keep every key.

Respond with JSON only, same structure as the input:
{{"medications": [...], "warnings": [...], "labels": {{...}}}}

Input:
{payload}
"""


def build_translation_prompt(payload: Dict[str, Any], language: str) -> str:
    return TRANSLATION_PROMPT.format(
        language=language,
        payload=json.dumps(payload, ensure_ascii=False),
    )
