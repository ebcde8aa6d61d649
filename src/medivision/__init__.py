# ============================================================================
# src/medivision/__init__.py
# ============================================================================
"""
MediVision medication reconciliation engine.

Merges hospital discharge medications and home pill bottles into one
conflict-checked daily schedule, reviewed by a clinician before approval.
"""

__version__ = "0.1.0"
