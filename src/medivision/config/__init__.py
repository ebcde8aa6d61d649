# ============================================================================
# src/medivision/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .base_config import base_settings
from .logging_config import logging_settings
from .extraction_config import extraction_settings
from .reconciliation_config import reconciliation_settings
