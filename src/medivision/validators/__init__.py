# src/medivision/validators/__init__.py

from .interaction_analyzer import InteractionAnalyzer, analyze

__all__ = ["InteractionAnalyzer", "analyze"]
