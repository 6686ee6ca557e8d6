"""
Módulo matching — búsqueda difusa y resolución de repositorios.
"""

from .matcher import FuzzyMatcher, Match, rank_key, score_text
from .resolver import POLICIES, Resolver

__all__ = [
    "FuzzyMatcher",
    "Match",
    "POLICIES",
    "Resolver",
    "rank_key",
    "score_text",
]
