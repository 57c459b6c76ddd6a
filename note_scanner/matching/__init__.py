"""
Matching Module.

Confidence-tiered matching of extracted product names to the catalog.
"""

from .matcher import ProductMatcher, MatchOutcome, MatchTier

__all__ = ['ProductMatcher', 'MatchOutcome', 'MatchTier']
