"""
Process classification into web and cli tiers.
"""

from .classifier import TierClassifier

__all__ = ["TierClassifier"]
