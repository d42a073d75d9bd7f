"""
commsnet Contracts Module

Abstract base classes defining interfaces for:
- FeatureSource
"""

from commsnet.contracts.protocols import FeatureSource

__all__ = [
    "FeatureSource",
]
