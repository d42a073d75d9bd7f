"""
FeatureSource Contract - Abstract Base Class

Defines the interface through which the network model reads features
from the host datasource. All lookups work on an already fetched
snapshot; implementations perform no writes.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from commsnet.network.schema.feature import Feature


class FeatureSource(ABC):
    """
    Abstract contract for feature lookup.

    Required operations:
    1. get_feature_by_urn - single lookup
    2. get_features_by_urn - bulk lookup
    3. get_features - lookup by type and filter
    """

    @abstractmethod
    def get_feature_by_urn(self, urn: Optional[str]) -> Optional["Feature"]:
        """
        Resolve a single URN.

        Returns:
            The feature, or None if 'urn' is empty or unknown.
        """
        pass

    @abstractmethod
    def get_features_by_urn(self, urns: Iterable[str]) -> Dict[str, "Feature"]:
        """
        Resolve many URNs at once.

        Returns:
            Known features keyed by URN (unknown URNs are left out).
        """
        pass

    @abstractmethod
    def get_features(
        self,
        feature_type: str,
        filter: Union[Dict[str, Any], Callable[["Feature"], bool], None] = None,
    ) -> List["Feature"]:
        """
        Features of 'feature_type' matching 'filter'.

        Args:
            feature_type: Feature type to select
            filter: Property values to match, or a predicate
        """
        pass

    def follow_reference(self, feature: Optional["Feature"], field_name: str) -> Optional["Feature"]:
        """Feature referenced by 'field_name' of 'feature' (if any)."""
        if feature is None:
            return None
        return self.get_feature_by_urn(feature.ref_urn(field_name))
